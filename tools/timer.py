"""Timer MCP tools."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from _auth import tool_error_handler
from clients import get_registry

__all__ = ["register"]


@tool_error_handler("Failed to start timer. Please try again.")
async def timer_start(task_id: int | None = None) -> dict[str, Any]:
    """Start the timer now, optionally on a task.

    Args:
        task_id: Task to track time on; it should be trackable by you
            (see tasks_list_visible).
    """
    return {"status": "success", "data": await get_registry().timer.start(task_id=task_id)}


@tool_error_handler("Failed to stop timer. Please try again.")
async def timer_stop() -> dict[str, Any]:
    """Stop the running timer now."""
    return {"status": "success", "data": await get_registry().timer.stop()}


@tool_error_handler("Failed to fetch timer status. Please try again.")
async def timer_status() -> dict[str, Any]:
    """Show whether a timer is running and on which task."""
    return {"status": "success", "data": await get_registry().timer.status()}


def register(mcp: FastMCP) -> None:
    mcp.tool(timer_start)
    mcp.tool(timer_stop)
    mcp.tool(timer_status)
