"""Task MCP tools: visibility queries and task creation."""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import tool_error_handler
from _constants import MAX_NOTE_LEN
from clients import get_registry

logger = logging.getLogger("timecamp_mcp.server")

__all__ = ["register"]


@tool_error_handler("Failed to fetch tasks. Please try again.")
async def tasks_list_visible(
    user: str = "me",
    include_full_breadcrumb: bool = True,
) -> dict[str, Any]:
    """List active tasks visible to a user, flagging which ones accept time.

    Args:
        user: "me" for the authenticated user, or a numeric TimeCamp user id.
        include_full_breadcrumb: Also return parent/child tasks needed for
            navigation; each task then carries trackable=true/false.
    """
    tasks = await get_registry().tasks.get_active_user_tasks(user, include_full_breadcrumb)
    return {"status": "success", "data": tasks, "count": len(tasks)}


@tool_error_handler("Failed to fetch tasks. Please try again.")
async def tasks_list_all() -> dict[str, Any]:
    """List every task in the workspace, archived ones included."""
    tasks = await get_registry().tasks.get_all()
    return {"status": "success", "data": tasks, "count": len(tasks)}


@tool_error_handler("Failed to create task. Please try again.")
async def tasks_create(
    name: str,
    parent_id: int | None = None,
    note: str | None = None,
    billable: bool | None = None,
) -> dict[str, Any]:
    """Create a task.

    Args:
        name: Task name.
        parent_id: Parent task id; omit for a top-level project.
        note: Optional task note.
        billable: Whether time on the task is billable.
    """
    if not name.strip():
        raise ToolError("Task name must not be empty.")
    if note is not None and len(note) > MAX_NOTE_LEN:
        raise ToolError(f"Note too long (max {MAX_NOTE_LEN} characters)")
    created = await get_registry().tasks.add(
        name.strip(),
        parent_id=parent_id,
        note=note,
        billable=None if billable is None else int(billable),
    )
    return {"status": "success", "data": created}


def register(mcp: FastMCP) -> None:
    """Register all task tools on the given FastMCP instance."""
    mcp.tool(tasks_list_visible)
    mcp.tool(tasks_list_all)
    mcp.tool(tasks_create)
