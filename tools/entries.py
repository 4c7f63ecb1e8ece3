"""Time entry MCP tools."""

from __future__ import annotations

import logging
from datetime import date as date_type
from datetime import datetime, timedelta
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import tool_error_handler
from _constants import MAX_NOTE_LEN, MAX_QUERY_DAYS
from clients import get_registry

logger = logging.getLogger("timecamp_mcp.server")

__all__ = ["register"]


@tool_error_handler("Failed to fetch time entries. Please try again.")
async def entries_list(
    start_date: str,
    end_date: str,
    user_ids: list[int] | None = None,
    task_ids: list[int] | None = None,
) -> dict[str, Any]:
    """List time entries for a date range.

    Args:
        start_date: Start date in YYYY-MM-DD format.
        end_date: End date in YYYY-MM-DD format (inclusive).
        user_ids: Restrict to these user ids (default: yourself).
        task_ids: Restrict to these task ids.
    """
    try:
        start = date_type.fromisoformat(start_date)
        end = date_type.fromisoformat(end_date)
    except ValueError as exc:
        raise ValueError(f"Invalid date format. Use YYYY-MM-DD. Details: {exc}") from exc
    if end < start:
        raise ValueError("end_date must be on or after start_date.")
    day_span = (end - start).days + 1
    if day_span > MAX_QUERY_DAYS:
        raise ValueError(
            f"Date range spans {day_span} days, exceeding the maximum of "
            f"{MAX_QUERY_DAYS} days for read queries."
        )
    entries = await get_registry().time_entries.get(
        start_date, end_date, user_ids=user_ids, task_ids=task_ids
    )
    return {
        "status": "success",
        "data": entries,
        "count": len(entries),
        "total_seconds": sum(entry["duration"] for entry in entries),
    }


@tool_error_handler("Failed to create time entry. Please try again.")
async def entries_create(
    date: str,
    hours: float,
    task_id: int | None = None,
    description: str = "",
    start_time: str = "09:00:00",
) -> dict[str, Any]:
    """Log time for a date.

    Args:
        date: Date in YYYY-MM-DD format.
        hours: Hours worked (decimal allowed, e.g. 1.5; 0-24).
        task_id: Task to log against (see tasks_list_visible for trackable tasks).
        description: What was done.
        start_time: Start time as HH:MM:SS (default 09:00:00).
    """
    if hours <= 0 or hours > 24:
        raise ValueError(f"hours must be between 0 (exclusive) and 24 (inclusive), got {hours}")
    if len(description) > MAX_NOTE_LEN:
        raise ToolError(f"Description too long (max {MAX_NOTE_LEN} characters)")
    duration = round(hours * 3600)
    try:
        start = datetime.fromisoformat(f"{date}T{start_time}")
    except ValueError as exc:
        raise ValueError(f"Invalid date or start_time: {exc}") from exc
    end = start + timedelta(seconds=duration)
    if end.date() != start.date():
        raise ToolError("Entry must end on the same day it starts; use an earlier start_time.")

    entry_id = await get_registry().time_entries.create(
        date,
        duration,
        start_time=start.strftime("%H:%M:%S"),
        end_time=end.strftime("%H:%M:%S"),
        description=description,
        task_id=task_id,
    )
    return {"status": "success", "entry_id": entry_id, "duration": duration}


@tool_error_handler("Failed to delete time entry. Please try again.")
async def entries_delete(entry_id: int) -> dict[str, Any]:
    """Delete a time entry by id."""
    await get_registry().time_entries.delete(entry_id)
    return {"status": "success", "entry_id": entry_id}


def register(mcp: FastMCP) -> None:
    mcp.tool(entries_list)
    mcp.tool(entries_create)
    mcp.tool(entries_delete)
