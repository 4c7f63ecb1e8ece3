"""Domain client for TimeCamp time entries.

``get`` normalises the loosely typed ``GET entries`` records: ids, duration
and billable become ints, everything else a string, tags a list of dicts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from clients._base import BaseTimeCampClient, to_int
from clients.custom_fields import ResourceCustomFields

__all__ = ["TimeEntriesClient"]

logger = logging.getLogger("timecamp_mcp.client")

_STRING_FIELDS: dict[str, str] = {
    "user_id": "",
    "user_name": "",
    "last_modify": "",
    "date": "",
    "start_time": "",
    "end_time": "",
    "locked": "0",
    "name": "",
    "addons_external_id": "",
    "invoiceId": "0",
    "color": "",
    "description": "",
}

_TAG_FIELDS: dict[str, str] = {
    "tagListName": "",
    "tagListId": "",
    "tagId": "",
    "name": "",
    "mandatory": "0",
}


def _as_str(value: Any, default: str) -> str:
    return str(value) if value else default


def _normalize_entry(entry: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": to_int(entry.get("id"), None),
        "duration": to_int(entry.get("duration"), 0),
        "task_id": to_int(entry.get("task_id"), 0),
        "billable": to_int(entry.get("billable"), 0),
        "task_note": entry.get("task_note") or None,
        "hasEntryLocationHistory": bool(entry.get("hasEntryLocationHistory")),
    }
    for name, default in _STRING_FIELDS.items():
        out[name] = _as_str(entry.get(name), default)
    tags = entry.get("tags")
    out["tags"] = [
        {name: _as_str(tag.get(name), default) for name, default in _TAG_FIELDS.items()}
        for tag in (tags if isinstance(tags, list) else [])
        if isinstance(tag, Mapping)
    ]
    return out


def _join_ids(ids: Iterable[int | str] | str | None) -> str | None:
    if ids is None or isinstance(ids, str):
        return ids
    return ",".join(str(i) for i in ids)


class TimeEntriesClient:
    """Time entry CRUD plus entry tags."""

    def __init__(self, base: BaseTimeCampClient) -> None:
        self._base = base

    def custom_fields(self, entry_id: int) -> ResourceCustomFields:
        return ResourceCustomFields(self._base, "entry", entry_id)

    async def get(
        self,
        date_from: str,
        date_to: str,
        *,
        user_ids: Iterable[int | str] | str | None = None,
        task_ids: Iterable[int | str] | str | None = None,
    ) -> list[dict[str, Any]]:
        """Entries between *date_from* and *date_to* (``YYYY-MM-DD``, inclusive)."""
        params = {
            "from": date_from,
            "to": date_to,
            "user_ids": _join_ids(user_ids),
            "task_ids": _join_ids(task_ids),
            "opt_fields": "tags",
        }
        response = await self._base.request("GET", "entries", params=params)
        if not isinstance(response, list):
            return []
        return [_normalize_entry(entry) for entry in response if isinstance(entry, Mapping)]

    async def create(
        self,
        date: str,
        duration: int,
        *,
        start_time: str | None = None,
        end_time: str | None = None,
        description: str = "",
        task_id: int | None = None,
        user_id: int | None = None,
        billable: bool | None = None,
        tags: list[dict[str, Any]] | None = None,
    ) -> int | None:
        """Create an entry; returns the new entry id."""
        if duration < 0:
            raise ValueError("duration must be >= 0 seconds")
        body: dict[str, Any] = {
            "date": date,
            "duration": duration,
            "description": description or "",
            "service": self._base.client_name,
        }
        if start_time is not None:
            body["start_time"] = start_time
        if end_time is not None:
            body["end_time"] = end_time
        if task_id:
            body["task_id"] = task_id
        if user_id:
            body["user_id"] = user_id
        if billable is not None:
            body["billable"] = billable
        if tags is not None:
            body["tags"] = tags
        response = await self._base.request("POST", "entries", json=body)
        logger.info("WRITE_OP entry_create date=%s duration=%s task_id=%s", date, duration, task_id)
        return _entry_id(response)

    async def update(self, entry_id: int, **changes: Any) -> int | None:
        """Update *entry_id* with any of date, duration, task_id, description,
        start_time, end_time, billable."""
        allowed = {"date", "duration", "task_id", "description", "start_time", "end_time", "billable"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Unknown time entry fields: {sorted(unknown)}")
        body: dict[str, Any] = {"id": str(entry_id), "service": self._base.client_name}
        body.update({key: value for key, value in changes.items() if value is not None})
        response = await self._base.request("PUT", "entries", json=body)
        logger.info("WRITE_OP entry_update id=%s fields=%s", entry_id, sorted(changes))
        return _entry_id(response) or entry_id

    async def delete(self, entry_id: int) -> None:
        await self._base.request(
            "DELETE", "entries", json={"id": str(entry_id), "service": self._base.client_name}
        )
        logger.info("WRITE_OP entry_delete id=%s", entry_id)

    # -- entry tags ---------------------------------------------------------

    async def get_tags(self, entry_id: int) -> Any:
        return await self._base.request("GET", f"entries/{entry_id}/tags")

    async def add_tags(self, entry_id: int, tag_ids: Iterable[int]) -> Any:
        return await self._base.request(
            "PUT", f"entries/{entry_id}/tags", json={"tags": _join_ids(tag_ids)}
        )

    async def remove_tags(self, entry_id: int, tag_ids: Iterable[int]) -> Any:
        return await self._base.request(
            "DELETE", f"entries/{entry_id}/tags", json={"tags": _join_ids(tag_ids)}
        )


def _entry_id(response: Any) -> int | None:
    if not isinstance(response, Mapping):
        return None
    return to_int(response.get("entry_id") or response.get("id"), None)
