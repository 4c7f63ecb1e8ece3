"""Domain client for TimeCamp tasks.

Fetching is thin; the visibility rules live in :mod:`clients.task_filters`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from clients._base import BaseTimeCampClient, to_int
from clients.custom_fields import ResourceCustomFields
from clients.task_filters import Principal, normalize_task_map, resolve_visible_tasks
from clients.user import UserClient

__all__ = ["TASK_FIELDS", "TasksClient"]

logger = logging.getLogger("timecamp_mcp.client")

# Optional fields accepted by ``add`` / ``update``.
TASK_FIELDS: frozenset[str] = frozenset(
    {
        "parent_id",
        "external_task_id",
        "external_parent_id",
        "budgeted",
        "note",
        "archived",
        "billable",
        "budget_unit",
        "user_ids",
        "role",
        "keywords",
        "tags",
    }
)

_INT_FIELDS = ("task_id", "parent_id", "level", "archived", "budgeted", "root_group_id",
               "assigned_by", "billable")


class TasksClient:
    """Task listing, visibility queries and task mutations."""

    def __init__(self, base: BaseTimeCampClient, user: UserClient) -> None:
        self._base = base
        self._user = user

    def custom_fields(self, task_id: int) -> ResourceCustomFields:
        return ResourceCustomFields(self._base, "task", task_id)

    # -- read methods -------------------------------------------------------

    async def get_all(self) -> list[dict[str, Any]]:
        """Every task, archived ones included, without the ``tags`` field."""
        raw = await self._base.request("GET", "tasks", params={"status": "all"})
        return [
            {key: value for key, value in task.items() if key != "tags"}
            for task in normalize_task_map(raw).values()
            if isinstance(task, Mapping)
        ]

    async def resolve_principal(self, user: str | int | None = "me") -> Principal:
        """Turn a user parameter into a :class:`Principal`.

        ``"me"``/``None`` is self without a lookup.  A non-numeric identifier
        cannot be matched to a user id and yields an unresolved principal.
        A numeric id equal to the caller's own id is treated as self.
        """
        requested = "me" if user is None else str(user).strip()
        if requested in ("", "me"):
            return Principal.me()
        if not requested.isdigit():
            return Principal(is_self=False, target_id=None)
        if await self._user.get_user_id() == requested:
            return Principal.me()
        return Principal.user(requested)

    async def get_active_user_tasks(
        self,
        user: str | int | None = "me",
        include_full_breadcrumb: bool = True,
    ) -> list[dict[str, Any]]:
        """Tasks visible to *user*, each annotated with ``trackable``."""
        principal = await self.resolve_principal(user)
        params = {"ignoreAdminRights": "1"} if principal.is_self else None
        raw = await self._base.request("GET", "tasks", params=params)
        tasks = resolve_visible_tasks(
            normalize_task_map(raw), principal, include_full_breadcrumb
        )
        logger.debug(
            "Resolved %d visible tasks (self=%s, breadcrumb=%s)",
            len(tasks),
            principal.is_self,
            include_full_breadcrumb,
        )
        return tasks

    async def get_favorites(self) -> Any:
        return await self._base.request(
            "GET", self._base.build_v3_endpoint("taskPicker/favourites")
        )

    # -- write methods ------------------------------------------------------

    async def add(self, name: str, **fields: Any) -> dict[str, dict[str, Any]]:
        """Create a task.  Returns ``{task_id: task}`` with numeric fields coerced."""
        if not name:
            raise ValueError("Task name is required")
        body = {"name": name, **_task_body(fields)}
        response = await self._base.request("POST", "tasks", json=body)
        logger.info("WRITE_OP task_add name=%r parent_id=%s", name, body.get("parent_id"))
        return _normalize_task_response(response)

    async def update(self, task_id: int, **fields: Any) -> dict[str, dict[str, Any]]:
        if not task_id:
            raise ValueError("Task ID is required")
        body: dict[str, Any] = {"task_id": str(task_id), **_task_body(fields)}
        if "name" in fields:
            body["name"] = fields["name"]
        response = await self._base.request("PUT", "tasks", json=body)
        logger.info("WRITE_OP task_update task_id=%s", task_id)
        return _normalize_task_response(response)

    async def add_favorite(self, task_id: int) -> Any:
        return await self._base.request(
            "POST", self._base.build_v3_endpoint(f"taskPicker/favourites/add/{task_id}")
        )

    async def remove_favorite(self, task_id: int) -> Any:
        return await self._base.request(
            "DELETE", self._base.build_v3_endpoint(f"taskPicker/favourites/delete/{task_id}")
        )


def _task_body(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - TASK_FIELDS - {"name"}
    if unknown:
        raise ValueError(f"Unknown task fields: {sorted(unknown)}")
    body = {key: value for key, value in fields.items() if key in TASK_FIELDS and value is not None}
    if "parent_id" in body:
        body["parent_id"] = str(body["parent_id"])
    return body


def _normalize_task_response(response: Any) -> dict[str, dict[str, Any]]:
    """Coerce the string-encoded numbers of a task mutation response."""
    out: dict[str, dict[str, Any]] = {}
    if not isinstance(response, Mapping):
        return out
    for key, task in response.items():
        if not isinstance(task, Mapping):
            continue
        item = dict(task)
        for name in _INT_FIELDS:
            if name in item:
                item[name] = to_int(item[name], None)
        assigned_to = item.get("assigned_to")
        item["assigned_to"] = to_int(assigned_to, None) if assigned_to else None
        out[str(key)] = item
    return out
