"""Domain client for TimeCamp groups."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from clients._base import BaseTimeCampClient, to_int, to_records

__all__ = ["GroupsClient"]

logger = logging.getLogger("timecamp_mcp.client")


class GroupsClient:
    def __init__(self, base: BaseTimeCampClient) -> None:
        self._base = base

    async def get_all(self) -> list[dict[str, Any]]:
        groups = to_records(await self._base.request("GET", "group"))
        return [
            {
                "group_id": to_int(group.get("group_id"), None),
                "name": group.get("name"),
                "parent_id": to_int(group.get("parent_id"), None),
            }
            for group in groups
        ]

    async def create(self, name: str, parent_id: int | None = None) -> dict[str, Any]:
        if not name:
            raise ValueError("Group name is required")
        body: dict[str, Any] = {"name": name}
        if parent_id is not None:
            body["parent_id"] = parent_id
        response = await self._base.request("PUT", "group", json=body)
        logger.info("WRITE_OP group_create name=%r parent_id=%s", name, parent_id)
        if not isinstance(response, Mapping):
            return {}
        group: dict[str, Any] = {
            "group_id": to_int(response.get("group_id"), None),
            "name": response.get("name"),
            "parent_id": to_int(response.get("parent_id"), None),
        }
        for key in ("admin_id", "root_group_id"):
            if key in response:
                group[key] = to_int(response[key], None)
        return group

    async def update(
        self, group_id: int, *, name: str | None = None, parent_id: int | None = None
    ) -> None:
        if not group_id:
            raise ValueError("Group ID is required")
        body: dict[str, Any] = {"group_id": group_id}
        if name is not None:
            body["name"] = name
        if parent_id is not None:
            body["parent_id"] = str(parent_id)
        await self._base.request("POST", "group", json=body)
        logger.info("WRITE_OP group_update group_id=%s", group_id)

    async def delete(self, group_id: int) -> None:
        await self._base.request("DELETE", "group", json={"group_id": group_id})
        logger.info("WRITE_OP group_delete group_id=%s", group_id)
