"""Domain client for the authenticated user's own profile."""

from __future__ import annotations

from typing import Any

from clients._base import BaseTimeCampClient

__all__ = ["UserClient"]


class UserClient:
    """Operations on the current user (``GET me``)."""

    def __init__(self, base: BaseTimeCampClient) -> None:
        self._base = base

    async def get(self) -> dict[str, Any]:
        """Return the caller's profile, including ``user_id`` and ``root_group_id``."""
        data = await self._base.request("GET", "me")
        return data if isinstance(data, dict) else {}

    async def get_user_id(self) -> str | None:
        user_id = (await self.get()).get("user_id")
        return None if user_id is None else str(user_id)
