"""Domain client for tag lists and tags."""

from __future__ import annotations

from typing import Any

from clients._base import BaseTimeCampClient

__all__ = ["TagsClient"]

_TAG_LIST_FILTERS = ("task_id", "archived", "tags", "exclude_empty_tag_lists", "use_restrictions")


def _changes(name: str | None, archived: int | None) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if name is not None:
        body["name"] = name
    if archived is not None:
        body["archived"] = archived
    return body


class TagsClient:
    def __init__(self, base: BaseTimeCampClient) -> None:
        self._base = base

    # -- tag lists ----------------------------------------------------------

    async def get_tag_lists(self, **filters: Any) -> Any:
        """List tag lists.  Accepts task_id, archived, tags,
        exclude_empty_tag_lists and use_restrictions filters."""
        unknown = set(filters) - set(_TAG_LIST_FILTERS)
        if unknown:
            raise ValueError(f"Unknown tag list filters: {sorted(unknown)}")
        params = {key: str(value) for key, value in filters.items() if value is not None}
        return await self._base.request("GET", "tag_list", params=params)

    async def get_tag_list(self, tag_list_id: int) -> Any:
        return await self._base.request("GET", f"tag_list/{tag_list_id}")

    async def create_tag_list(self, name: str) -> Any:
        if not name:
            raise ValueError("Tag list name is required")
        return await self._base.request("POST", "tag_list", json={"name": name})

    async def update_tag_list(
        self, tag_list_id: int, *, name: str | None = None, archived: int | None = None
    ) -> Any:
        return await self._base.request(
            "PUT", f"tag_list/{tag_list_id}", json=_changes(name, archived)
        )

    async def get_tag_list_tags(self, tag_list_id: int) -> Any:
        return await self._base.request("GET", f"tag_list/{tag_list_id}/tags")

    # -- tags ---------------------------------------------------------------

    async def create_tag(self, tag_list_id: int, name: str) -> Any:
        if not name:
            raise ValueError("Tag name is required")
        return await self._base.request("POST", "tag", json={"list": tag_list_id, "name": name})

    async def get_tag(self, tag_id: int) -> Any:
        return await self._base.request("GET", f"tag/{tag_id}")

    async def update_tag(
        self, tag_id: int, *, name: str | None = None, archived: int | None = None
    ) -> Any:
        return await self._base.request("PUT", f"tag/{tag_id}", json=_changes(name, archived))
