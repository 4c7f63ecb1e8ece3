"""Domain client for billing rates on tasks, users, task-user pairs and groups."""

from __future__ import annotations

from typing import Any

from clients._base import BaseTimeCampClient

__all__ = ["BillingRatesClient"]


class BillingRatesClient:
    """Every scope shares one shape: ``GET|POST <scope>/rate``."""

    def __init__(self, base: BaseTimeCampClient) -> None:
        self._base = base

    async def _get(self, scope: str, rate_type_id: str | None) -> Any:
        return await self._base.request("GET", f"{scope}/rate", params={"rate_id": rate_type_id})

    async def _set(
        self, scope: str, rate_type_id: int | str, value: float, add_date: str | None
    ) -> Any:
        body: dict[str, Any] = {"rateTypeId": rate_type_id, "value": value}
        if add_date is not None:
            body["addDate"] = add_date
        return await self._base.request("POST", f"{scope}/rate", json=body)

    async def get_task_rates(self, task_id: int, rate_type_id: str | None = None) -> Any:
        return await self._get(f"task/{task_id}", rate_type_id)

    async def set_task_rate(
        self, task_id: int, rate_type_id: int | str, value: float, add_date: str | None = None
    ) -> Any:
        return await self._set(f"task/{task_id}", rate_type_id, value, add_date)

    async def get_user_rates(self, user_id: int, rate_type_id: str | None = None) -> Any:
        return await self._get(f"user/{user_id}", rate_type_id)

    async def set_user_rate(
        self, user_id: int, rate_type_id: int | str, value: float, add_date: str | None = None
    ) -> Any:
        return await self._set(f"user/{user_id}", rate_type_id, value, add_date)

    async def get_task_user_rates(
        self, task_id: int, user_id: int, rate_type_id: str | None = None
    ) -> Any:
        return await self._get(f"task/{task_id}/user/{user_id}", rate_type_id)

    async def set_task_user_rate(
        self,
        task_id: int,
        user_id: int,
        rate_type_id: int | str,
        value: float,
        add_date: str | None = None,
    ) -> Any:
        return await self._set(f"task/{task_id}/user/{user_id}", rate_type_id, value, add_date)

    async def get_group_rates(self, group_id: int, rate_type_id: str | None = None) -> Any:
        return await self._get(f"group/{group_id}", rate_type_id)

    async def set_group_rate(
        self, group_id: int, rate_type_id: int | str, value: float, add_date: str | None = None
    ) -> Any:
        return await self._set(f"group/{group_id}", rate_type_id, value, add_date)
