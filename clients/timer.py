"""Domain client for the TimeCamp timer (``POST timer`` with an ``action``)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from clients._base import BaseTimeCampClient, format_timecamp_date

__all__ = ["TimerClient"]

logger = logging.getLogger("timecamp_mcp.client")


class TimerClient:
    def __init__(self, base: BaseTimeCampClient) -> None:
        self._base = base

    async def start(
        self,
        task_id: int | None = None,
        started_at: datetime | str | None = None,
    ) -> Any:
        """Start a timer, optionally on *task_id*.  *started_at* defaults to now."""
        payload: dict[str, Any] = {
            "action": "start",
            "started_at": format_timecamp_date(started_at),
            "service": self._base.client_name,
        }
        if task_id is not None:
            payload["task_id"] = task_id
        logger.info("WRITE_OP timer_start task_id=%s", task_id)
        return await self._base.request("POST", "timer", json=payload)

    async def stop(self, stopped_at: datetime | str | None = None) -> Any:
        payload = {
            "action": "stop",
            "stopped_at": format_timecamp_date(stopped_at),
            "service": self._base.client_name,
        }
        logger.info("WRITE_OP timer_stop")
        return await self._base.request("POST", "timer", json=payload)

    async def status(self) -> Any:
        return await self._base.request(
            "POST", "timer", json={"action": "status", "service": self._base.client_name}
        )
