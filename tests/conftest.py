"""Pytest configuration for TimeCamp MCP tests.

Sets required environment variables before any test module imports server.py,
which loads the enabled tool domains at module level.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, patch

os.environ.setdefault("TIMECAMP_API_KEY", "test-api-key")
os.environ.setdefault("ENABLED_DOMAINS", "tasks,timer,entries")

import pytest
import pytest_asyncio

from clients._base import BaseTimeCampClient

# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

BASE_URL = "https://app.timecamp.test/third_party/api"


@pytest_asyncio.fixture
async def base_client() -> AsyncGenerator[BaseTimeCampClient, None]:
    c = BaseTimeCampClient("test-api-key", BASE_URL, client_name="test-client")
    yield c
    await c.close()


@pytest.fixture
def no_sleep():
    """Patch out retry/poll delays; yields the mock to inspect awaited delays."""
    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep
