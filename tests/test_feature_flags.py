"""Tests for the feature flag domain loader (tools/__init__.py)."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from fastmcp import Client, FastMCP


async def _get_tool_names(mcp: FastMCP) -> list[str]:
    """Extract registered tool names from a FastMCP instance."""
    async with Client(mcp) as client:
        return [tool.name for tool in await client.list_tools()]


class TestLoadDomains:
    async def test_server_loads_configured_domains(self) -> None:
        """conftest enables tasks, timer and entries."""
        import server as srv

        assert srv.ENABLED_DOMAINS == ["tasks", "timer", "entries"]
        tool_names = await _get_tool_names(srv.mcp)
        assert "tasks_list_visible" in tool_names
        assert "entries_create" in tool_names
        assert not any(name.startswith("users_") for name in tool_names)

    def test_empty_enabled_domains_exits(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        with patch.dict(os.environ, {"ENABLED_DOMAINS": ""}):
            with pytest.raises(SystemExit):
                load_domains(test_mcp)

    def test_only_unknown_domains_exits(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        with patch.dict(os.environ, {"ENABLED_DOMAINS": "nonexistent"}):
            with pytest.raises(SystemExit):
                load_domains(test_mcp)

    def test_unknown_domain_skipped(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        with patch.dict(os.environ, {"ENABLED_DOMAINS": "timer,nonexistent"}):
            assert load_domains(test_mcp) == ["timer"]

    def test_sensitive_domain_without_flag_exits(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        # Ensure ENABLE_SENSITIVE_DOMAINS is not set
        env = os.environ.copy()
        env.pop("ENABLE_SENSITIVE_DOMAINS", None)
        env["ENABLED_DOMAINS"] = "tasks,users"
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(SystemExit):
                load_domains(test_mcp)

    async def test_sensitive_domain_with_flag_loads(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        with patch.dict(
            os.environ, {"ENABLED_DOMAINS": "users", "ENABLE_SENSITIVE_DOMAINS": "true"}
        ):
            assert load_domains(test_mcp) == ["users"]
        assert sorted(await _get_tool_names(test_mcp)) == ["users_invite", "users_list"]

    async def test_duplicate_domains_registered_once(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        with patch.dict(os.environ, {"ENABLED_DOMAINS": "timer, TIMER ,timer"}):
            loaded = load_domains(test_mcp)
        assert loaded == ["timer"]
        assert sorted(await _get_tool_names(test_mcp)) == [
            "timer_start",
            "timer_status",
            "timer_stop",
        ]

    async def test_tool_count_with_tasks_only(self) -> None:
        from tools import load_domains

        test_mcp = FastMCP(name="test")
        with patch.dict(os.environ, {"ENABLED_DOMAINS": "tasks"}):
            loaded = load_domains(test_mcp)
        assert loaded == ["tasks"]
        assert len(await _get_tool_names(test_mcp)) == 3
