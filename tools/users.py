"""User MCP tools: listing and invitations."""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from _auth import tool_error_handler
from clients import get_registry
from clients.users import InviteResolutionError

logger = logging.getLogger("timecamp_mcp.server")

__all__ = ["register"]


@tool_error_handler("Failed to fetch users. Please try again.")
async def users_list() -> dict[str, Any]:
    """List users in the workspace."""
    users = await get_registry().users.list_users()
    return {"status": "success", "data": users, "count": len(users)}


@tool_error_handler("Failed to invite user. Please try again.")
async def users_invite(
    email: str,
    name: str | None = None,
    group_id: int | None = None,
) -> dict[str, Any]:
    """Invite a user to the workspace.

    Args:
        email: E-mail address to invite.
        name: Optional display name to set once the account exists.
        group_id: Target group; defaults to your root group.
    """
    if "@" not in email:
        raise ToolError("email must be an e-mail address")
    try:
        result = await get_registry().users.invite(email, name=name, group_id=group_id)
    except InviteResolutionError as exc:
        # Membership exists; only the display name could not be applied.
        logger.warning("Invite for %s created but user id unresolved", email)
        return {
            "status": "partial",
            "message": str(exc),
            "data": exc.result.to_dict(),
        }
    status = "success" if result.display_name_update_error is None else "partial"
    return {"status": status, "data": result.to_dict()}


def register(mcp: FastMCP) -> None:
    mcp.tool(users_list)
    mcp.tool(users_invite)
