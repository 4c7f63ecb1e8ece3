"""Domain client for workspace users, including the invite workflow.

Uses composition: holds a reference to :class:`BaseTimeCampClient` for HTTP
transport and a :class:`UserClient` for the caller's own profile.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from _constants import (
    DEFAULT_RETRY_DELAY_MS,
    DISPLAY_NAME_RETRY_ATTEMPTS,
    INVITE_PERMISSION_DEFAULTS,
    INVITE_POLL_ATTEMPTS,
    INVITE_POLL_DELAY_MS,
    INVITE_RETRY_ATTEMPTS,
)
from clients._base import BaseTimeCampClient, RetryPolicy, TimeCampError, to_int, to_records
from clients.custom_fields import ResourceCustomFields
from clients.user import UserClient

__all__ = ["InviteResolutionError", "InviteResult", "UsersClient"]

logger = logging.getLogger("timecamp_mcp.client")

INVITE_RETRY = RetryPolicy(max_attempts=INVITE_RETRY_ATTEMPTS, delay_ms=DEFAULT_RETRY_DELAY_MS)
DISPLAY_NAME_RETRY = RetryPolicy(
    max_attempts=DISPLAY_NAME_RETRY_ATTEMPTS, delay_ms=DEFAULT_RETRY_DELAY_MS
)


@dataclass
class InviteResult:
    """Outcome of :meth:`UsersClient.invite`.

    ``display_name_update_error`` holds the error message when the display
    name patch failed; the membership itself was still created.
    """

    email: str
    group_id: int
    statuses: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None
    display_name_update_error: str | None = None
    raw: Any = None

    @property
    def invited(self) -> bool:
        entry = self.statuses.get(self.email)
        return isinstance(entry, Mapping) and bool(entry.get("status"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "group_id": self.group_id,
            "statuses": self.statuses,
            "user_id": self.user_id,
            "display_name_update_error": self.display_name_update_error,
        }


class InviteResolutionError(TimeCampError):
    """The invited member never showed up in the group listing.

    The membership was created; ``result`` carries the creation statuses.
    """

    def __init__(self, email: str, attempts: int, result: InviteResult) -> None:
        self.email = email
        self.attempts = attempts
        self.result = result
        super().__init__(
            f"Unable to resolve user_id for invited user {email} after {attempts} attempts."
        )


class UsersClient:
    """Workspace user listing and invitations."""

    def __init__(self, base: BaseTimeCampClient, user: UserClient) -> None:
        self._base = base
        self._user = user

    # -- read methods -------------------------------------------------------

    async def get_all(self) -> Any:
        """Return the raw ``GET users`` payload (keyed object or list)."""
        return await self._base.request("GET", "users")

    async def list_users(self) -> list[dict[str, Any]]:
        return to_records(await self.get_all())

    async def get_all_with_custom_fields(self) -> list[dict[str, Any]]:
        """List users, each enriched with its ``custom_fields`` values."""
        users = await self.list_users()

        async def enrich(user: dict[str, Any]) -> dict[str, Any]:
            user_id = _user_numeric_id(user)
            values = await self.custom_fields(user_id).get_all()
            fields = values.get("data") if isinstance(values, Mapping) else values
            return {**user, "id": user_id, "custom_fields": fields}

        return list(await asyncio.gather(*(enrich(user) for user in users)))

    def custom_fields(self, user_id: int) -> ResourceCustomFields:
        return ResourceCustomFields(self._base, "user", user_id)

    # -- invite workflow ----------------------------------------------------

    async def invite(
        self,
        email: str,
        name: str | None = None,
        group_id: int | None = None,
        *,
        permissions: Mapping[str, str] | None = None,
        poll_attempts: int = INVITE_POLL_ATTEMPTS,
        poll_delay_ms: int = INVITE_POLL_DELAY_MS,
    ) -> InviteResult:
        """Invite *email* into a group and optionally set its display name.

        Steps:
        1. Resolve the target group (the caller's ``root_group_id`` when
           *group_id* is not given).
        2. Create the membership, retrying on rate limits.
        3. When *name* is given and the invite succeeded, poll the group
           listing until the new member appears.
        4. Patch the display name (form-encoded), with its own retry budget.

        Raises:
            InviteResolutionError: The member could not be found after
                *poll_attempts* listings.
            TimeCampError: The group lookup, invite or a listing call failed.
        """
        email = (email or "").strip()
        if not email:
            raise ValueError("email is required")
        if poll_attempts < 1:
            raise ValueError("poll_attempts must be >= 1")

        target_group = group_id
        if not target_group:
            profile = await self._user.get()
            target_group = to_int(profile.get("root_group_id"), None)
            if not target_group:
                raise ValueError("Could not determine a group: current user has no root_group_id")

        body: dict[str, Any] = {"email": [email]}
        body.update(INVITE_PERMISSION_DEFAULTS if permissions is None else permissions)

        response = await self._base.request(
            "POST", f"group/{target_group}/user", json=body, retry=INVITE_RETRY
        )
        statuses = response.get("statuses") if isinstance(response, Mapping) else None
        result = InviteResult(
            email=email,
            group_id=int(target_group),
            statuses=dict(statuses) if isinstance(statuses, Mapping) else {},
            raw=response,
        )
        logger.info(
            "WRITE_OP invite group_id=%s email=%s invited=%s",
            target_group,
            email,
            result.invited,
        )

        if not name or not result.invited:
            return result

        user_id = await self._find_member_id(target_group, email, poll_attempts, poll_delay_ms)
        if user_id is None:
            raise InviteResolutionError(email, poll_attempts, result)
        result.user_id = user_id

        try:
            await self._base.request(
                "POST",
                "user",
                form={"display_name": name, "user_id": user_id},
                retry=DISPLAY_NAME_RETRY,
            )
        except TimeCampError as exc:
            logger.warning("Display name update failed for user_id=%s: %s", user_id, exc)
            result.display_name_update_error = str(exc)

        return result

    async def _find_member_id(
        self,
        group_id: int,
        email: str,
        attempts: int,
        delay_ms: int,
    ) -> str | None:
        """Poll ``GET group/<id>/user`` until a member with *email* shows up."""
        for attempt in range(attempts):
            if attempt > 0:
                await asyncio.sleep(delay_ms / 1000)
            members = to_records(await self._base.request("GET", f"group/{group_id}/user"))
            for member in members:
                if member.get("email") != email:
                    continue
                raw_id = member.get("user_id")
                if raw_id is None:
                    raw_id = member.get("id")
                if raw_id is not None and str(raw_id):
                    logger.debug("Resolved %s to user_id=%s on attempt %d", email, raw_id, attempt + 1)
                    return str(raw_id)
        logger.warning("Invited user %s not listed after %d attempts", email, attempts)
        return None


def _user_numeric_id(user: Mapping[str, Any]) -> int:
    """Pick the numeric id out of a users-listing record."""
    raw = user.get("id")
    if isinstance(raw, int) and not isinstance(raw, bool) and raw > 0:
        return raw
    for key in ("user_id", "userId", "userID", "uid", "id"):
        value = to_int(user.get(key), None)
        if value is not None and value > 0:
            return value
    return 0
