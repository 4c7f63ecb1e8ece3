"""Tests for clients/users.py -- listing and the invite workflow."""

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from clients._base import BaseTimeCampClient, TimeCampAPIError
from clients.user import UserClient
from clients.users import InviteResolutionError, InviteResult, UsersClient

BASE_URL = "https://app.timecamp.test/third_party/api"
EMAIL = "new.person@example.com"


@pytest.fixture
def users(base_client: BaseTimeCampClient) -> UsersClient:
    return UsersClient(base_client, UserClient(base_client))


def _invited(email: str = EMAIL) -> dict:
    return {"statuses": {email: {"status": "Invite"}}}


# =========================================================================
# Listing
# =========================================================================


class TestListUsers:
    @respx.mock
    async def test_keyed_object_flattened(self, users: UsersClient) -> None:
        respx.get(f"{BASE_URL}/users").mock(
            return_value=httpx.Response(
                200, json={"1": {"user_id": "1", "email": "a@x"}, "2": {"user_id": "2"}}
            )
        )
        result = await users.list_users()
        assert [u["user_id"] for u in result] == ["1", "2"]

    @respx.mock
    async def test_with_custom_fields(self, users: UsersClient) -> None:
        respx.get(f"{BASE_URL}/users").mock(
            return_value=httpx.Response(200, json=[{"user_id": "12", "email": "a@x"}])
        )
        route = respx.get(f"{BASE_URL}/v3/custom-fields/values/resource/12/type/user").mock(
            return_value=httpx.Response(200, json={"data": [{"id": 3, "value": "x"}]})
        )
        result = await users.get_all_with_custom_fields()
        assert route.called
        assert result == [
            {"user_id": "12", "email": "a@x", "id": 12, "custom_fields": [{"id": 3, "value": "x"}]}
        ]


# =========================================================================
# Invite workflow
# =========================================================================


class TestInvite:
    @respx.mock
    async def test_member_found_on_second_poll(self, users: UsersClient, no_sleep) -> None:
        invite = respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        listing = respx.get(f"{BASE_URL}/group/5/user").mock(
            side_effect=[
                httpx.Response(200, json=[{"email": "other@example.com", "user_id": "1"}]),
                httpx.Response(200, json=[{"email": EMAIL, "user_id": "77"}]),
            ]
        )
        patch = respx.post(f"{BASE_URL}/user").mock(return_value=httpx.Response(200, json={}))

        result = await users.invite(EMAIL, name="New Person", group_id=5)

        assert result.user_id == "77"
        assert result.invited
        assert result.display_name_update_error is None
        assert invite.call_count == 1
        assert listing.call_count == 2
        assert patch.call_count == 1
        form = parse_qs(patch.calls.last.request.content.decode())
        assert form == {"display_name": ["New Person"], "user_id": ["77"]}
        no_sleep.assert_awaited_once_with(2.0)

    @respx.mock
    async def test_invite_body_carries_permission_defaults(
        self, users: UsersClient, no_sleep
    ) -> None:
        invite = respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        await users.invite(EMAIL, group_id=5)
        body = json.loads(invite.calls.last.request.content)
        assert body["email"] == [EMAIL]
        assert body["tt_global_admin"] == "0"
        assert body["can_view_rates"] == "0"
        assert body["add_to_all_projects"] == "0"

    @respx.mock
    async def test_custom_permissions_replace_defaults(
        self, users: UsersClient, no_sleep
    ) -> None:
        invite = respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        await users.invite(EMAIL, group_id=5, permissions={"can_view_rates": "1"})
        body = json.loads(invite.calls.last.request.content)
        assert body == {"email": [EMAIL], "can_view_rates": "1"}

    @respx.mock
    async def test_without_name_makes_single_call(self, users: UsersClient, no_sleep) -> None:
        invite = respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        listing = respx.get(f"{BASE_URL}/group/5/user")
        result = await users.invite(EMAIL, group_id=5)
        assert invite.call_count == 1
        assert not listing.called
        assert result.user_id is None
        assert result.statuses == {EMAIL: {"status": "Invite"}}

    @respx.mock
    async def test_failed_invite_status_skips_polling(self, users: UsersClient, no_sleep) -> None:
        respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json={"statuses": {EMAIL: {"status": False}}})
        )
        listing = respx.get(f"{BASE_URL}/group/5/user")
        result = await users.invite(EMAIL, name="New Person", group_id=5)
        assert not result.invited
        assert not listing.called

    @respx.mock
    async def test_root_group_resolved_from_profile(self, users: UsersClient, no_sleep) -> None:
        me = respx.get(f"{BASE_URL}/me").mock(
            return_value=httpx.Response(200, json={"user_id": "1", "root_group_id": "42"})
        )
        invite = respx.post(f"{BASE_URL}/group/42/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        result = await users.invite(EMAIL)
        assert me.call_count == 1
        assert invite.call_count == 1
        assert result.group_id == 42

    @respx.mock
    async def test_missing_root_group_rejected(self, users: UsersClient) -> None:
        respx.get(f"{BASE_URL}/me").mock(return_value=httpx.Response(200, json={"user_id": "1"}))
        with pytest.raises(ValueError, match="root_group_id"):
            await users.invite(EMAIL)

    async def test_blank_email_rejected(self, users: UsersClient) -> None:
        with pytest.raises(ValueError, match="email"):
            await users.invite("  ", group_id=5)

    @respx.mock
    async def test_member_never_found_raises(self, users: UsersClient, no_sleep) -> None:
        respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        listing = respx.get(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=[])
        )
        patch = respx.post(f"{BASE_URL}/user")
        with pytest.raises(InviteResolutionError) as excinfo:
            await users.invite(EMAIL, name="New Person", group_id=5, poll_attempts=3)
        assert listing.call_count == 3
        assert no_sleep.await_count == 2
        assert not patch.called
        assert excinfo.value.attempts == 3
        assert excinfo.value.result.invited
        assert "after 3 attempts" in str(excinfo.value)

    @respx.mock
    async def test_default_poll_budget(self, users: UsersClient, no_sleep) -> None:
        respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        listing = respx.get(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json={})
        )
        with pytest.raises(InviteResolutionError):
            await users.invite(EMAIL, name="New Person", group_id=5)
        assert listing.call_count == 10

    @respx.mock
    async def test_member_id_falls_back_to_id_field(self, users: UsersClient, no_sleep) -> None:
        respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        respx.get(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json={"9": {"email": EMAIL, "id": 9}})
        )
        respx.post(f"{BASE_URL}/user").mock(return_value=httpx.Response(200, json={}))
        result = await users.invite(EMAIL, name="New Person", group_id=5)
        assert result.user_id == "9"

    @respx.mock
    async def test_display_name_failure_is_recorded(self, users: UsersClient, no_sleep) -> None:
        respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        respx.get(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=[{"email": EMAIL, "user_id": "77"}])
        )
        patch = respx.post(f"{BASE_URL}/user").mock(
            return_value=httpx.Response(403, json={"message": "forbidden"})
        )
        result = await users.invite(EMAIL, name="New Person", group_id=5)
        assert patch.call_count == 1
        assert result.user_id == "77"
        assert result.display_name_update_error is not None
        assert "403" in result.display_name_update_error

    @respx.mock
    async def test_display_name_patch_retries_rate_limits(
        self, users: UsersClient, no_sleep
    ) -> None:
        respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        respx.get(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=[{"email": EMAIL, "user_id": "77"}])
        )
        patch = respx.post(f"{BASE_URL}/user").mock(return_value=httpx.Response(429))
        result = await users.invite(EMAIL, name="New Person", group_id=5)
        assert patch.call_count == 7
        assert "429" in (result.display_name_update_error or "")

    @respx.mock
    async def test_invite_call_retries_then_fails(self, users: UsersClient, no_sleep) -> None:
        invite = respx.post(f"{BASE_URL}/group/5/user").mock(return_value=httpx.Response(429))
        with pytest.raises(TimeCampAPIError) as excinfo:
            await users.invite(EMAIL, group_id=5)
        assert invite.call_count == 4
        assert excinfo.value.status_code == 429

    @respx.mock
    async def test_listing_error_propagates(self, users: UsersClient, no_sleep) -> None:
        respx.post(f"{BASE_URL}/group/5/user").mock(
            return_value=httpx.Response(200, json=_invited())
        )
        respx.get(f"{BASE_URL}/group/5/user").mock(return_value=httpx.Response(500))
        with pytest.raises(TimeCampAPIError):
            await users.invite(EMAIL, name="New Person", group_id=5)


class TestInviteResult:
    def test_to_dict(self) -> None:
        result = InviteResult(email=EMAIL, group_id=5, statuses={EMAIL: {"status": "Invite"}})
        assert result.to_dict() == {
            "email": EMAIL,
            "group_id": 5,
            "statuses": {EMAIL: {"status": "Invite"}},
            "user_id": None,
            "display_name_update_error": None,
        }

    def test_invited_requires_truthy_status(self) -> None:
        assert not InviteResult(email=EMAIL, group_id=5).invited
        assert not InviteResult(email=EMAIL, group_id=5, statuses={EMAIL: "Invite"}).invited
