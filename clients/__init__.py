"""Client registry for the TimeCamp domain clients.

Provides get_registry() / set_registry() so the server lifespan owns a single
registry and tests can inject mocks via set_registry().
"""

from __future__ import annotations

from dataclasses import dataclass, field

from clients._base import BaseTimeCampClient
from clients.billing_rates import BillingRatesClient
from clients.custom_fields import CustomFieldsClient
from clients.groups import GroupsClient
from clients.tags import TagsClient
from clients.tasks import TasksClient
from clients.time_entries import TimeEntriesClient
from clients.timer import TimerClient
from clients.user import UserClient
from clients.users import UsersClient

__all__ = ["TimeCampClientRegistry", "get_registry", "set_registry"]


@dataclass
class TimeCampClientRegistry:
    """Holds domain client instances sharing one base client."""

    base: BaseTimeCampClient
    user: UserClient = field(init=False)
    users: UsersClient = field(init=False)
    tasks: TasksClient = field(init=False)
    timer: TimerClient = field(init=False)
    time_entries: TimeEntriesClient = field(init=False)
    tags: TagsClient = field(init=False)
    billing_rates: BillingRatesClient = field(init=False)
    groups: GroupsClient = field(init=False)
    custom_fields: CustomFieldsClient = field(init=False)

    def __post_init__(self) -> None:
        self.user = UserClient(self.base)
        self.users = UsersClient(self.base, self.user)
        self.tasks = TasksClient(self.base, self.user)
        self.timer = TimerClient(self.base)
        self.time_entries = TimeEntriesClient(self.base)
        self.tags = TagsClient(self.base)
        self.billing_rates = BillingRatesClient(self.base)
        self.groups = GroupsClient(self.base)
        self.custom_fields = CustomFieldsClient(self.base)

    async def close(self) -> None:
        await self.base.close()


_registry: TimeCampClientRegistry | None = None


def get_registry() -> TimeCampClientRegistry:
    """Return the active registry, or raise if not initialized."""
    if _registry is None:
        raise RuntimeError("TimeCampClientRegistry not initialized. Server lifespan has not started.")
    return _registry


def set_registry(registry: TimeCampClientRegistry | None) -> None:
    """Set (or clear) the global registry. Used by lifespan and tests."""
    global _registry
    _registry = registry
