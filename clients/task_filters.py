"""Task visibility resolution.

Given the ``GET tasks`` mapping (task-id -> task record, each with a
``users`` access map and a ``parent_id`` pointer) and a :class:`Principal`,
decide which tasks are shown and which ones the principal may track time on.

Rules:
    * Archived tasks are never returned.
    * Self: a task is trackable when ``user_access_type`` is an operational
      level (see ``TRACKABLE_ACCESS_LEVELS``).
    * Other user: a task is trackable when the user is listed in ``users`` on
      the task or on any ancestor.
    * Breadcrumb mode off: only trackable tasks are returned, flagged
      ``trackable=True``; the flag is never set to ``False``.
    * Breadcrumb mode on: self sees every task; another user additionally
      sees tasks whose subtree contains a task listing them.  Every returned
      task carries ``trackable``.

Pure functions; no I/O.  Walks are iterative and tolerate cyclic or
dangling ``parent_id`` links.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from _constants import TRACKABLE_ACCESS_LEVELS
from clients._base import to_int

__all__ = [
    "Principal",
    "normalize_task_map",
    "resolve_visible_tasks",
]

logger = logging.getLogger("timecamp_mcp.client")

TRACKABLE_KEY = "trackable"


@dataclass(frozen=True)
class Principal:
    """Who a visibility query runs for.

    ``target_id`` is ``None`` for self, and for an identifier that could not
    be resolved to a numeric user id.
    """

    is_self: bool
    target_id: str | None = None

    @classmethod
    def me(cls) -> Principal:
        return cls(is_self=True)

    @classmethod
    def user(cls, user_id: str | int | None) -> Principal:
        return cls(is_self=False, target_id=None if user_id is None else str(user_id))


def normalize_task_map(raw: Any) -> dict[str, Any]:
    """Coerce a ``GET tasks`` payload to a ``{task_id: task}`` mapping.

    The service answers with a keyed object for non-empty results and an
    empty array otherwise; some proxies return a plain list of records.
    """
    if isinstance(raw, Mapping):
        return {str(key): value for key, value in raw.items()}
    if isinstance(raw, list):
        out: dict[str, Any] = {}
        for item in raw:
            if isinstance(item, Mapping) and to_int(item.get("task_id"), None) is not None:
                out[str(to_int(item["task_id"]))] = item
        return out
    return {}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _index_tasks(task_map: Mapping[str, Any]) -> dict[int, Mapping[str, Any]]:
    """Key well-formed tasks by integer id, skipping malformed entries."""
    tasks: dict[int, Mapping[str, Any]] = {}
    for key, task in task_map.items():
        if not isinstance(task, Mapping):
            logger.debug("Skipping malformed task entry %r", key)
            continue
        task_id = to_int(task.get("task_id", key), None)
        if task_id is None:
            logger.debug("Skipping task entry %r without a numeric task_id", key)
            continue
        tasks[task_id] = task
    return tasks


def _parent_of(task: Mapping[str, Any]) -> int:
    return to_int(task.get("parent_id"), 0) or 0


def _lists_user(task: Mapping[str, Any], user_id: str) -> bool:
    users = task.get("users")
    if isinstance(users, Mapping):
        return user_id in users or (user_id.isdigit() and int(user_id) in users)
    if isinstance(users, list):
        return user_id in (str(u) for u in users)
    return False


def _has_access_in_hierarchy(
    task_id: int,
    tasks: Mapping[int, Mapping[str, Any]],
    user_id: str,
) -> bool:
    """Walk from *task_id* up through its ancestors looking for *user_id*."""
    visited: set[int] = set()
    current = task_id
    while current and current not in visited:
        task = tasks.get(current)
        if task is None:
            return False
        visited.add(current)
        if _lists_user(task, user_id):
            return True
        current = _parent_of(task)
    return False


def _build_children_map(tasks: Mapping[int, Mapping[str, Any]]) -> dict[int, list[int]]:
    children: dict[int, list[int]] = {}
    for task_id, task in tasks.items():
        children.setdefault(_parent_of(task), []).append(task_id)
    return children


def _has_access_in_subtree(
    root_id: int,
    tasks: Mapping[int, Mapping[str, Any]],
    children: Mapping[int, list[int]],
    user_id: str,
    memo: dict[int, bool],
) -> bool:
    """Depth-first search of *root_id*'s subtree for a task listing *user_id*.

    Results are memoised per task id in *memo*, which the caller shares
    across one query.  Tasks already on the current path are skipped; a task
    whose subtree loops back onto the path stays unsettled until the walk
    from *root_id* completes, so it is never cached from a partial answer.
    """
    if root_id in memo:
        return memo[root_id]
    if _lists_user(tasks[root_id], user_id):
        memo[root_id] = True
        return True

    stack: list[tuple[int, Any]] = [(root_id, iter(children.get(root_id, ())))]
    on_path: set[int] = {root_id}
    unsettled: set[int] = set()
    while stack:
        node_id, pending = stack[-1]
        descended = False
        for child_id in pending:
            if child_id in on_path:
                unsettled.add(node_id)
                continue
            known = memo.get(child_id)
            if known is False:
                continue
            if known or _lists_user(tasks[child_id], user_id):
                memo[child_id] = True
                # Every node on the path is an ancestor of the hit.
                for path_id, _ in stack:
                    memo[path_id] = True
                return True
            stack.append((child_id, iter(children.get(child_id, ()))))
            on_path.add(child_id)
            descended = True
            break
        if not descended:
            stack.pop()
            on_path.discard(node_id)
            if node_id in unsettled:
                if stack:
                    unsettled.add(stack[-1][0])
            else:
                memo[node_id] = False

    # The whole walk found nothing, loops included.
    for node_id in unsettled:
        memo[node_id] = False
    return memo[root_id]


def _can_track(
    task_id: int,
    task: Mapping[str, Any],
    tasks: Mapping[int, Mapping[str, Any]],
    principal: Principal,
) -> bool:
    if principal.is_self:
        return to_int(task.get("user_access_type"), 0) in TRACKABLE_ACCESS_LEVELS
    if not principal.target_id:
        return False
    return _has_access_in_hierarchy(task_id, tasks, principal.target_id)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_visible_tasks(
    task_map: Mapping[str, Any],
    principal: Principal,
    include_full_breadcrumb: bool = True,
) -> list[dict[str, Any]]:
    """Return the tasks *principal* can see, annotated with ``trackable``.

    The input is not modified: each returned task is a shallow copy without
    its ``tags`` field.  Result order is unspecified.
    """
    tasks = _index_tasks(task_map)

    check_subtree = (
        include_full_breadcrumb and not principal.is_self and bool(principal.target_id)
    )
    children = _build_children_map(tasks) if check_subtree else {}
    memo: dict[int, bool] = {}

    visible: list[dict[str, Any]] = []
    for task_id, task in tasks.items():
        if to_int(task.get("archived"), 0) != 0:
            continue

        can_track = _can_track(task_id, task, tasks, principal)
        if not include_full_breadcrumb and not can_track:
            continue

        if not principal.is_self and include_full_breadcrumb and not can_track:
            if not check_subtree:
                continue
            if not _has_access_in_subtree(
                task_id, tasks, children, principal.target_id or "", memo
            ):
                continue

        item = {key: value for key, value in task.items() if key != "tags"}
        item[TRACKABLE_KEY] = can_track
        visible.append(item)

    return visible
