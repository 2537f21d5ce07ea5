"""Authorization decisions for projects and tasks.

Both guards are pure: the caller resolves the project role (see
``app.rbac.membership``) and loads the task before asking. A denial is a
normal return value, ``Deny(reason)``; turning it into an HTTP response is the
route layer's job (``app.rbac.deps.enforce``).
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.rbac.perms import (
    PROJECT_MIN_ROLE,
    TASK_BYPASS,
    TASK_MIN_ROLE,
    ProjectOperation,
    TaskOperation,
)
from app.rbac.roles import Role, meets_minimum

class DenyReason(str, Enum):
    not_a_member = "not-a-member"
    insufficient_role = "insufficient-role"
    owner_only = "owner-only"

@dataclass(frozen=True)
class Allow:
    allowed = True

    def __bool__(self) -> bool:
        return True

@dataclass(frozen=True)
class Deny:
    reason: DenyReason
    allowed = False

    def __bool__(self) -> bool:
        return False

Decision = Allow | Deny

ALLOW = Allow()

def check_project(role: Role | str | None, operation: ProjectOperation | str) -> Decision:
    operation = ProjectOperation(operation)
    if role is None:
        return Deny(DenyReason.not_a_member)

    minimum = PROJECT_MIN_ROLE[operation]
    if meets_minimum(role, minimum):
        return ALLOW
    if minimum is Role.owner:
        return Deny(DenyReason.owner_only)
    return Deny(DenyReason.insufficient_role)

def task_relations(task: Any, acting_user_id: uuid.UUID | None, is_owner: bool = False) -> frozenset[str]:
    """Identity relations between the acting user and a task (or its sub-resource)."""
    if acting_user_id is None:
        return frozenset()

    found = set()
    if task.reporter_id == acting_user_id:
        found.add("reporter")
    if task.assignee_id is not None and task.assignee_id == acting_user_id:
        found.add("assignee")
    if is_owner:
        found.add("author")
    return frozenset(found)

def check_task(
    role: Role | str | None,
    operation: TaskOperation | str,
    task: Any,
    acting_user_id: uuid.UUID | None,
    is_owner: bool = False,
) -> Decision:
    """Decide a task operation.

    ``task`` only needs ``reporter_id`` and ``assignee_id``. ``is_owner`` says
    whether the acting user wrote the comment/attachment being changed; the
    guard can't look that up itself.

    Precedence: no role denies everything, then a corrupt role or missing task
    denies everything, then identity relations and the minimum role.
    """
    operation = TaskOperation(operation)
    if role is None:
        return Deny(DenyReason.not_a_member)

    role = Role(role)
    if role is Role.unknown or task is None:
        return Deny(DenyReason.insufficient_role)

    if TASK_BYPASS[operation] & task_relations(task, acting_user_id, is_owner):
        return ALLOW

    minimum = TASK_MIN_ROLE[operation]
    if minimum is not None and role.at_least(minimum):
        return ALLOW
    return Deny(DenyReason.insufficient_role)
