"""Resolve a user's effective role in a project.

Two sources feed the role: direct ownership (``project.owner_id``) and the
project's team, where each member row carries a stored role string. Ownership
is checked first and always wins, so a stale team row can never demote the
owner.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from app.models.team import TeamMember
from app.rbac.roles import Role

logger = logging.getLogger(__name__)

# (team_id, user_id) -> membership row with a ``role`` attribute, or None
TeamMemberLookup = Callable[[uuid.UUID, uuid.UUID], Any]

def resolve_role(project: Any, user_id: uuid.UUID, find_team_member: TeamMemberLookup) -> Role | None:
    """Return the user's role in ``project`` or None when there is no relation.

    ``project`` must already be loaded; existence is not checked here.
    """
    if project.owner_id == user_id:
        return Role.owner

    if project.team_id is None:
        return None

    member = find_team_member(project.team_id, user_id)
    if member is None:
        return None

    stored = getattr(member, "role", None)
    if not stored:
        return Role.member

    role = Role(stored)
    if role is Role.unknown:
        logger.warning(
            f"Unrecognised role {stored!r} for user {user_id} in team {project.team_id}, treating as unknown"
        )
    return role

class MembershipResolver:
    def __init__(self, db: Session):
        self.db = db

    def find_team_member(self, team_id: uuid.UUID, user_id: uuid.UUID) -> TeamMember | None:
        return self.db.get(TeamMember, {"team_id": team_id, "user_id": user_id})

    def resolve(self, project: Any, user_id: uuid.UUID) -> Role | None:
        role = resolve_role(project, user_id, self.find_team_member)
        logger.debug(f"Resolved role {role} for user {user_id} in project {project.id}")
        return role

    def team_role(self, team_id: uuid.UUID, user_id: uuid.UUID) -> Role | None:
        member = self.find_team_member(team_id, user_id)
        if member is None:
            return None
        return Role(member.role or Role.member.value)
