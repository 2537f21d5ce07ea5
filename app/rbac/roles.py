from __future__ import annotations

from enum import Enum

class Role(str, Enum):
    """Project role, ordered viewer < member < admin < owner.

    Stored role strings come from the database as free text. Only the exact
    lowercase values are trusted; anything else (``"ADMIN"``, ``" owner "``,
    garbage) parses to ``Role.unknown`` which ranks below ``viewer`` so every
    minimum-role check fails closed instead of raising.
    """

    unknown = "unknown"
    viewer = "viewer"
    member = "member"
    admin = "admin"
    owner = "owner"

    @classmethod
    def _missing_(cls, value: object) -> Role:
        return cls.unknown

    @property
    def rank(self) -> int:
        return _RANK[self]

    def at_least(self, minimum: Role) -> bool:
        return self.rank >= minimum.rank

    def __lt__(self, other: object) -> bool:
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return self.rank >= other.rank

def _coerce(value: object) -> Role | None:
    # plain strings compare by rank too, never by str ordering
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        return Role(value)
    return None

_RANK: dict[Role, int] = {
    Role.unknown: -1,
    Role.viewer: 0,
    Role.member: 1,
    Role.admin: 2,
    Role.owner: 3,
}

# roles that can be stored on a team membership row (owner comes from project.owner_id)
TEAM_ROLES = (Role.admin, Role.member, Role.viewer)

def meets_minimum(value: Role | str | None, minimum: Role) -> bool:
    if value is None:
        return False
    return Role(value).at_least(minimum)
