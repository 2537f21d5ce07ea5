import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.rbac.roles import TEAM_ROLES, Role

class TeamCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None

class TeamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    leader_id: uuid.UUID

class TeamMemberIn(BaseModel):
    user_id: uuid.UUID
    role: Role = Role.member

    @field_validator("role")
    @classmethod
    def _team_role_only(cls, v: Role) -> Role:
        if v not in TEAM_ROLES:
            raise ValueError("role must be one of admin, member, viewer")
        return v

class TeamMemberOut(BaseModel):
    user_id: uuid.UUID
    email: str
    name: str | None
    role: Role
    joined_at: datetime | None = None

class TeamUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
