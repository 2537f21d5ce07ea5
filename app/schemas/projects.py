import uuid
from datetime import date
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import Priority, ProjectStatus
from app.rbac.roles import TEAM_ROLES, Role

class ProjectCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    team_id: uuid.UUID | None = None
    status: ProjectStatus = ProjectStatus.planning
    priority: Priority = Priority.medium
    start_date: date | None = None
    end_date: date | None = None

class ProjectUpdateIn(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    start_date: date | None = None
    end_date: date | None = None

class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    status: ProjectStatus
    priority: Priority
    owner_id: uuid.UUID
    team_id: uuid.UUID | None
    start_date: date | None
    end_date: date | None

class ProjectDetailOut(ProjectOut):
    my_role: Role

class ProjectMemberIn(BaseModel):
    user_id: uuid.UUID
    role: Role = Role.member

    @field_validator("role")
    @classmethod
    def _team_role_only(cls, v: Role) -> Role:
        if v not in TEAM_ROLES:
            raise ValueError("role must be one of admin, member, viewer")
        return v

class ProjectMemberOut(BaseModel):
    user_id: uuid.UUID
    email: str
    name: str | None
    role: Role
