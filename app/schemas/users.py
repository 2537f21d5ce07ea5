import uuid
from pydantic import BaseModel, ConfigDict, Field

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str | None

class UserUpdateIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)

class UserStatsOut(BaseModel):
    total_projects: int
    projects_as_owner: int
    total_teams: int
    teams_as_leader: int
    assigned_tasks: int
    completed_tasks: int
