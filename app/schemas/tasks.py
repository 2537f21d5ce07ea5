import uuid
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import Priority, TaskStatus

class TaskCreateIn(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    priority: Priority = Priority.medium
    due_date: date | None = None
    assignee_id: uuid.UUID | None = None

class TaskUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    due_date: date | None = None
    assignee_id: uuid.UUID | None = None

class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str | None
    status: TaskStatus
    priority: Priority
    due_date: date | None
    reporter_id: uuid.UUID
    assignee_id: uuid.UUID | None
    completed_at: datetime | None
