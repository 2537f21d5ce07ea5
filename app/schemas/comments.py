import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class CommentIn(BaseModel):
    content: str = Field(min_length=1, max_length=10000)

class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    task_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    is_edited: bool
    created_at: datetime
