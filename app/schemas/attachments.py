import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict

class AttachmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    task_id: uuid.UUID
    user_id: uuid.UUID
    original_name: str
    file_size: int
    mime_type: str
    created_at: datetime
