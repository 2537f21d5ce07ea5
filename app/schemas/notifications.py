import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from app.models.enums import NotificationType

class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    data: dict | None
    is_read: bool
    created_at: datetime
