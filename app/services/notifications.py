import logging
import uuid

from sqlalchemy.orm import Session

from app.models.enums import NotificationType
from app.models.notification import Notification
from app.models.task import Task
from app.models.user import User

logger = logging.getLogger(__name__)

def notify(
    db: Session,
    user_id: uuid.UUID,
    type: NotificationType,
    title: str,
    message: str,
    data: dict | None = None,
) -> Notification:
    # caller owns the transaction
    n = Notification(user_id=user_id, type=type, title=title, message=message, data=data)
    db.add(n)
    logger.debug(f"Queued {type.value} notification for user {user_id}")
    return n

def notify_task_assigned(db: Session, task: Task, actor: User) -> Notification | None:
    if task.assignee_id is None or task.assignee_id == actor.id:
        return None
    return notify(
        db,
        task.assignee_id,
        NotificationType.task_assigned,
        title="Task assigned",
        message=f"{actor.name or actor.email} assigned you \"{task.title}\"",
        data={"task_id": str(task.id), "project_id": str(task.project_id)},
    )

def notify_task_commented(db: Session, task: Task, actor: User) -> list[Notification]:
    recipients = {task.reporter_id, task.assignee_id} - {None, actor.id}
    return [
        notify(
            db,
            user_id,
            NotificationType.task_commented,
            title="New comment",
            message=f"{actor.name or actor.email} commented on \"{task.title}\"",
            data={"task_id": str(task.id), "project_id": str(task.project_id)},
        )
        for user_id in recipients
    ]
