import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.auth.tokens import now_utc
from app.db import get_db
from app.models.notification import Notification
from app.models.user import User
from app.schemas.notifications import NotificationOut

router = APIRouter(prefix="/notifications", tags=["notifications"])

def _own_notification(db: Session, notification_id: uuid.UUID, user: User) -> Notification:
    n = db.get(Notification, notification_id)
    # someone else's notification looks exactly like a missing one
    if n is None or n.user_id != user.id:
        raise HTTPException(status_code=404, detail="notification not found")
    return n

@router.get("", response_model=list[NotificationOut])
def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    q = select(Notification).where(Notification.user_id == user.id)
    if unread_only:
        q = q.where(Notification.is_read.is_(False))
    q = q.order_by(Notification.created_at.desc()).limit(min(max(limit, 1), 200))
    return [NotificationOut.model_validate(n) for n in db.scalars(q).all()]

@router.get("/unread-count")
def unread_count(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    count = db.scalar(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user.id, Notification.is_read.is_(False))
    )
    return {"count": count or 0}

@router.post("/read-all")
def mark_all_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user.id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=now_utc())
    )
    db.commit()
    return {"updated": result.rowcount}

@router.post("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> NotificationOut:
    n = _own_notification(db, notification_id, user)
    if not n.is_read:
        n.is_read = True
        n.read_at = now_utc()
        db.add(n)
        db.commit()
        db.refresh(n)
    return NotificationOut.model_validate(n)

@router.delete("/{notification_id}")
def delete_notification(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    db.delete(_own_notification(db, notification_id, user))
    db.commit()
    return {"deleted": True}
