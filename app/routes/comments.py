from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.comment import Comment
from app.rbac.deps import CommentContext, TaskContext, require_comment, require_task
from app.rbac.perms import TaskOperation
from app.schemas.comments import CommentIn, CommentOut
from app.services.notifications import notify_task_commented

router = APIRouter(tags=["comments"])

@router.post("/tasks/{task_id}/comments", response_model=CommentOut)
def add_comment(
    payload: CommentIn,
    ctx: TaskContext = Depends(require_task(TaskOperation.comment)),
    db: Session = Depends(get_db),
) -> CommentOut:
    c = Comment(task_id=ctx.task.id, user_id=ctx.user.id, content=payload.content)
    db.add(c)
    notify_task_commented(db, ctx.task, ctx.user)
    db.commit()
    db.refresh(c)
    return CommentOut.model_validate(c)

@router.get("/tasks/{task_id}/comments", response_model=list[CommentOut])
def list_comments(
    limit: int = 50,
    offset: int = 0,
    ctx: TaskContext = Depends(require_task(TaskOperation.read)),
    db: Session = Depends(get_db),
) -> list[CommentOut]:
    q = (
        select(Comment)
        .where(Comment.task_id == ctx.task.id)
        .order_by(Comment.created_at)
        .offset(max(offset, 0))
        .limit(min(max(limit, 1), 200))
    )
    return [CommentOut.model_validate(c) for c in db.scalars(q).all()]

@router.patch("/comments/{comment_id}", response_model=CommentOut)
def update_comment(
    payload: CommentIn,
    ctx: CommentContext = Depends(require_comment(TaskOperation.update_comment)),
    db: Session = Depends(get_db),
) -> CommentOut:
    c = ctx.comment
    c.content = payload.content
    c.is_edited = True
    db.add(c)
    db.commit()
    db.refresh(c)
    return CommentOut.model_validate(c)

@router.delete("/comments/{comment_id}")
def delete_comment(
    ctx: CommentContext = Depends(require_comment(TaskOperation.delete_comment)),
    db: Session = Depends(get_db),
) -> dict:
    db.delete(ctx.comment)
    db.commit()
    return {"deleted": True}
