import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.tokens import now_utc
from app.db import get_db
from app.models.enums import TaskStatus
from app.models.project import Project
from app.models.task import Task
from app.rbac.deps import ProjectContext, TaskContext, get_resolver, require_project, require_task
from app.rbac.membership import MembershipResolver
from app.rbac.perms import ProjectOperation, TaskOperation
from app.schemas.tasks import TaskCreateIn, TaskOut, TaskUpdateIn
from app.services.notifications import notify_task_assigned
from app.services.storage import delete_task_tree, remove_files

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])

def _check_assignee(resolver: MembershipResolver, project: Project, assignee_id: uuid.UUID | None) -> None:
    if assignee_id is None:
        return
    if resolver.resolve(project, assignee_id) is None:
        raise HTTPException(status_code=400, detail="assignee is not a member of this project")

@router.post("/projects/{project_id}/tasks", response_model=TaskOut)
def create_task(
    payload: TaskCreateIn,
    ctx: ProjectContext = Depends(require_project(ProjectOperation.create_task)),
    db: Session = Depends(get_db),
    resolver: MembershipResolver = Depends(get_resolver),
) -> TaskOut:
    _check_assignee(resolver, ctx.project, payload.assignee_id)

    t = Task(project_id=ctx.project.id, reporter_id=ctx.user.id, **payload.model_dump())
    db.add(t)
    db.flush()
    notify_task_assigned(db, t, ctx.user)
    db.commit()
    db.refresh(t)
    return TaskOut.model_validate(t)

@router.get("/projects/{project_id}/tasks", response_model=list[TaskOut])
def list_tasks(
    status: TaskStatus | None = None,
    assignee_id: uuid.UUID | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    ctx: ProjectContext = Depends(require_project(ProjectOperation.read)),
    db: Session = Depends(get_db),
) -> list[TaskOut]:
    q = select(Task).where(Task.project_id == ctx.project.id)
    if status is not None:
        q = q.where(Task.status == status)
    if assignee_id is not None:
        q = q.where(Task.assignee_id == assignee_id)
    q = q.order_by(Task.created_at.desc(), Task.id).offset((page - 1) * limit).limit(limit)
    rows = db.scalars(q).all()
    return [TaskOut.model_validate(r) for r in rows]

@router.get("/tasks/{task_id}", response_model=TaskOut)
def get_task(ctx: TaskContext = Depends(require_task(TaskOperation.read))) -> TaskOut:
    return TaskOut.model_validate(ctx.task)

@router.patch("/tasks/{task_id}", response_model=TaskOut)
def update_task(
    payload: TaskUpdateIn,
    ctx: TaskContext = Depends(require_task(TaskOperation.update)),
    db: Session = Depends(get_db),
    resolver: MembershipResolver = Depends(get_resolver),
) -> TaskOut:
    t = ctx.task
    changes = payload.model_dump(exclude_unset=True)

    # allow explicit unassign by sending null
    reassigned = "assignee_id" in changes and changes["assignee_id"] != t.assignee_id
    if reassigned:
        _check_assignee(resolver, ctx.project, changes["assignee_id"])

    for field, value in changes.items():
        if value is None and field in {"title", "status", "priority"}:
            continue
        setattr(t, field, value)

    if "status" in changes and changes["status"] is not None:
        t.completed_at = now_utc() if t.status == TaskStatus.completed else None

    if reassigned:
        notify_task_assigned(db, t, ctx.user)

    db.add(t)
    db.commit()
    db.refresh(t)
    return TaskOut.model_validate(t)

@router.delete("/tasks/{task_id}")
def delete_task(
    ctx: TaskContext = Depends(require_task(TaskOperation.delete)),
    db: Session = Depends(get_db),
) -> dict:
    task_id = ctx.task.id
    paths = delete_task_tree(db, ctx.task)
    db.commit()
    remove_files(paths)
    logger.info(f"User {ctx.user.id} deleted task {task_id}")
    return {"deleted": True}
