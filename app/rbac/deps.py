import logging
import uuid

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.attachment import Attachment
from app.models.comment import Comment
from app.models.project import Project
from app.models.task import Task
from app.models.user import User
from app.rbac.guards import Decision, Deny, DenyReason, check_project, check_task
from app.rbac.membership import MembershipResolver
from app.rbac.perms import ProjectOperation, TaskOperation
from app.rbac.roles import Role

logger = logging.getLogger(__name__)

DENY_MESSAGES: dict[DenyReason, str] = {
    DenyReason.not_a_member: "access denied: not a member of this project",
    DenyReason.insufficient_role: "access denied: insufficient role for this operation",
    DenyReason.owner_only: "access denied: only the project owner can do this",
}

class AccessDenied(Exception):
    def __init__(self, reason: DenyReason, message: str | None = None):
        self.reason = reason
        self.message = message or DENY_MESSAGES[reason]
        super().__init__(self.message)

def enforce(decision: Decision, *, user_id: uuid.UUID, subject: str, operation: str) -> None:
    if isinstance(decision, Deny):
        logger.info(f"Denied {operation} on {subject} for user {user_id}: {decision.reason.value}")
        raise AccessDenied(decision.reason)
    logger.debug(f"Allowed {operation} on {subject} for user {user_id}")

def get_resolver(db: Session = Depends(get_db)) -> MembershipResolver:
    return MembershipResolver(db)

class ProjectContext:
    def __init__(self, project: Project, role: Role | None, user: User):
        self.project = project
        self.role = role
        self.user = user

class TaskContext(ProjectContext):
    def __init__(self, task: Task, project: Project, role: Role | None, user: User):
        super().__init__(project, role, user)
        self.task = task

def load_project(db: Session, project_id: uuid.UUID) -> Project:
    project = db.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="project not found")
    return project

def load_task_context(
    db: Session, resolver: MembershipResolver, task_id: uuid.UUID, user: User
) -> TaskContext:
    task = db.get(Task, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="task not found")
    project = load_project(db, task.project_id)
    return TaskContext(task=task, project=project, role=resolver.resolve(project, user.id), user=user)

def require_project(operation: ProjectOperation):
    operation = ProjectOperation(operation)

    def _checker(
        project_id: uuid.UUID,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        resolver: MembershipResolver = Depends(get_resolver),
    ) -> ProjectContext:
        project = load_project(db, project_id)
        role = resolver.resolve(project, user.id)
        enforce(
            check_project(role, operation),
            user_id=user.id,
            subject=f"project {project.id}",
            operation=operation.value,
        )
        return ProjectContext(project=project, role=role, user=user)

    return _checker

def require_task(operation: TaskOperation):
    operation = TaskOperation(operation)

    def _checker(
        task_id: uuid.UUID,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        resolver: MembershipResolver = Depends(get_resolver),
    ) -> TaskContext:
        ctx = load_task_context(db, resolver, task_id, user)
        enforce(
            check_task(ctx.role, operation, ctx.task, user.id),
            user_id=user.id,
            subject=f"task {ctx.task.id}",
            operation=operation.value,
        )
        return ctx

    return _checker

class CommentContext(TaskContext):
    def __init__(self, comment: Comment, ctx: TaskContext):
        super().__init__(ctx.task, ctx.project, ctx.role, ctx.user)
        self.comment = comment

class AttachmentContext(TaskContext):
    def __init__(self, attachment: Attachment, ctx: TaskContext):
        super().__init__(ctx.task, ctx.project, ctx.role, ctx.user)
        self.attachment = attachment

def require_comment(operation: TaskOperation):
    operation = TaskOperation(operation)

    def _checker(
        comment_id: uuid.UUID,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        resolver: MembershipResolver = Depends(get_resolver),
    ) -> CommentContext:
        comment = db.get(Comment, comment_id)
        if comment is None:
            raise HTTPException(status_code=404, detail="comment not found")
        ctx = load_task_context(db, resolver, comment.task_id, user)
        enforce(
            check_task(ctx.role, operation, ctx.task, user.id, is_owner=comment.user_id == user.id),
            user_id=user.id,
            subject=f"comment {comment.id}",
            operation=operation.value,
        )
        return CommentContext(comment, ctx)

    return _checker

def require_attachment(operation: TaskOperation):
    operation = TaskOperation(operation)

    def _checker(
        attachment_id: uuid.UUID,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        resolver: MembershipResolver = Depends(get_resolver),
    ) -> AttachmentContext:
        attachment = db.get(Attachment, attachment_id)
        if attachment is None:
            raise HTTPException(status_code=404, detail="attachment not found")
        ctx = load_task_context(db, resolver, attachment.task_id, user)
        enforce(
            check_task(ctx.role, operation, ctx.task, user.id, is_owner=attachment.user_id == user.id),
            user_id=user.id,
            subject=f"attachment {attachment.id}",
            operation=operation.value,
        )
        return AttachmentContext(attachment, ctx)

    return _checker
