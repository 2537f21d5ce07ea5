from fastapi import APIRouter, Depends
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.enums import TaskStatus
from app.models.project import Project
from app.models.task import Task
from app.models.team import Team, TeamMember
from app.models.user import User
from app.rbac.membership import MembershipResolver
from app.schemas.tasks import TaskOut
from app.schemas.users import UserOut, UserStatsOut, UserUpdateIn

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/me", response_model=UserOut)
def get_me(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(user)

@router.patch("/me", response_model=UserOut)
def update_me(
    payload: UserUpdateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserOut:
    user.name = payload.name
    db.add(user)
    db.commit()
    db.refresh(user)
    return UserOut.model_validate(user)

@router.get("/me/tasks", response_model=list[TaskOut])
def my_tasks(
    status: TaskStatus | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TaskOut]:
    q = select(Task).where(Task.assignee_id == user.id)
    if status is not None:
        q = q.where(Task.status == status)
    rows = db.scalars(q.order_by(Task.created_at.desc())).all()

    # drop tasks from projects we lost access to since the assignment
    resolver = MembershipResolver(db)
    visible = []
    for t in rows:
        project = db.get(Project, t.project_id)
        if project is not None and resolver.resolve(project, user.id) is not None:
            visible.append(TaskOut.model_validate(t))
    return visible

@router.get("/stats", response_model=UserStatsOut)
def my_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserStatsOut:
    def count(q) -> int:
        return db.scalar(select(func.count()).select_from(q.subquery())) or 0

    my_teams = select(TeamMember.team_id).where(TeamMember.user_id == user.id)
    assigned = select(Task.id).where(Task.assignee_id == user.id)
    return UserStatsOut(
        total_projects=count(
            select(Project.id).where(or_(Project.owner_id == user.id, Project.team_id.in_(my_teams)))
        ),
        projects_as_owner=count(select(Project.id).where(Project.owner_id == user.id)),
        total_teams=count(my_teams),
        teams_as_leader=count(select(Team.id).where(Team.leader_id == user.id)),
        assigned_tasks=count(assigned),
        completed_tasks=count(assigned.where(Task.status == TaskStatus.completed)),
    )
