import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.enums import NotificationType, ProjectStatus
from app.models.project import Project
from app.models.team import Team, TeamMember
from app.models.user import User
from app.rbac.deps import AccessDenied, ProjectContext, get_resolver, require_project
from app.rbac.guards import DenyReason
from app.rbac.membership import MembershipResolver
from app.rbac.perms import GRANTABLE_ROLES, ProjectOperation
from app.rbac.roles import Role
from app.schemas.projects import (
    ProjectCreateIn,
    ProjectDetailOut,
    ProjectMemberIn,
    ProjectMemberOut,
    ProjectOut,
    ProjectUpdateIn,
)
from app.services.notifications import notify
from app.services.storage import delete_project_tree, remove_files

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])

@router.post("", response_model=ProjectOut)
def create_project(
    payload: ProjectCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    resolver: MembershipResolver = Depends(get_resolver),
) -> ProjectOut:
    if payload.team_id is not None and resolver.team_role(payload.team_id, user.id) is None:
        raise AccessDenied(DenyReason.not_a_member, "access denied: not a member of this team")

    p = Project(owner_id=user.id, **payload.model_dump())
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info(f"User {user.id} created project {p.id}")
    return ProjectOut.model_validate(p)

@router.get("", response_model=list[ProjectOut])
def list_projects(
    status: ProjectStatus | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ProjectOut]:
    my_teams = select(TeamMember.team_id).where(TeamMember.user_id == user.id)
    q = select(Project).where(or_(Project.owner_id == user.id, Project.team_id.in_(my_teams)))
    if status is not None:
        q = q.where(Project.status == status)
    q = q.order_by(Project.created_at.desc(), Project.id).offset((page - 1) * limit).limit(limit)
    rows = db.scalars(q).all()
    return [ProjectOut.model_validate(r) for r in rows]

@router.get("/{project_id}", response_model=ProjectDetailOut)
def get_project(ctx: ProjectContext = Depends(require_project(ProjectOperation.read))) -> ProjectDetailOut:
    out = ProjectOut.model_validate(ctx.project)
    return ProjectDetailOut(**out.model_dump(), my_role=ctx.role)

@router.patch("/{project_id}", response_model=ProjectOut)
def update_project(
    payload: ProjectUpdateIn,
    ctx: ProjectContext = Depends(require_project(ProjectOperation.update)),
    db: Session = Depends(get_db),
) -> ProjectOut:
    p = ctx.project
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in {"name", "status", "priority"}:
            continue
        setattr(p, field, value)
    db.add(p)
    db.commit()
    db.refresh(p)
    return ProjectOut.model_validate(p)

@router.delete("/{project_id}")
def delete_project(
    ctx: ProjectContext = Depends(require_project(ProjectOperation.delete)),
    db: Session = Depends(get_db),
) -> dict:
    project_id = ctx.project.id
    paths = delete_project_tree(db, ctx.project)
    db.commit()
    remove_files(paths)
    logger.info(f"User {ctx.user.id} deleted project {project_id}")
    return {"deleted": True}

def _granting_role(db: Session, resolver: MembershipResolver, ctx: ProjectContext) -> Role | None:
    """The strongest role the caller may hand out (or take away) on this project.

    Project members are rows of the project's team, so the caller's team
    standing caps their project role. The team leader grants like an owner.
    """
    team = db.get(Team, ctx.project.team_id)
    if team is None:
        return None
    if team.leader_id == ctx.user.id:
        return ctx.role
    standing = resolver.team_role(team.id, ctx.user.id)
    if standing is None:
        return None
    return min(ctx.role, standing)

@router.get("/{project_id}/members", response_model=list[ProjectMemberOut])
def list_members(
    ctx: ProjectContext = Depends(require_project(ProjectOperation.read)),
    db: Session = Depends(get_db),
) -> list[ProjectMemberOut]:
    owner = db.get(User, ctx.project.owner_id)
    members = [ProjectMemberOut(user_id=owner.id, email=owner.email, name=owner.name, role=Role.owner)]
    if ctx.project.team_id is None:
        return members

    q = (
        select(TeamMember, User)
        .join(User, User.id == TeamMember.user_id)
        .where(TeamMember.team_id == ctx.project.team_id, TeamMember.user_id != owner.id)
        .order_by(TeamMember.joined_at)
    )
    for m, u in db.execute(q).all():
        members.append(ProjectMemberOut(user_id=u.id, email=u.email, name=u.name, role=Role(m.role or "member")))
    return members

@router.post("/{project_id}/members", response_model=ProjectMemberOut)
def add_member(
    payload: ProjectMemberIn,
    ctx: ProjectContext = Depends(require_project(ProjectOperation.manage_members)),
    db: Session = Depends(get_db),
    resolver: MembershipResolver = Depends(get_resolver),
) -> ProjectMemberOut:
    if ctx.project.team_id is None:
        raise HTTPException(status_code=400, detail="project has no team")
    granting = _granting_role(db, resolver, ctx)
    if payload.role not in GRANTABLE_ROLES.get(granting, set()):
        logger.info(f"User {ctx.user.id} ({granting}) tried to grant {payload.role.value} on project {ctx.project.id}")
        raise AccessDenied(DenyReason.insufficient_role, f"access denied: cannot grant role {payload.role.value}")

    invited = db.get(User, payload.user_id)
    if invited is None:
        raise HTTPException(status_code=404, detail="user not found")
    if invited.id == ctx.project.owner_id:
        raise HTTPException(status_code=409, detail="user already owns this project")

    existing = db.get(TeamMember, {"team_id": ctx.project.team_id, "user_id": invited.id})
    if existing is not None:
        raise HTTPException(status_code=409, detail="already a member")

    db.add(TeamMember(team_id=ctx.project.team_id, user_id=invited.id, role=payload.role.value))
    notify(
        db,
        invited.id,
        NotificationType.project_member_added,
        title="Added to project",
        message=f"You were added to \"{ctx.project.name}\" as {payload.role.value}",
        data={"project_id": str(ctx.project.id)},
    )
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent add of the same user
        db.rollback()
        raise HTTPException(status_code=409, detail="already a member")
    return ProjectMemberOut(user_id=invited.id, email=invited.email, name=invited.name, role=payload.role)

@router.delete("/{project_id}/members/{user_id}")
def remove_member(
    user_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_project(ProjectOperation.manage_members)),
    db: Session = Depends(get_db),
    resolver: MembershipResolver = Depends(get_resolver),
) -> dict:
    if user_id == ctx.project.owner_id:
        raise HTTPException(status_code=400, detail="the project owner cannot be removed")
    if ctx.project.team_id is None:
        raise HTTPException(status_code=400, detail="project has no team")

    m = db.get(TeamMember, {"team_id": ctx.project.team_id, "user_id": user_id})
    if m is None:
        raise HTTPException(status_code=404, detail="member not found")

    target = Role(m.role or "member")
    if target not in GRANTABLE_ROLES.get(_granting_role(db, resolver, ctx), set()):
        raise AccessDenied(DenyReason.insufficient_role, "access denied: cannot remove this member")

    db.delete(m)
    db.commit()
    return {"deleted": True}
