import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.deps import get_current_user
from app.db import get_db
from app.models.project import Project
from app.models.team import Team, TeamMember
from app.models.user import User
from app.rbac.deps import AccessDenied, get_resolver
from app.rbac.guards import DenyReason
from app.rbac.membership import MembershipResolver
from app.rbac.perms import GRANTABLE_ROLES
from app.rbac.roles import Role, meets_minimum
from app.schemas.teams import TeamCreateIn, TeamMemberIn, TeamMemberOut, TeamOut, TeamUpdateIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])

class TeamContext:
    def __init__(self, team: Team, role: Role, user: User):
        self.team = team
        self.role = role
        self.user = user

    @property
    def is_leader(self) -> bool:
        return self.team.leader_id == self.user.id

    @property
    def granting_role(self) -> Role:
        # the leader hands out roles like a project owner would
        return Role.owner if self.is_leader else self.role

def get_team_context(
    team_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    resolver: MembershipResolver = Depends(get_resolver),
) -> TeamContext:
    team = db.get(Team, team_id)
    role = resolver.team_role(team_id, user.id) if team is not None else None
    # don't leak team existence to outsiders
    if team is None or role is None:
        raise HTTPException(status_code=404, detail="team not found")
    return TeamContext(team=team, role=role, user=user)

def require_team_admin(ctx: TeamContext = Depends(get_team_context)) -> TeamContext:
    if not ctx.is_leader and not meets_minimum(ctx.role, Role.admin):
        logger.info(f"User {ctx.user.id} lacks admin role in team {ctx.team.id}")
        raise AccessDenied(DenyReason.insufficient_role, "access denied: team admin required")
    return ctx

def _member_out(m: TeamMember, u: User) -> TeamMemberOut:
    return TeamMemberOut(user_id=u.id, email=u.email, name=u.name, role=Role(m.role or "member"), joined_at=m.joined_at)

@router.post("", response_model=TeamOut)
def create_team(
    payload: TeamCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TeamOut:
    team = Team(name=payload.name, description=payload.description, leader_id=user.id)
    db.add(team)
    db.flush()

    db.add(TeamMember(team_id=team.id, user_id=user.id, role=Role.admin.value))
    db.commit()
    db.refresh(team)
    logger.info(f"User {user.id} created team {team.id}")
    return TeamOut.model_validate(team)

@router.get("", response_model=list[TeamOut])
def list_teams(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TeamOut]:
    q = (
        select(Team)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .where(TeamMember.user_id == user.id)
        .order_by(Team.created_at.desc())
    )
    return [TeamOut.model_validate(t) for t in db.scalars(q).all()]

@router.get("/{team_id}", response_model=TeamOut)
def get_team(ctx: TeamContext = Depends(get_team_context)) -> TeamOut:
    return TeamOut.model_validate(ctx.team)

@router.patch("/{team_id}", response_model=TeamOut)
def update_team(
    payload: TeamUpdateIn,
    ctx: TeamContext = Depends(require_team_admin),
    db: Session = Depends(get_db),
) -> TeamOut:
    team = ctx.team
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field == "name":
            continue
        setattr(team, field, value)
    db.add(team)
    db.commit()
    db.refresh(team)
    return TeamOut.model_validate(team)

@router.delete("/{team_id}")
def delete_team(
    ctx: TeamContext = Depends(get_team_context),
    db: Session = Depends(get_db),
) -> dict:
    if not ctx.is_leader:
        raise AccessDenied(DenyReason.insufficient_role, "access denied: only the team leader can delete the team")

    # projects survive their team and fall back to owner-only visibility
    db.execute(update(Project).where(Project.team_id == ctx.team.id).values(team_id=None))
    for m in db.scalars(select(TeamMember).where(TeamMember.team_id == ctx.team.id)).all():
        db.delete(m)
    db.delete(ctx.team)
    db.commit()
    return {"deleted": True}

@router.get("/{team_id}/members", response_model=list[TeamMemberOut])
def list_members(
    ctx: TeamContext = Depends(get_team_context),
    db: Session = Depends(get_db),
) -> list[TeamMemberOut]:
    q = (
        select(TeamMember, User)
        .join(User, User.id == TeamMember.user_id)
        .where(TeamMember.team_id == ctx.team.id)
        .order_by(TeamMember.joined_at)
    )
    return [_member_out(m, u) for m, u in db.execute(q).all()]

@router.post("/{team_id}/members", response_model=TeamMemberOut)
def add_member(
    payload: TeamMemberIn,
    ctx: TeamContext = Depends(require_team_admin),
    db: Session = Depends(get_db),
) -> TeamMemberOut:
    if payload.role not in GRANTABLE_ROLES.get(ctx.granting_role, set()):
        raise AccessDenied(DenyReason.insufficient_role, f"access denied: cannot grant role {payload.role.value}")

    invited = db.get(User, payload.user_id)
    if invited is None:
        raise HTTPException(status_code=404, detail="user not found")

    if db.get(TeamMember, {"team_id": ctx.team.id, "user_id": invited.id}) is not None:
        raise HTTPException(status_code=409, detail="already a member")

    m = TeamMember(team_id=ctx.team.id, user_id=invited.id, role=payload.role.value)
    db.add(m)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent add of the same user
        db.rollback()
        raise HTTPException(status_code=409, detail="already a member")
    db.refresh(m)
    return _member_out(m, invited)

@router.delete("/{team_id}/members/{user_id}")
def remove_member(
    user_id: uuid.UUID,
    ctx: TeamContext = Depends(get_team_context),
    db: Session = Depends(get_db),
) -> dict:
    m = db.get(TeamMember, {"team_id": ctx.team.id, "user_id": user_id})
    if m is None:
        raise HTTPException(status_code=404, detail="member not found")
    if user_id == ctx.team.leader_id:
        raise HTTPException(status_code=400, detail="the team leader cannot be removed")

    # anyone may leave; removing others needs a role that could have granted theirs
    if user_id != ctx.user.id:
        target = Role(m.role or "member")
        if target not in GRANTABLE_ROLES.get(ctx.granting_role, set()):
            raise AccessDenied(DenyReason.insufficient_role, "access denied: cannot remove this member")

    db.delete(m)
    db.commit()
    return {"deleted": True}
