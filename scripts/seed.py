import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.models.project import Project
from app.models.task import Task
from app.models.team import Team, TeamMember
from app.models.user import User
from app.rbac.roles import Role

@dataclass
class SeedResult:
    emails: dict[Role, str]
    team_id: uuid.UUID
    project_id: uuid.UUID
    task_id: uuid.UUID

def get_or_create_user(db: Session, email: str, name: str | None = None) -> User:
    email = email.lower().strip()
    u = db.scalar(select(User).where(User.email == email))
    if u is None:
        u = User(email=email, name=name)
        db.add(u)
        db.flush()
    return u

def get_or_create_team(db: Session, name: str, leader_id: uuid.UUID) -> Team:
    t = db.scalar(select(Team).where(Team.name == name, Team.leader_id == leader_id))
    if t is None:
        t = Team(name=name, leader_id=leader_id)
        db.add(t)
        db.flush()
    return t

def get_or_create_team_member(db: Session, team_id: uuid.UUID, user_id: uuid.UUID, role: Role) -> TeamMember:
    m = db.get(TeamMember, {"team_id": team_id, "user_id": user_id})
    if m is None:
        m = TeamMember(team_id=team_id, user_id=user_id, role=role.value)
        db.add(m)
        db.flush()
    elif m.role != role.value:
        m.role = role.value
        db.flush()
    return m

def get_or_create_project(db: Session, owner_id: uuid.UUID, team_id: uuid.UUID, name: str) -> Project:
    p = db.scalar(select(Project).where(Project.owner_id == owner_id, Project.name == name))
    if p is None:
        p = Project(owner_id=owner_id, team_id=team_id, name=name)
        db.add(p)
        db.flush()
    return p

def get_or_create_task(
    db: Session,
    project_id: uuid.UUID,
    title: str,
    reporter_id: uuid.UUID,
    assignee_id: uuid.UUID | None,
) -> Task:
    t = db.scalar(select(Task).where(Task.project_id == project_id, Task.title == title))
    if t is None:
        t = Task(project_id=project_id, title=title, reporter_id=reporter_id, assignee_id=assignee_id)
        db.add(t)
        db.flush()
    elif t.assignee_id != assignee_id:
        # keep it stable if you re-run seed
        t.assignee_id = assignee_id
        db.flush()
    return t

SEED_USERS: dict[Role, str] = {
    Role.admin: "admin@example.com",
    Role.member: "member@example.com",
    Role.viewer: "viewer@example.com",
}

def seed() -> SeedResult:
    db = SessionLocal()
    try:
        owner = get_or_create_user(db, "owner@example.com", "owner")
        team = get_or_create_team(db, "seeded team", owner.id)
        get_or_create_team_member(db, team.id, owner.id, Role.admin)

        emails = {Role.owner: owner.email}
        users = {}
        for role, email in SEED_USERS.items():
            users[role] = get_or_create_user(db, email, role.value)
            get_or_create_team_member(db, team.id, users[role].id, role)
            emails[role] = users[role].email

        project = get_or_create_project(db, owner.id, team.id, "seeded project")
        task = get_or_create_task(
            db, project.id, "seeded task", reporter_id=owner.id, assignee_id=users[Role.member].id
        )
        db.commit()

        return SeedResult(emails=emails, team_id=team.id, project_id=project.id, task_id=task.id)
    finally:
        db.close()

if __name__ == "__main__":
    r = seed()
    print("seed complete")
    print(f"team_id={r.team_id}")
    print(f"project_id={r.project_id}")
    print(f"task_id={r.task_id}")
    print("users:")
    for role, email in r.emails.items():
        print(f"  {role.value + ':':<8}{email}")
