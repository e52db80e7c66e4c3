import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.auth.tokens import issue_access_token
from portal.config import settings
from portal.db import SessionLocal
from portal.models.enums import UserRole
from portal.models.project import Project
from portal.models.team_member import TeamMember
from portal.models.user import User
from portal.rbac.admin import add_team_member, create_project, ensure_system_roles

@dataclass
class SeedResult:
    users: dict[str, str]
    project_id: uuid.UUID
    tokens: dict[str, str]

def get_or_create_user(db: Session, email: str, name: str, role: UserRole) -> User:
    email = email.lower().strip()
    u = db.scalar(select(User).where(User.email == email))
    if u is None:
        u = User(email=email, display_name=name, role=role, projects=[])
        db.add(u)
        db.flush()
    elif u.role != role:
        u.role = role
        db.add(u)
        db.flush()
    return u

def get_or_create_project(db: Session, name: str, manager: User) -> Project:
    p = db.scalar(select(Project).where(Project.name == name))
    if p is None:
        p = create_project(db, name=name, code="SEED", manager=manager)
    return p

def ensure_member(db: Session, project: Project, user: User) -> None:
    if db.get(TeamMember, {"project_id": project.id, "user_id": user.id}) is None:
        add_team_member(db, project, user)

def seed() -> SeedResult:
    db = SessionLocal()
    try:
        ensure_system_roles(db)

        admin = get_or_create_user(db, "admin@example.com", "admin", UserRole.superuser)
        finance = get_or_create_user(db, "finance@example.com", "finance", UserRole.finance_incharge)
        pm = get_or_create_user(db, "pm@example.com", "pm", UserRole.project_manager)
        analyst = get_or_create_user(db, "analyst@example.com", "analyst", UserRole.analyst)
        db.commit()

        project = get_or_create_project(db, "seeded project", pm)
        ensure_member(db, project, analyst)

        users = {u.role.value: u.email for u in (admin, finance, pm, analyst)}
        tokens = {u.email: issue_access_token(u.id) for u in (admin, finance, pm, analyst)}
        return SeedResult(users=users, project_id=project.id, tokens=tokens)
    finally:
        db.close()

if __name__ == "__main__":
    r = seed()
    print("seed complete")
    print(f"project_id={r.project_id}")
    print("users:")
    for role, email in r.users.items():
        print(f"  {role}: {email}")
        # never print bearer tokens outside dev
        if settings.app_env != "prod":
            print(f"    token: {r.tokens[email]}")
