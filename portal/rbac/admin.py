"""Writes to roles, project roles and team membership.

Protection rules for system and default roles live here, at the write
boundary. The resolver only ever reads.
"""

import copy
import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.errors import (
    DEFAULT_PROJECT_ROLE_DELETE,
    SYSTEM_ROLE_DELETE,
    DuplicateMemberError,
    MemberNotFoundError,
    ProtectedRoleError,
    RbacError,
    UnknownProjectRoleError,
)
from portal.models.enums import TeamRole
from portal.models.project import Project
from portal.models.project_role import DEFAULT_ROLE_COLOR, ProjectRole
from portal.models.role import Role
from portal.models.team_member import TeamMember
from portal.models.user import User
from portal.rbac.audit import AuditAction, record
from portal.rbac.defaults import (
    DEFAULT_MEMBER_ROLE_ORDER,
    DEFAULT_PROJECT_ROLE_TEMPLATES,
    PROJECT_ADMIN_ROLE,
    SYSTEM_ROLE_TEMPLATES,
)

logger = logging.getLogger(__name__)

ROLE_FIELDS = {"name", "description", "permissions"}
PROJECT_ROLE_FIELDS = {"name", "description", "permissions", "color"}

def _snapshot(obj, fields) -> dict:
    return {k: copy.deepcopy(getattr(obj, k)) for k in sorted(fields)}

# system roles

def ensure_system_roles(db: Session) -> list[Role]:
    roles: list[Role] = []
    for tag, tpl in SYSTEM_ROLE_TEMPLATES.items():
        r = db.get(Role, tag.value)
        if r is None:
            r = Role(
                id=tag.value,
                name=tpl["name"],
                description=tpl["description"],
                is_system=True,
                permissions=copy.deepcopy(tpl["permissions"]),
            )
            db.add(r)
            db.flush()
            logger.info("seeded system role %s", tag.value)
        roles.append(r)
    db.commit()
    return roles

def create_role(
    db: Session,
    *,
    name: str,
    permissions: dict,
    description: str = "",
    id: str | None = None,
    is_system: bool = False,
    actor: User | None = None,
) -> Role:
    role_id = id or uuid.uuid4().hex
    if db.get(Role, role_id) is not None:
        raise RbacError(f"role {role_id} already exists")

    r = Role(
        id=role_id,
        name=name,
        description=description,
        is_system=is_system,
        permissions=permissions,
    )
    db.add(r)
    record(
        db,
        AuditAction.role_created,
        entity_type="role",
        entity_id=r.id,
        entity_name=r.name,
        actor=actor,
        after=_snapshot(r, ROLE_FIELDS),
    )
    db.commit()
    db.refresh(r)
    logger.info("created role %s (%s)", r.id, r.name)
    return r

def update_role(db: Session, role: Role, changes: dict, *, actor: User | None = None) -> Role:
    changes = {k: v for k, v in changes.items() if k in ROLE_FIELDS and v is not None}
    if role.is_system and "name" in changes:
        # system role names are fixed, drop silently
        changes.pop("name")
        logger.debug("ignored rename of system role %s", role.id)

    before = _snapshot(role, changes)
    for k, v in changes.items():
        setattr(role, k, v)
    db.add(role)
    if changes:
        record(
            db,
            AuditAction.role_updated,
            entity_type="role",
            entity_id=role.id,
            entity_name=role.name,
            actor=actor,
            before=before,
            after=_snapshot(role, changes),
        )
    db.commit()
    db.refresh(role)
    return role

def delete_role(db: Session, role: Role, *, actor: User | None = None) -> None:
    if role.is_system:
        logger.warning("refused to delete system role %s", role.id)
        raise ProtectedRoleError(SYSTEM_ROLE_DELETE)
    record(
        db,
        AuditAction.role_deleted,
        entity_type="role",
        entity_id=role.id,
        entity_name=role.name,
        actor=actor,
        before=_snapshot(role, ROLE_FIELDS),
    )
    db.delete(role)
    db.commit()
    logger.info("deleted role %s", role.id)

# project roles

def list_project_roles(db: Session, project_id: uuid.UUID) -> list[ProjectRole]:
    q = select(ProjectRole).where(ProjectRole.project_id == project_id).order_by(ProjectRole.name)
    return list(db.scalars(q).all())

def get_admin_role(roles: Sequence[ProjectRole]) -> ProjectRole | None:
    for r in roles:
        if r.name == PROJECT_ADMIN_ROLE:
            return r
    return roles[0] if roles else None

def get_default_member_role(roles: Sequence[ProjectRole]) -> ProjectRole | None:
    for name in DEFAULT_MEMBER_ROLE_ORDER:
        for r in roles:
            if r.name == name:
                return r
    return roles[0] if roles else None

def _new_project_role(project_id: uuid.UUID, tpl: dict, is_default: bool) -> ProjectRole:
    return ProjectRole(
        project_id=project_id,
        name=tpl["name"],
        description=tpl.get("description", ""),
        color=tpl.get("color") or DEFAULT_ROLE_COLOR,
        is_default=is_default,
        permissions=copy.deepcopy(tpl["permissions"]),
    )

def create_default_project_roles(db: Session, project: Project) -> list[ProjectRole]:
    """Add the default role set to ``project``. Flushes, never commits."""
    roles = [_new_project_role(project.id, tpl, True) for tpl in DEFAULT_PROJECT_ROLE_TEMPLATES]
    db.add_all(roles)
    db.flush()
    return roles

def create_project_role(
    db: Session,
    project: Project,
    *,
    name: str,
    permissions: dict,
    description: str = "",
    color: str | None = None,
    is_default: bool = False,
    actor: User | None = None,
) -> ProjectRole:
    r = _new_project_role(
        project.id,
        {"name": name, "description": description, "color": color, "permissions": permissions},
        is_default,
    )
    db.add(r)
    db.flush()
    record(
        db,
        AuditAction.project_role_created,
        entity_type="project_role",
        entity_id=r.id,
        entity_name=r.name,
        actor=actor,
        project_id=project.id,
        after=_snapshot(r, PROJECT_ROLE_FIELDS),
    )
    db.commit()
    db.refresh(r)
    logger.info("created project role %s in project %s", r.name, project.id)
    return r

def update_project_role(
    db: Session, role: ProjectRole, changes: dict, *, actor: User | None = None
) -> ProjectRole:
    changes = {k: v for k, v in changes.items() if k in PROJECT_ROLE_FIELDS and v is not None}
    if role.is_default and "name" in changes:
        changes.pop("name")
        logger.debug("ignored rename of default project role %s", role.id)

    renamed = "name" in changes and changes["name"] != role.name
    before = _snapshot(role, changes)
    for k, v in changes.items():
        setattr(role, k, v)
    db.add(role)
    if changes:
        record(
            db,
            AuditAction.project_role_updated,
            entity_type="project_role",
            entity_id=role.id,
            entity_name=role.name,
            actor=actor,
            project_id=role.project_id,
            before=before,
            after=_snapshot(role, changes),
        )

    if renamed:
        # keep the denormalized label on members in step
        q = select(TeamMember).where(
            TeamMember.project_id == role.project_id,
            TeamMember.project_role_id == role.id,
        )
        for m in db.scalars(q).all():
            m.project_role_name = role.name

    db.commit()
    db.refresh(role)
    return role

def delete_project_role(db: Session, role: ProjectRole, *, actor: User | None = None) -> None:
    if role.is_default:
        logger.warning("refused to delete default project role %s", role.id)
        raise ProtectedRoleError(DEFAULT_PROJECT_ROLE_DELETE)
    record(
        db,
        AuditAction.project_role_deleted,
        entity_type="project_role",
        entity_id=role.id,
        entity_name=role.name,
        actor=actor,
        project_id=role.project_id,
        before=_snapshot(role, PROJECT_ROLE_FIELDS),
    )
    # members still pointing at this id fall back to system permissions only
    db.delete(role)
    db.commit()
    logger.info("deleted project role %s from project %s", role.id, role.project_id)

# projects and membership

def create_project(
    db: Session,
    *,
    name: str,
    manager: User,
    description: str = "",
    code: str = "",
    actor: User | None = None,
) -> Project:
    """Create a project with its default roles and the manager as Project Admin.

    All writes share one transaction: either the project, its roles and the
    manager's membership all land, or none of them do.
    """
    try:
        p = Project(
            name=name,
            description=description,
            code=code,
            manager_id=manager.id,
            manager_name=manager.display_name,
        )
        db.add(p)
        db.flush()

        roles = create_default_project_roles(db, p)
        admin = get_admin_role(roles)

        p.team_members.append(
            TeamMember(
                user_id=manager.id,
                user_name=manager.display_name,
                role=TeamRole.manager,
                project_role_id=admin.id if admin else None,
                project_role_name=admin.name if admin else None,
            )
        )
        manager.add_project(p.id)
        db.add(manager)
        record(
            db,
            AuditAction.project_created,
            entity_type="project",
            entity_id=p.id,
            entity_name=p.name,
            actor=actor or manager,
            project_id=p.id,
            after={"name": p.name, "code": p.code, "manager_id": str(manager.id)},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(p)
    logger.info("created project %s with %d default roles", p.id, len(roles))
    return p

def _resolve_project_role(project: Project, project_role: ProjectRole | None) -> ProjectRole | None:
    if project_role is not None and project_role.project_id != project.id:
        raise UnknownProjectRoleError("project role does not belong to this project")
    return project_role

def add_team_member(
    db: Session,
    project: Project,
    user: User,
    *,
    role: TeamRole = TeamRole.member,
    project_role: ProjectRole | None = None,
    actor: User | None = None,
) -> TeamMember:
    if db.get(TeamMember, {"project_id": project.id, "user_id": user.id}) is not None:
        raise DuplicateMemberError("user is already a member of this project")

    project_role = _resolve_project_role(project, project_role)
    if project_role is None:
        project_role = get_default_member_role(list_project_roles(db, project.id))

    m = TeamMember(
        user_id=user.id,
        user_name=user.display_name,
        role=role,
        project_role_id=project_role.id if project_role else None,
        project_role_name=project_role.name if project_role else None,
    )
    project.team_members.append(m)
    user.add_project(project.id)
    db.add(user)
    record(
        db,
        AuditAction.team_member_added,
        entity_type="project",
        entity_id=project.id,
        entity_name=project.name,
        actor=actor,
        project_id=project.id,
        after={"user_id": str(user.id), "project_role_name": m.project_role_name},
    )
    db.commit()
    db.refresh(m)
    logger.info("added user %s to project %s", user.id, project.id)
    return m

def set_member_project_role(
    db: Session,
    project: Project,
    user_id: uuid.UUID,
    project_role: ProjectRole,
    *,
    actor: User | None = None,
) -> TeamMember:
    m = db.get(TeamMember, {"project_id": project.id, "user_id": user_id})
    if m is None:
        raise MemberNotFoundError("user is not a member of this project")
    project_role = _resolve_project_role(project, project_role)

    before = {"user_id": str(user_id), "project_role_name": m.project_role_name}
    m.project_role_id = project_role.id
    m.project_role_name = project_role.name
    db.add(m)
    record(
        db,
        AuditAction.team_member_role_changed,
        entity_type="project",
        entity_id=project.id,
        entity_name=project.name,
        actor=actor,
        project_id=project.id,
        before=before,
        after={"user_id": str(user_id), "project_role_name": m.project_role_name},
    )
    db.commit()
    db.refresh(m)
    return m

def remove_team_member(
    db: Session, project: Project, user_id: uuid.UUID, *, actor: User | None = None
) -> None:
    m = db.get(TeamMember, {"project_id": project.id, "user_id": user_id})
    if m is None:
        raise MemberNotFoundError("user is not a member of this project")

    project.team_members.remove(m)
    user = db.get(User, user_id)
    if user is not None:
        user.remove_project(project.id)
        db.add(user)
    record(
        db,
        AuditAction.team_member_removed,
        entity_type="project",
        entity_id=project.id,
        entity_name=project.name,
        actor=actor,
        project_id=project.id,
        before={"user_id": str(user_id), "project_role_name": m.project_role_name},
    )
    db.commit()
    logger.info("removed user %s from project %s", user_id, project.id)

def delete_project(db: Session, project: Project, *, actor: User | None = None) -> None:
    """Delete a project, its roles, tasks and memberships in one transaction."""
    try:
        for m in project.team_members:
            user = db.get(User, m.user_id)
            if user is not None:
                user.remove_project(project.id)
                db.add(user)
        record(
            db,
            AuditAction.project_deleted,
            entity_type="project",
            entity_id=project.id,
            entity_name=project.name,
            actor=actor,
            project_id=project.id,
            before={"name": project.name, "code": project.code},
        )
        db.delete(project)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("deleted project %s", project.id)
