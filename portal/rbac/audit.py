"""Audit trail for RBAC administration.

``record`` only adds a row to the session. The caller's commit (or rollback)
decides whether it lands, so an entry exists exactly when its write does.
"""

import uuid
from enum import Enum

from sqlalchemy.orm import Session

from portal.models.audit_log import AuditLog
from portal.models.user import User

class AuditAction(str, Enum):
    role_created = "role.created"
    role_updated = "role.updated"
    role_deleted = "role.deleted"
    user_created = "user.created"
    user_updated = "user.updated"
    user_roles_assigned = "user.roles_assigned"
    user_activated = "user.activated"
    user_deactivated = "user.deactivated"
    project_created = "project.created"
    project_updated = "project.updated"
    project_deleted = "project.deleted"
    project_role_created = "project.role_created"
    project_role_updated = "project.role_updated"
    project_role_deleted = "project.role_deleted"
    team_member_added = "project.team_member_added"
    team_member_removed = "project.team_member_removed"
    team_member_role_changed = "project.team_member_role_changed"

def record(
    db: Session,
    action: AuditAction,
    *,
    entity_type: str,
    entity_id: str | uuid.UUID,
    entity_name: str = "",
    actor: User | None = None,
    project_id: uuid.UUID | None = None,
    before: dict | None = None,
    after: dict | None = None,
) -> AuditLog:
    changes: dict = {}
    if before is not None:
        changes["before"] = before
    if after is not None:
        changes["after"] = after

    entry = AuditLog(
        action=AuditAction(action).value,
        entity_type=entity_type,
        entity_id=str(entity_id),
        entity_name=entity_name or "",
        project_id=project_id,
        actor_id=actor.id if actor is not None else None,
        actor_email=actor.email if actor is not None else None,
        changes=changes,
    )
    db.add(entry)
    return entry
