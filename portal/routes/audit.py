import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.db import get_db
from portal.models.audit_log import AuditLog
from portal.rbac.audit import AuditAction
from portal.rbac.deps import require_perm
from portal.schemas.audit import AuditLogOut

router = APIRouter(prefix="/audit-logs", tags=["audit"])

@router.get("", response_model=list[AuditLogOut])
def list_audit_logs(
    action: AuditAction | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    project_id: uuid.UUID | None = None,
    actor_id: uuid.UUID | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    _=Depends(require_perm("rbac", "read")),
    db: Session = Depends(get_db),
) -> list[AuditLog]:
    q = select(AuditLog)
    if action is not None:
        q = q.where(AuditLog.action == action.value)
    if entity_type is not None:
        q = q.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        q = q.where(AuditLog.entity_id == entity_id)
    if project_id is not None:
        q = q.where(AuditLog.project_id == project_id)
    if actor_id is not None:
        q = q.where(AuditLog.actor_id == actor_id)
    # newest first
    q = q.order_by(AuditLog.created_at.desc()).limit(limit)
    return list(db.scalars(q).all())
