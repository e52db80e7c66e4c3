import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.db import get_db
from portal.models.project import Project
from portal.rbac import admin
from portal.rbac.audit import AuditAction, record
from portal.rbac.deps import (
    ProjectContext,
    get_permission_context,
    require_perm,
    require_project_access,
    require_project_perm,
)
from portal.rbac.resolver import PermissionContext
from portal.schemas.projects import ProjectCreateIn, ProjectOut, ProjectUpdateIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])

def _project_ids(values: list[str] | None) -> list[uuid.UUID]:
    ids: list[uuid.UUID] = []
    for v in values or []:
        try:
            ids.append(uuid.UUID(str(v)))
        except ValueError:
            logger.warning("skipping malformed project id %r", v)
    return ids

@router.post("", response_model=ProjectOut)
def create_project(
    payload: ProjectCreateIn,
    perms: PermissionContext = Depends(require_perm("projects", "create")),
    db: Session = Depends(get_db),
) -> Project:
    return admin.create_project(
        db,
        name=payload.name,
        description=payload.description,
        code=payload.code,
        manager=perms.user,
        actor=perms.user,
    )

@router.get("", response_model=list[ProjectOut])
def list_projects(
    perms: PermissionContext = Depends(get_permission_context),
    db: Session = Depends(get_db),
) -> list[Project]:
    q = select(Project).order_by(Project.created_at.desc())
    if not perms.can_access_all_projects:
        ids = _project_ids(perms.user.projects)
        if not ids:
            return []
        q = q.where(Project.id.in_(ids))
    return list(db.scalars(q).all())

@router.get("/{project_id}", response_model=ProjectOut)
def get_project(ctx: ProjectContext = Depends(require_project_access)) -> Project:
    return ctx.project

@router.patch("/{project_id}", response_model=ProjectOut)
def update_project(
    payload: ProjectUpdateIn,
    ctx: ProjectContext = Depends(require_project_perm("projects", "update")),
    db: Session = Depends(get_db),
) -> Project:
    p = ctx.project
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    before = {k: getattr(p, k) for k in changes}
    for k, v in changes.items():
        setattr(p, k, v)
    db.add(p)
    if changes:
        record(
            db,
            AuditAction.project_updated,
            entity_type="project",
            entity_id=p.id,
            entity_name=p.name,
            actor=ctx.perms.user,
            project_id=p.id,
            before=before,
            after=changes,
        )
    db.commit()
    db.refresh(p)
    return p

@router.delete("/{project_id}")
def delete_project(
    ctx: ProjectContext = Depends(require_project_perm("projects", "delete")),
    db: Session = Depends(get_db),
) -> dict:
    admin.delete_project(db, ctx.project, actor=ctx.perms.user)
    return {"deleted": True}
