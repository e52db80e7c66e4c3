import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from portal.db import get_db
from portal.errors import RbacError
from portal.models.project_role import ProjectRole
from portal.rbac import admin
from portal.rbac.deps import ProjectContext, require_project_access, require_project_role_admin
from portal.schemas.projects import ProjectRoleCreateIn, ProjectRoleOut, ProjectRoleUpdateIn

router = APIRouter(prefix="/projects/{project_id}/roles", tags=["project-roles"])

def _get_project_role(ctx: ProjectContext, role_id: uuid.UUID) -> ProjectRole:
    for r in ctx.roles:
        if r.id == role_id:
            return r
    raise HTTPException(status_code=404, detail="project role not found")

@router.get("", response_model=list[ProjectRoleOut])
def list_project_roles(ctx: ProjectContext = Depends(require_project_access)) -> list[ProjectRole]:
    return ctx.roles

@router.post("", response_model=ProjectRoleOut)
def create_project_role(
    payload: ProjectRoleCreateIn,
    ctx: ProjectContext = Depends(require_project_role_admin("create")),
    db: Session = Depends(get_db),
) -> ProjectRole:
    return admin.create_project_role(
        db,
        ctx.project,
        name=payload.name,
        description=payload.description,
        color=payload.color,
        permissions=payload.permissions.to_doc(),
        actor=ctx.perms.user,
    )

@router.patch("/{role_id}", response_model=ProjectRoleOut)
def update_project_role(
    role_id: uuid.UUID,
    payload: ProjectRoleUpdateIn,
    ctx: ProjectContext = Depends(require_project_role_admin("update")),
    db: Session = Depends(get_db),
) -> ProjectRole:
    r = _get_project_role(ctx, role_id)
    return admin.update_project_role(
        db, r, payload.model_dump(exclude_unset=True, mode="json"), actor=ctx.perms.user
    )

@router.delete("/{role_id}")
def delete_project_role(
    role_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_project_role_admin("delete")),
    db: Session = Depends(get_db),
) -> dict:
    r = _get_project_role(ctx, role_id)
    try:
        admin.delete_project_role(db, r, actor=ctx.perms.user)
    except RbacError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"deleted": True}
