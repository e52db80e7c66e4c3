import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from portal.db import get_db
from portal.models.project import Project
from portal.rbac.admin import list_project_roles
from portal.rbac.deps import get_permission_context
from portal.rbac.resolver import PermissionContext
from portal.schemas.users import MeOut, PermissionMatrixOut, UserOut

router = APIRouter(prefix="/me", tags=["me"])

@router.get("", response_model=MeOut)
def me(perms: PermissionContext = Depends(get_permission_context)) -> MeOut:
    base = UserOut.model_validate(perms.user)
    return MeOut(
        **base.model_dump(),
        is_super_admin=perms.is_super_admin,
        can_access_sensitive_data=perms.can_access_sensitive_data,
        can_access_all_projects=perms.can_access_all_projects,
        can_access_global_assets=perms.can_access_global_assets,
    )

@router.get("/permissions", response_model=PermissionMatrixOut)
def my_permissions(
    project_id: uuid.UUID | None = None,
    perms: PermissionContext = Depends(get_permission_context),
    db: Session = Depends(get_db),
) -> PermissionMatrixOut:
    if project_id is None:
        return PermissionMatrixOut(permissions=perms.permission_matrix())

    project = db.get(Project, project_id)
    if project is None or not perms.can_access_project(project_id):
        raise HTTPException(status_code=404, detail="project not found")

    roles = list_project_roles(db, project_id)
    role = perms.get_user_project_role(project, roles)
    return PermissionMatrixOut(
        project_id=project_id,
        project_role=role.name if role else None,
        permissions=perms.permission_matrix(project, roles),
    )
