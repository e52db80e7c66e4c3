from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.db import get_db
from portal.errors import RbacError
from portal.models.role import Role
from portal.rbac import admin
from portal.rbac.deps import require_perm
from portal.rbac.resolver import PermissionContext
from portal.schemas.roles import RoleCreateIn, RoleOut, RoleUpdateIn

router = APIRouter(prefix="/roles", tags=["roles"])

def _get_role(db: Session, role_id: str) -> Role:
    r = db.get(Role, role_id)
    if r is None:
        raise HTTPException(status_code=404, detail="role not found")
    return r

@router.get("", response_model=list[RoleOut])
def list_roles(
    _=Depends(require_perm("rbac", "read")),
    db: Session = Depends(get_db),
) -> list[Role]:
    return list(db.scalars(select(Role).order_by(Role.name)).all())

@router.get("/{role_id}", response_model=RoleOut)
def get_role(
    role_id: str,
    _=Depends(require_perm("rbac", "read")),
    db: Session = Depends(get_db),
) -> Role:
    return _get_role(db, role_id)

@router.post("", response_model=RoleOut)
def create_role(
    payload: RoleCreateIn,
    perms: PermissionContext = Depends(require_perm("rbac", "create")),
    db: Session = Depends(get_db),
) -> Role:
    try:
        return admin.create_role(
            db,
            id=payload.id,
            name=payload.name,
            description=payload.description,
            permissions=payload.permissions.to_doc(),
            actor=perms.user,
        )
    except RbacError as e:
        raise HTTPException(status_code=409, detail=str(e))

@router.patch("/{role_id}", response_model=RoleOut)
def update_role(
    role_id: str,
    payload: RoleUpdateIn,
    perms: PermissionContext = Depends(require_perm("rbac", "update")),
    db: Session = Depends(get_db),
) -> Role:
    r = _get_role(db, role_id)
    return admin.update_role(
        db, r, payload.model_dump(exclude_unset=True, mode="json"), actor=perms.user
    )

@router.delete("/{role_id}")
def delete_role(
    role_id: str,
    perms: PermissionContext = Depends(require_perm("rbac", "delete")),
    db: Session = Depends(get_db),
) -> dict:
    r = _get_role(db, role_id)
    try:
        admin.delete_role(db, r, actor=perms.user)
    except RbacError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"deleted": True}
