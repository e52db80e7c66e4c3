import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.db import get_db
from portal.models.user import User
from portal.rbac.audit import AuditAction, record
from portal.rbac.deps import require_perm
from portal.rbac.resolver import PermissionContext
from portal.schemas.users import UserCreateIn, UserOut, UserUpdateIn

router = APIRouter(prefix="/users", tags=["users"])

@router.get("", response_model=list[UserOut])
def list_users(
    _=Depends(require_perm("rbac", "read")),
    db: Session = Depends(get_db),
) -> list[User]:
    return list(db.scalars(select(User).order_by(User.display_name)).all())

@router.post("", response_model=UserOut)
def create_user(
    payload: UserCreateIn,
    perms: PermissionContext = Depends(require_perm("rbac", "create")),
    db: Session = Depends(get_db),
) -> User:
    email = payload.email.lower().strip()
    if db.scalar(select(User).where(User.email == email)) is not None:
        raise HTTPException(status_code=409, detail="email already registered")

    u = User(email=email, display_name=payload.display_name, role=payload.role, projects=[])
    db.add(u)
    db.flush()
    record(
        db,
        AuditAction.user_created,
        entity_type="user",
        entity_id=u.id,
        entity_name=u.email,
        actor=perms.user,
        after={"email": u.email, "role": u.role.value},
    )
    db.commit()
    db.refresh(u)
    return u

@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: uuid.UUID,
    payload: UserUpdateIn,
    perms: PermissionContext = Depends(require_perm("rbac", "update")),
    db: Session = Depends(get_db),
) -> User:
    u = db.get(User, user_id)
    if u is None:
        raise HTTPException(status_code=404, detail="user not found")

    def _audit(action: AuditAction, before: dict, after: dict) -> None:
        record(
            db,
            action,
            entity_type="user",
            entity_id=u.id,
            entity_name=u.email,
            actor=perms.user,
            before=before,
            after=after,
        )

    if payload.display_name is not None and payload.display_name != u.display_name:
        _audit(AuditAction.user_updated, {"display_name": u.display_name}, {"display_name": payload.display_name})
        u.display_name = payload.display_name
    if payload.role is not None and payload.role != u.role:
        _audit(AuditAction.user_roles_assigned, {"role": u.role.value}, {"role": payload.role.value})
        u.role = payload.role
    if payload.is_active is not None and payload.is_active != u.is_active:
        action = AuditAction.user_activated if payload.is_active else AuditAction.user_deactivated
        _audit(action, {"is_active": u.is_active}, {"is_active": payload.is_active})
        u.is_active = payload.is_active

    db.add(u)
    db.commit()
    db.refresh(u)
    return u
