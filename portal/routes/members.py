import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from portal.db import get_db
from portal.errors import DuplicateMemberError, MemberNotFoundError, RbacError
from portal.models.project_role import ProjectRole
from portal.models.team_member import TeamMember
from portal.models.user import User
from portal.rbac import admin
from portal.rbac.deps import ProjectContext, require_project_access, require_project_manager
from portal.schemas.projects import MemberAddIn, MemberRoleIn, TeamMemberOut

router = APIRouter(prefix="/projects/{project_id}/members", tags=["members"])

def _find_role(ctx: ProjectContext, role_id: uuid.UUID | None) -> ProjectRole | None:
    if role_id is None:
        return None
    for r in ctx.roles:
        if r.id == role_id:
            return r
    raise HTTPException(status_code=404, detail="project role not found")

@router.get("", response_model=list[TeamMemberOut])
def list_members(ctx: ProjectContext = Depends(require_project_access)) -> list[TeamMember]:
    return list(ctx.project.team_members)

@router.post("", response_model=TeamMemberOut)
def add_member(
    payload: MemberAddIn,
    ctx: ProjectContext = Depends(require_project_manager),
    db: Session = Depends(get_db),
) -> TeamMember:
    user = db.get(User, payload.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")

    try:
        return admin.add_team_member(
            db,
            ctx.project,
            user,
            role=payload.role,
            project_role=_find_role(ctx, payload.project_role_id),
            actor=ctx.perms.user,
        )
    except DuplicateMemberError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RbacError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.patch("/{user_id}", response_model=TeamMemberOut)
def set_member_role(
    user_id: uuid.UUID,
    payload: MemberRoleIn,
    ctx: ProjectContext = Depends(require_project_manager),
    db: Session = Depends(get_db),
) -> TeamMember:
    try:
        return admin.set_member_project_role(
            db,
            ctx.project,
            user_id,
            _find_role(ctx, payload.project_role_id),
            actor=ctx.perms.user,
        )
    except MemberNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RbacError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.delete("/{user_id}")
def remove_member(
    user_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_project_manager),
    db: Session = Depends(get_db),
) -> dict:
    try:
        admin.remove_team_member(db, ctx.project, user_id, actor=ctx.perms.user)
    except MemberNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": True}
