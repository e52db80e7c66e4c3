import logging
import uuid

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from portal.auth.deps import get_current_user
from portal.config import settings
from portal.db import get_db
from portal.models.enums import Module, PermissionAction, PermissionScope
from portal.models.project import Project
from portal.models.project_role import ProjectRole
from portal.models.role import Role
from portal.models.user import User
from portal.rbac.admin import list_project_roles
from portal.rbac.resolver import PermissionContext

logger = logging.getLogger(__name__)

def get_super_admins() -> frozenset[str]:
    return settings.super_admins

def get_permission_context(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    super_admins: frozenset[str] = Depends(get_super_admins),
) -> PermissionContext:
    # a missing system role row just means no system-level grants
    role = db.get(Role, user.role.value)
    return PermissionContext(user, role, super_admins)

class ProjectContext:
    def __init__(self, project: Project, roles: list[ProjectRole], perms: PermissionContext):
        self.project = project
        self.roles = roles
        self.perms = perms

    def allows(self, module: Module, action: PermissionAction) -> bool:
        return self.perms.has_project_permission(module, action, self.project, self.roles)

    def reaches(self, module: Module, action: PermissionAction) -> bool:
        return self.perms.covers_project(module, action, self.project, self.roles)

    def scope(self, module: Module, action: PermissionAction) -> PermissionScope:
        return self.perms.effective_scope(module, action, self.project, self.roles)

def get_project_context(
    project_id: uuid.UUID,
    perms: PermissionContext = Depends(get_permission_context),
    db: Session = Depends(get_db),
) -> ProjectContext:
    project = db.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="project not found")
    return ProjectContext(project=project, roles=list_project_roles(db, project_id), perms=perms)

def _deny(perms: PermissionContext, what: str) -> HTTPException:
    user_id = perms.user.id if perms.user is not None else None
    logger.debug("denied %s for user %s", what, user_id)
    return HTTPException(status_code=403, detail="forbidden")

def require_perm(module: str, action: str):
    m, a = Module(module), PermissionAction(action)

    def _checker(perms: PermissionContext = Depends(get_permission_context)) -> PermissionContext:
        if not perms.has_permission(m, a):
            raise _deny(perms, f"{m.value}:{a.value}")
        return perms

    return _checker

def require_project_perm(module: str, action: str):
    m, a = Module(module), PermissionAction(action)

    def _checker(ctx: ProjectContext = Depends(get_project_context)) -> ProjectContext:
        # the action must be granted and its scope must reach this project
        if not (ctx.allows(m, a) and ctx.reaches(m, a)):
            raise _deny(ctx.perms, f"{m.value}:{a.value} on project {ctx.project.id}")
        return ctx

    return _checker

def require_project_access(ctx: ProjectContext = Depends(get_project_context)) -> ProjectContext:
    if not ctx.perms.can_access_project(ctx.project.id):
        raise _deny(ctx.perms, f"access to project {ctx.project.id}")
    return ctx

def require_project_manager(ctx: ProjectContext = Depends(get_project_context)) -> ProjectContext:
    if not ctx.perms.can_manage_project(ctx.project.id):
        raise _deny(ctx.perms, f"management of project {ctx.project.id}")
    return ctx

def require_project_role_admin(action: str):
    a = PermissionAction(action)

    def _checker(ctx: ProjectContext = Depends(get_project_context)) -> ProjectContext:
        granted = ctx.allows(Module.rbac, a) and ctx.reaches(Module.rbac, a)
        if not (ctx.perms.can_manage_project(ctx.project.id) or granted):
            raise _deny(ctx.perms, f"rbac:{a.value} on project {ctx.project.id}")
        return ctx

    return _checker
