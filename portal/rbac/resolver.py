"""Authorization decisions over already-loaded users, roles and projects.

Nothing in here touches the database or raises on missing data. Every check
answers ``False`` when the user, role, project or membership it needs is absent.

Permission sources are combined additively: a user may act when their system
role grants ``(module, action)`` OR their project role in that project does.
The two are checked separately and never merged into one permission object,
so a project role can only add capability on top of the system role.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence

from portal.models.enums import (
    SCOPE_RANK,
    Module,
    PermissionAction,
    PermissionScope,
    UserRole,
)
from portal.models.project import Project
from portal.models.project_role import ProjectRole
from portal.models.role import Role
from portal.models.team_member import TeamMember
from portal.models.user import User

def _normalize_emails(emails: Iterable[str]) -> frozenset[str]:
    return frozenset(e.strip().lower() for e in emails if e and e.strip())

def is_super_admin(user: User | None, super_admins: Iterable[str] = ()) -> bool:
    """Allow-listed email or the ``superuser`` tag. Checked before anything else."""
    if user is None:
        return False
    email = (user.email or "").strip().lower()
    return email in _normalize_emails(super_admins) or user.role == UserRole.superuser

def grants(permissions: dict | None, module: Module, action: PermissionAction) -> bool:
    """Whether a stored permission map lists ``action`` for ``module``. Scope is ignored."""
    perm = (permissions or {}).get(Module(module).value)
    if not perm:
        return False
    return PermissionAction(action).value in (perm.get("actions") or [])

def granted_scope(
    permissions: dict | None, module: Module, action: PermissionAction | None = None
) -> PermissionScope:
    """Scope of the grant for ``module``; ``none`` when ``action`` is not granted."""
    perm = (permissions or {}).get(Module(module).value)
    if not perm or not perm.get("actions"):
        return PermissionScope.none
    if action is not None and not grants(permissions, module, action):
        return PermissionScope.none
    try:
        return PermissionScope(perm.get("scope", "none"))
    except ValueError:
        return PermissionScope.none

def _broadest(*scopes: PermissionScope) -> PermissionScope:
    return max(scopes, key=SCOPE_RANK.__getitem__, default=PermissionScope.none)

class PermissionContext:
    """The current user, their system role and the super-admin allow-list."""

    def __init__(
        self,
        user: User | None,
        system_role: Role | None = None,
        super_admins: Iterable[str] = (),
    ):
        self.user = user
        self.system_role = system_role
        self.super_admins = _normalize_emails(super_admins)

    @property
    def is_super_admin(self) -> bool:
        return is_super_admin(self.user, self.super_admins)

    @property
    def is_finance_incharge(self) -> bool:
        return self.user is not None and self.user.role == UserRole.finance_incharge

    @property
    def is_project_manager(self) -> bool:
        return self.user is not None and self.user.role == UserRole.project_manager

    # system level

    def has_permission(self, module: Module, action: PermissionAction) -> bool:
        if self.is_super_admin:
            return True
        if self.user is None or self.system_role is None:
            return False
        return grants(self.system_role.permissions, module, action)

    # project level

    def get_team_member(self, project: Project | None) -> TeamMember | None:
        if project is None or self.user is None:
            return None
        for member in project.team_members or []:
            if member.user_id == self.user.id:
                return member
        return None

    def get_user_project_role(
        self,
        project: Project | None,
        project_roles: Sequence[ProjectRole] | None,
    ) -> ProjectRole | None:
        if project is None or not project_roles:
            return None
        member = self.get_team_member(project)
        if member is None or member.project_role_id is None:
            return None
        # a dangling id resolves exactly like an unset one
        for role in project_roles:
            if role.id == member.project_role_id:
                return role
        return None

    def has_project_permission(
        self,
        module: Module,
        action: PermissionAction,
        project: Project | None,
        project_roles: Sequence[ProjectRole] | None,
    ) -> bool:
        if self.is_super_admin:
            return True
        if self.has_permission(module, action):
            return True
        if project is None or project_roles is None or self.user is None:
            return False
        role = self.get_user_project_role(project, project_roles)
        if role is None:
            return False
        return grants(role.permissions, module, action)

    def effective_scope(
        self,
        module: Module,
        action: PermissionAction,
        project: Project | None = None,
        project_roles: Sequence[ProjectRole] | None = None,
    ) -> PermissionScope:
        """Broadest scope for ``(module, action)`` among the sources that grant it.

        A source that lists the module but not the action contributes nothing, so
        a read-only project role never widens the scope of a write.
        """
        if self.is_super_admin:
            return PermissionScope.global_
        if self.user is None:
            return PermissionScope.none
        system = granted_scope(
            self.system_role.permissions if self.system_role else None, module, action
        )
        role = self.get_user_project_role(project, project_roles)
        scoped = (
            granted_scope(role.permissions, module, action) if role is not None else PermissionScope.none
        )
        return _broadest(system, scoped)

    def covers_project(
        self,
        module: Module,
        action: PermissionAction,
        project: Project | None,
        project_roles: Sequence[ProjectRole] | None,
    ) -> bool:
        """Whether the scope of ``(module, action)`` reaches ``project`` at all.

        ``global`` reaches every project. ``project`` and ``own`` only reach projects
        the user belongs to; for the projects module ``own`` means the user manages
        it. Record-level ``own`` narrowing is left to the caller.
        """
        if self.is_super_admin:
            return True
        if project is None or self.user is None:
            return False
        scope = self.effective_scope(module, action, project, project_roles)
        if scope == PermissionScope.global_:
            return True
        if scope == PermissionScope.none:
            return False
        if scope == PermissionScope.own and Module(module) == Module.projects:
            return project.manager_id == self.user.id
        return self.can_access_project(project.id) or self.get_team_member(project) is not None

    def permission_matrix(
        self,
        project: Project | None = None,
        project_roles: Sequence[ProjectRole] | None = None,
    ) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        for module in Module:
            out[module.value] = [
                action.value
                for action in PermissionAction
                if self.has_project_permission(module, action, project, project_roles)
            ]
        return out

    # membership

    def can_access_project(self, project_id: uuid.UUID | str) -> bool:
        if self.user is None:
            return False
        if self.is_super_admin or self.is_finance_incharge:
            return True
        return str(project_id) in (self.user.projects or [])

    def can_manage_project(self, project_id: uuid.UUID | str) -> bool:
        if self.user is None:
            return False
        if self.is_super_admin:
            return True
        return self.is_project_manager and str(project_id) in (self.user.projects or [])

    # coarse flags, never a substitute for the module/action check

    @property
    def can_access_sensitive_data(self) -> bool:
        return self.is_super_admin or self.is_finance_incharge

    @property
    def can_access_all_projects(self) -> bool:
        return self.is_super_admin or self.is_finance_incharge

    @property
    def can_access_global_assets(self) -> bool:
        return self.is_super_admin or self.is_finance_incharge
