from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from portal.models.enums import Module, PermissionAction, PermissionScope

class Permission(BaseModel):
    actions: list[PermissionAction] = []
    scope: PermissionScope = PermissionScope.none

    @field_validator("actions")
    @classmethod
    def _dedupe(cls, v: list[PermissionAction]) -> list[PermissionAction]:
        return list(dict.fromkeys(v))

class RolePermissions(BaseModel):
    # every module is required, a role never omits one
    finance: Permission
    documents: Permission
    projects: Permission
    assets: Permission
    tasks: Permission
    announcements: Permission
    rbac: Permission

    @classmethod
    def empty(cls) -> "RolePermissions":
        return cls(**{m.value: Permission() for m in Module})

    def to_doc(self) -> dict:
        return self.model_dump(mode="json")

class RoleCreateIn(BaseModel):
    id: str | None = None
    name: str
    description: str = ""
    permissions: RolePermissions

class RoleUpdateIn(BaseModel):
    name: str | None = None
    description: str | None = None
    permissions: RolePermissions | None = None

class RoleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    is_system: bool
    permissions: dict
    created_at: datetime
    updated_at: datetime
