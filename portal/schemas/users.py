import uuid
from pydantic import BaseModel, ConfigDict, EmailStr

from portal.models.enums import UserRole

class UserCreateIn(BaseModel):
    email: EmailStr
    display_name: str = ""
    role: UserRole = UserRole.analyst

class UserUpdateIn(BaseModel):
    display_name: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    display_name: str
    role: UserRole
    projects: list[str]
    is_active: bool

class MeOut(UserOut):
    is_super_admin: bool
    can_access_sensitive_data: bool
    can_access_all_projects: bool
    can_access_global_assets: bool

class PermissionMatrixOut(BaseModel):
    project_id: uuid.UUID | None = None
    project_role: str | None = None
    permissions: dict[str, list[str]]
