import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from portal.models.enums import TeamRole
from portal.schemas.roles import RolePermissions

class ProjectCreateIn(BaseModel):
    name: str
    description: str = ""
    code: str = ""

class ProjectUpdateIn(BaseModel):
    name: str | None = None
    description: str | None = None
    code: str | None = None
    is_archived: bool | None = None

class TeamMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    user_name: str
    role: TeamRole
    project_role_id: uuid.UUID | None
    project_role_name: str | None
    joined_at: datetime

class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str
    code: str
    manager_id: uuid.UUID | None
    manager_name: str
    is_archived: bool
    team_members: list[TeamMemberOut]

class MemberAddIn(BaseModel):
    user_id: uuid.UUID
    role: TeamRole = TeamRole.member
    project_role_id: uuid.UUID | None = None

class MemberRoleIn(BaseModel):
    project_role_id: uuid.UUID

class ProjectRoleCreateIn(BaseModel):
    name: str
    description: str = ""
    color: str | None = None
    permissions: RolePermissions

class ProjectRoleUpdateIn(BaseModel):
    name: str | None = None
    description: str | None = None
    color: str | None = None
    permissions: RolePermissions | None = None

class ProjectRoleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    name: str
    description: str
    color: str
    is_default: bool
    permissions: dict
