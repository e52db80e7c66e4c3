from portal.models.audit_log import AuditLog
from portal.models.project import Project
from portal.models.project_role import ProjectRole
from portal.models.role import Role
from portal.models.task import Task
from portal.models.team_member import TeamMember
from portal.models.user import User

__all__ = ["User", "Role", "Project", "ProjectRole", "TeamMember", "Task", "AuditLog"]
