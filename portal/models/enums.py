from enum import Enum

class UserRole(str, Enum):
    superuser = "superuser"
    finance_incharge = "finance_incharge"
    project_manager = "project_manager"
    qa_manager = "qa_manager"
    analyst = "analyst"

class Module(str, Enum):
    finance = "finance"
    documents = "documents"
    projects = "projects"
    assets = "assets"
    tasks = "tasks"
    announcements = "announcements"
    rbac = "rbac"

class PermissionAction(str, Enum):
    create = "create"
    read = "read"
    update = "update"
    delete = "delete"

class PermissionScope(str, Enum):
    none = "none"
    own = "own"
    project = "project"
    global_ = "global"

# ordered narrowest first
SCOPE_RANK: dict[PermissionScope, int] = {
    PermissionScope.none: 0,
    PermissionScope.own: 1,
    PermissionScope.project: 2,
    PermissionScope.global_: 3,
}

class TeamRole(str, Enum):
    manager = "manager"
    lead = "lead"
    member = "member"
    viewer = "viewer"

class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in_progress"
    review = "review"
    done = "done"
