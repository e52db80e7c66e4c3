"""Seed permission sets for system roles and per-project default roles."""

from portal.models.enums import UserRole

CRUD = ["create", "read", "update", "delete"]
CRU = ["create", "read", "update"]
CR = ["create", "read"]
R = ["read"]
NONE: list[str] = []

def _perm(actions: list[str], scope: str) -> dict:
    return {"actions": list(actions), "scope": scope}

# one per UserRole, the role id is the tag value
SYSTEM_ROLE_TEMPLATES: dict[UserRole, dict] = {
    UserRole.superuser: {
        "name": "Super Admin",
        "description": "Full system access. Manages users, roles and all system settings.",
        "permissions": {
            "finance": _perm(CRUD, "global"),
            "documents": _perm(CRUD, "global"),
            "projects": _perm(CRUD, "global"),
            "assets": _perm(CRUD, "global"),
            "tasks": _perm(CRUD, "global"),
            "announcements": _perm(CRUD, "global"),
            "rbac": _perm(CRUD, "global"),
        },
    },
    UserRole.finance_incharge: {
        "name": "Finance In-charge",
        "description": "Runs financial operations. Sees all projects and sensitive financial data.",
        "permissions": {
            "finance": _perm(CRUD, "global"),
            "documents": _perm(CR, "global"),
            "projects": _perm(R, "global"),
            "assets": _perm(R, "global"),
            "tasks": _perm(R, "global"),
            "announcements": _perm(R, "global"),
            "rbac": _perm(NONE, "none"),
        },
    },
    UserRole.project_manager: {
        "name": "Project Manager",
        "description": "Manages assigned projects. No access to sensitive financial data.",
        "permissions": {
            "finance": _perm(CRU, "project"),
            "documents": _perm(CRUD, "project"),
            "projects": _perm(CRUD, "project"),
            "assets": _perm(CRU, "project"),
            "tasks": _perm(CRUD, "project"),
            "announcements": _perm(CRU, "project"),
            "rbac": _perm(NONE, "none"),
        },
    },
    UserRole.qa_manager: {
        "name": "QA Manager",
        "description": "Reviews work in assigned projects and manages QA tasks.",
        "permissions": {
            "finance": _perm(NONE, "none"),
            "documents": _perm(CRU, "project"),
            "projects": _perm(R, "project"),
            "assets": _perm(R, "project"),
            "tasks": _perm(CRU, "project"),
            "announcements": _perm(R, "project"),
            "rbac": _perm(NONE, "none"),
        },
    },
    UserRole.analyst: {
        "name": "Analyst",
        "description": "Standard access. Participates in assigned projects.",
        "permissions": {
            "finance": _perm(NONE, "none"),
            "documents": _perm(CR, "project"),
            "projects": _perm(R, "project"),
            "assets": _perm(R, "project"),
            "tasks": _perm(CRU, "own"),
            "announcements": _perm(R, "global"),
            "rbac": _perm(NONE, "none"),
        },
    },
}

PROJECT_ADMIN_ROLE = "Project Admin"

# seeded into every new project, in this order
DEFAULT_PROJECT_ROLE_TEMPLATES: list[dict] = [
    {
        "name": PROJECT_ADMIN_ROLE,
        "description": "Full access to all project resources",
        "color": "#ef4444",
        "permissions": {
            "finance": _perm(CRUD, "project"),
            "documents": _perm(CRUD, "project"),
            "projects": _perm(["read", "update"], "project"),
            "assets": _perm(CRUD, "project"),
            "tasks": _perm(CRUD, "project"),
            "announcements": _perm(CRUD, "project"),
            "rbac": _perm(R, "none"),
        },
    },
    {
        "name": "Developer",
        "description": "Can manage tasks and documents, read-only for other resources",
        "color": "#3b82f6",
        "permissions": {
            "finance": _perm(R, "project"),
            "documents": _perm(CRU, "project"),
            "projects": _perm(R, "project"),
            "assets": _perm(R, "project"),
            "tasks": _perm(CRUD, "project"),
            "announcements": _perm(R, "project"),
            "rbac": _perm(NONE, "none"),
        },
    },
    {
        "name": "Reviewer",
        "description": "Can read all resources and update task status",
        "color": "#22c55e",
        "permissions": {
            "finance": _perm(R, "project"),
            "documents": _perm(R, "project"),
            "projects": _perm(R, "project"),
            "assets": _perm(R, "project"),
            "tasks": _perm(["read", "update"], "project"),
            "announcements": _perm(R, "project"),
            "rbac": _perm(NONE, "none"),
        },
    },
    {
        "name": "Observer",
        "description": "Read-only access to all project resources",
        "color": "#6b7280",
        "permissions": {
            "finance": _perm(R, "project"),
            "documents": _perm(R, "project"),
            "projects": _perm(R, "project"),
            "assets": _perm(R, "project"),
            "tasks": _perm(R, "project"),
            "announcements": _perm(R, "project"),
            "rbac": _perm(NONE, "none"),
        },
    },
]

# preference order when a member joins without an explicit project role
DEFAULT_MEMBER_ROLE_ORDER = ("Observer", "Developer")
