"""Narrow record queries to what a permission scope lets a user see."""

from sqlalchemy import Select, false, or_

from portal.models.enums import PermissionScope
from portal.models.task import Task
from portal.models.user import User

def apply_task_scope(q: Select, scope: PermissionScope, user: User | None) -> Select:
    """Restrict a task query already filtered to one project.

    Callers must have checked that the scope reaches the project. Within it,
    ``global`` and ``project`` see every task, ``own`` only the tasks the user
    created or is assigned to, ``none`` nothing.
    """
    if scope in (PermissionScope.global_, PermissionScope.project):
        return q
    if scope == PermissionScope.own and user is not None:
        return q.where(or_(Task.created_by == user.id, Task.assigned_to == user.id))
    # impossible filter
    return q.where(false())
