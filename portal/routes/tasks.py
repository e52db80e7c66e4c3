import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from portal.db import get_db
from portal.models.enums import Module, PermissionAction, PermissionScope
from portal.models.task import Task
from portal.models.user import User
from portal.rbac.deps import ProjectContext, require_project_perm
from portal.rbac.filters import apply_task_scope
from portal.schemas.tasks import TaskCreateIn, TaskOut, TaskUpdateIn

router = APIRouter(prefix="/projects/{project_id}/tasks", tags=["tasks"])

def _out(t: Task) -> TaskOut:
    return TaskOut(
        id=t.id,
        project_id=t.project_id,
        title=t.title,
        description=t.description,
        status=t.status,
        position=t.position,
        created_by=t.created_by,
        assigned_to=t.assigned_to,
    )

def _get_task(db: Session, ctx: ProjectContext, task_id: uuid.UUID) -> Task:
    t = db.scalar(select(Task).where(Task.id == task_id, Task.project_id == ctx.project.id))
    if t is None:
        raise HTTPException(status_code=404, detail="task not found")
    return t

def _require_own(ctx: ProjectContext, t: Task, action: PermissionAction) -> None:
    # own-scoped writers may only touch tasks they created or hold
    if ctx.scope(Module.tasks, action) == PermissionScope.own:
        user_id = ctx.perms.user.id
        if t.created_by != user_id and t.assigned_to != user_id:
            raise HTTPException(status_code=403, detail="forbidden")

def _check_assignee(db: Session, ctx: ProjectContext, user_id: uuid.UUID | None) -> None:
    if user_id is None:
        return
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="user not found")
    if not any(m.user_id == user_id for m in ctx.project.team_members):
        raise HTTPException(status_code=400, detail="assignee is not a project member")

@router.post("", response_model=TaskOut)
def create_task(
    payload: TaskCreateIn,
    ctx: ProjectContext = Depends(require_project_perm("tasks", "create")),
    db: Session = Depends(get_db),
) -> TaskOut:
    _check_assignee(db, ctx, payload.assigned_to)

    # append to the bottom of its column
    last = db.scalar(
        select(func.max(Task.position)).where(
            Task.project_id == ctx.project.id, Task.status == payload.status
        )
    )
    t = Task(
        project_id=ctx.project.id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
        position=(last + 1) if last is not None else 0,
        created_by=ctx.perms.user.id,
        assigned_to=payload.assigned_to,
    )
    db.add(t)
    db.commit()
    db.refresh(t)
    return _out(t)

@router.get("", response_model=list[TaskOut])
def list_tasks(
    ctx: ProjectContext = Depends(require_project_perm("tasks", "read")),
    db: Session = Depends(get_db),
) -> list[TaskOut]:
    scope = ctx.scope(Module.tasks, PermissionAction.read)
    q = (
        select(Task)
        .where(Task.project_id == ctx.project.id)
        .order_by(Task.status, Task.position, Task.created_at)
    )
    q = apply_task_scope(q, scope, ctx.perms.user)
    return [_out(t) for t in db.scalars(q).all()]

@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdateIn,
    ctx: ProjectContext = Depends(require_project_perm("tasks", "update")),
    db: Session = Depends(get_db),
) -> TaskOut:
    t = _get_task(db, ctx, task_id)
    _require_own(ctx, t, PermissionAction.update)
    if "assigned_to" in payload.model_fields_set:
        _check_assignee(db, ctx, payload.assigned_to)

    if payload.title is not None:
        t.title = payload.title
    if payload.description is not None:
        t.description = payload.description
    if payload.status is not None:
        t.status = payload.status
    if payload.position is not None:
        t.position = payload.position

    # allow explicit unassign by sending null
    if "assigned_to" in payload.model_fields_set:
        t.assigned_to = payload.assigned_to

    db.add(t)
    db.commit()
    db.refresh(t)
    return _out(t)

@router.delete("/{task_id}")
def delete_task(
    task_id: uuid.UUID,
    ctx: ProjectContext = Depends(require_project_perm("tasks", "delete")),
    db: Session = Depends(get_db),
) -> dict:
    t = _get_task(db, ctx, task_id)
    _require_own(ctx, t, PermissionAction.delete)
    db.delete(t)
    db.commit()
    return {"deleted": True}
