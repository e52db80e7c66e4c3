import uuid
from pydantic import BaseModel

from portal.models.enums import TaskStatus

class TaskCreateIn(BaseModel):
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.todo
    assigned_to: uuid.UUID | None = None

class TaskUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    position: int | None = None
    assigned_to: uuid.UUID | None = None

class TaskOut(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    title: str
    description: str
    status: TaskStatus
    position: int
    created_by: uuid.UUID
    assigned_to: uuid.UUID | None
