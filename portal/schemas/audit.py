import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    action: str
    entity_type: str
    entity_id: str
    entity_name: str
    project_id: uuid.UUID | None
    actor_id: uuid.UUID | None
    actor_email: str | None
    changes: dict
    created_at: datetime
