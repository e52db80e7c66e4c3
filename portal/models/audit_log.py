import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from portal.models.base import Base, JSONType, utcnow

class AuditLog(Base):
    """One row per RBAC administration write.

    Rows outlive the users, roles and projects they mention, so none of the
    ids below carry a foreign key.
    """

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    action: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    entity_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    project_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True, nullable=True)

    actor_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    actor_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    # {"before": {...}, "after": {...}}
    changes: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
