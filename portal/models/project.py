import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portal.models.base import Base, utcnow

class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    code: Mapped[str] = mapped_column(String(32), nullable=False, default="")

    manager_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    manager_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    team_members: Mapped[list["TeamMember"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TeamMember.joined_at",
    )
    roles: Mapped[list["ProjectRole"]] = relationship(
        cascade="all, delete-orphan",
        order_by="ProjectRole.name",
    )
    tasks: Mapped[list["Task"]] = relationship(cascade="all, delete-orphan")
