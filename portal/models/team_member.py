import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portal.models.base import Base, utcnow
from portal.models.enums import TeamRole

class TeamMember(Base):
    __tablename__ = "team_members"

    # composite pk: at most one entry per user per project
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), primary_key=True)

    user_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    role: Mapped[TeamRole] = mapped_column(
        Enum(TeamRole, name="team_role"), nullable=False, default=TeamRole.member
    )

    # weak reference into project_roles, may dangle after a role is deleted
    project_role_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    project_role_name: Mapped[str | None] = mapped_column(String(120), nullable=True)

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    project: Mapped["Project"] = relationship(back_populates="team_members")
