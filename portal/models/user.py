import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from portal.models.base import Base, JSONType, utcnow
from portal.models.enums import UserRole

class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    # system role tag, also the id of the matching system Role row
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"), nullable=False, default=UserRole.analyst
    )

    # ordered project ids (str), no duplicates
    projects: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

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

    def add_project(self, project_id: uuid.UUID | str) -> None:
        pid = str(project_id)
        if pid not in (self.projects or []):
            # reassign, json columns don't track in-place mutation
            self.projects = [*(self.projects or []), pid]

    def remove_project(self, project_id: uuid.UUID | str) -> None:
        pid = str(project_id)
        self.projects = [p for p in (self.projects or []) if p != pid]
