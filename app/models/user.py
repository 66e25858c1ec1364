"""
User model — account identity, hashed credential, role and status.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, String

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow

USER_ROLES = ("user", "admin")
USER_STATUSES = ("active", "inactive", "banned", "deleted")


class User(Base):
    __tablename__ = "users"

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))  # type: ignore[assignment]
    first_name: str = Column("firstName", String(100), nullable=False, default="")  # type: ignore[assignment]
    last_name: str = Column("lastName", String(100), nullable=False, default="")  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    phone: str = Column(String(30), nullable=False, default="")  # type: ignore[assignment]
    password: str = Column(String(128), nullable=False)  # type: ignore[assignment]  # bcrypt hash
    role: str = Column(String(20), nullable=False, default="user", server_default="user")  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="active",
        server_default="active",
    )  # active | inactive | banned | deleted
    open_id_sub: str | None = Column("openIdSub", String(255), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column("createdAt", UTCDateTime, nullable=False, default=utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column("updatedAt", UTCDateTime, nullable=False, default=utcnow)  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
