"""
Token model — an issued bearer credential bound to a device / IP pair.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, String

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow

TOKEN_TYPES = ("access", "verification")


class Token(Base):
    __tablename__ = "tokens"

    id: str = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))  # type: ignore[assignment]
    user_id: str = Column(  # type: ignore[assignment]
        "userId",
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: str = Column(String(128), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    type: str = Column(String(20), nullable=False, default="access")  # type: ignore[assignment]
    # access | verification
    device: str = Column(String(255), nullable=False, default="")  # type: ignore[assignment]
    ip_address: str = Column("ipAddress", String(64), nullable=False, default="")  # type: ignore[assignment]
    created_at: datetime = Column("createdAt", UTCDateTime, nullable=False, default=utcnow)  # type: ignore[assignment]
    expires_at: datetime = Column("expiresAt", UTCDateTime, nullable=False, index=True)  # type: ignore[assignment]

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or utcnow())

    def __repr__(self) -> str:
        return f"<Token {self.id} user={self.user_id} type={self.type}>"
