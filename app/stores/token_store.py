"""
Token repository — CRUD and expiry sweep for issued bearer credentials.

The session is injected by the caller (request dependency, sweeper, tests);
the store commits its own writes.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidArgument, PersistenceError
from app.core.security import generate_secure_string
from app.db.types import utcnow
from app.models.token import TOKEN_TYPES, Token

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"user_id", "token", "type", "device", "ip_address", "expires_at"}


class TokenStore:
    def __init__(
        self,
        session: AsyncSession,
        *,
        token_length: int | None = None,
        expires_in: timedelta | None = None,
    ) -> None:
        self.session = session
        self.token_length = token_length or settings.TOKEN_LENGTH
        self.expires_in = expires_in or timedelta(days=settings.TOKEN_EXPIRE_DAYS)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError("token write failed") from exc

    async def create(self, user_id: str, type: str, device: str, ip_address: str) -> Token:
        """Mint and persist a new token.

        The returned entity carries the plaintext secret; this is the only
        place it is handed out.
        """
        if type not in TOKEN_TYPES:
            raise InvalidArgument(f"Token type must be one of: {TOKEN_TYPES}")
        now = utcnow()
        token = Token(
            user_id=user_id,
            token=generate_secure_string(self.token_length),
            type=type,
            device=device,
            ip_address=ip_address,
            created_at=now,
            expires_at=now + self.expires_in,
        )
        self.session.add(token)
        await self._commit()
        logger.info("Issued %s token %s for user %s", type, token.id, user_id)
        return token

    async def find_by_id(self, token_id: str) -> Token | None:
        result = await self.session.execute(select(Token).where(Token.id == token_id))
        return result.scalar_one_or_none()

    async def find_by_user_id(self, user_id: str) -> list[Token]:
        """All tokens of one user, expired ones included."""
        result = await self.session.execute(
            select(Token).where(Token.user_id == user_id).order_by(Token.created_at)
        )
        return list(result.scalars().all())

    async def find_all(self) -> list[Token]:
        result = await self.session.execute(select(Token).order_by(Token.created_at))
        return list(result.scalars().all())

    async def update(self, token_id: str, **fields) -> Token | None:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidArgument(f"Cannot update token fields: {sorted(unknown)}")
        if "type" in fields and fields["type"] not in TOKEN_TYPES:
            raise InvalidArgument(f"Token type must be one of: {TOKEN_TYPES}")

        token = await self.find_by_id(token_id)
        if token is None:
            return None

        for field, value in fields.items():
            setattr(token, field, value)
        await self._commit()
        return token

    async def delete(self, token_id: str) -> bool:
        result = await self.session.execute(delete(Token).where(Token.id == token_id))
        await self._commit()
        return result.rowcount > 0

    async def delete_for_user(self, user_id: str) -> int:
        result = await self.session.execute(delete(Token).where(Token.user_id == user_id))
        await self._commit()
        return result.rowcount

    async def expire_tokens(self) -> int:
        """Delete every token whose ``expires_at`` is strictly before now."""
        result = await self.session.execute(delete(Token).where(Token.expires_at < utcnow()))
        await self._commit()
        removed = result.rowcount
        if removed:
            logger.info("Expired %d token(s)", removed)
        return removed
