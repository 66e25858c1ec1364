"""
User repository — account CRUD, credential lookups and token issuance.

Security:
  Lookups by field go through ``UserLookupField``; the column is picked
  from a fixed mapping, never interpolated from caller input.
  ``password`` is hashed exactly once on create and only re-hashed on update
  when the supplied plaintext does not already verify against the stored hash.
"""

from __future__ import annotations

import enum
import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateEmail, InvalidArgument, PersistenceError
from app.core.security import get_password_hash, verify_password
from app.db.types import utcnow
from app.models.token import Token
from app.models.user import USER_ROLES, USER_STATUSES, User
from app.stores.token_store import TokenStore

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "email",
    "phone",
    "password",
    "role",
    "status",
    "open_id_sub",
}


class UserLookupField(str, enum.Enum):
    ID = "id"
    EMAIL = "email"
    PHONE = "phone"
    OPEN_ID_SUB = "open_id_sub"


_LOOKUP_COLUMNS = {
    UserLookupField.ID: User.id,
    UserLookupField.EMAIL: User.email,
    UserLookupField.PHONE: User.phone,
    UserLookupField.OPEN_ID_SUB: User.open_id_sub,
}


def normalise_email(email: str) -> str:
    return email.strip().lower()


def is_email_conflict(exc: IntegrityError) -> bool:
    """True when *exc* came from the unique index on ``users.email``.

    SQLite reports ``users.email``, PostgreSQL names the index ``ix_users_email``.
    """
    detail = str(exc.orig).lower()
    return "users.email" in detail or "ix_users_email" in detail


def _check_choice(name: str, value: str, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        raise InvalidArgument(f"{name} must be one of: {allowed}")


class UserStore:
    """Repository for User entities.

    Usage:
        users = UserStore(session)
        user = await users.create(first_name="Ada", last_name="L", email="ada@example.com",
                                  phone="", password="secret")
        token = await users.create_access_token(user, device="cli", ip_address="10.0.0.1")
    """

    def __init__(self, session: AsyncSession, tokens: TokenStore | None = None) -> None:
        self.session = session
        self.tokens = tokens or TokenStore(session)

    async def _commit(self, email: str | None = None) -> None:
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            if email is not None and is_email_conflict(exc):
                raise DuplicateEmail(email) from exc
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise PersistenceError("user write failed") from exc

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        phone: str,
        password: str,
        role: str = "user",
        status: str = "active",
        open_id_sub: str | None = None,
    ) -> User:
        """Insert a new account; *password* is plaintext and gets hashed here.

        Raises DuplicateEmail if another account already owns the address.
        """
        _check_choice("role", role, USER_ROLES)
        _check_choice("status", status, USER_STATUSES)
        email = normalise_email(email)
        if await self.find_by_field(UserLookupField.EMAIL, email) is not None:
            raise DuplicateEmail(email)

        now = utcnow()
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            password=get_password_hash(password),
            role=role,
            status=status,
            open_id_sub=open_id_sub,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        await self._commit(email=email)
        logger.info("Created user %s (%s)", user.id, user.email)
        return user

    async def find_by_id(self, user_id: str) -> User | None:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_field(self, field: UserLookupField, value: str) -> User | None:
        """Equality lookup on one of the whitelisted columns.

        Email values are normalised the same way they are stored.
        """
        if not isinstance(field, UserLookupField):
            raise InvalidArgument(f"Unsupported lookup field: {field!r}")
        if field is UserLookupField.EMAIL:
            value = normalise_email(value)
        column = _LOOKUP_COLUMNS[field]
        result = await self.session.execute(select(User).where(column == value).limit(1))
        return result.scalar_one_or_none()

    async def find_by_token(self, secret: str) -> User | None:
        """Resolve the owner of a bearer secret that has not yet expired."""
        result = await self.session.execute(
            select(User)
            .join(Token, Token.user_id == User.id)
            .where(Token.token == secret, Token.expires_at > utcnow())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_all(self) -> list[User]:
        result = await self.session.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def update(self, user_id: str, **fields) -> User | None:
        """Merge *fields* into an existing user. Returns None if not found.

        A supplied ``password`` is plaintext. It replaces the stored hash only
        when it does not already verify against it.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidArgument(f"Cannot update user fields: {sorted(unknown)}")
        if "role" in fields:
            _check_choice("role", fields["role"], USER_ROLES)
        if "status" in fields:
            _check_choice("status", fields["status"], USER_STATUSES)

        user = await self.find_by_id(user_id)
        if user is None:
            return None

        # The collision query autoflushes, so it must run before user is touched
        email = None
        if "email" in fields:
            email = fields["email"] = normalise_email(fields["email"])
            if email != user.email:
                other = await self.find_by_field(UserLookupField.EMAIL, email)
                if other is not None and other.id != user.id:
                    raise DuplicateEmail(email)

        password = fields.pop("password", None)
        if password and not verify_password(password, user.password):
            user.password = get_password_hash(password)
            logger.info("Password changed for user %s", user.id)

        for field, value in fields.items():
            setattr(user, field, value)
        user.updated_at = utcnow()
        await self._commit(email=email)
        return user

    async def delete(self, user_id: str) -> bool:
        """Delete a user together with all of its tokens."""
        await self.tokens.delete_for_user(user_id)
        result = await self.session.execute(delete(User).where(User.id == user_id))
        await self._commit()
        removed = result.rowcount > 0
        if removed:
            logger.info("Deleted user %s", user_id)
        return removed

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def get_access_tokens(self, user: User) -> list[Token]:
        return await self.tokens.find_by_user_id(user.id)

    async def create_access_token(self, user: User, device: str, ip_address: str) -> Token:
        """Return the user's live token for this device / IP, minting one if none.

        Two concurrent first logins from the same device may both mint a
        token; both remain valid.
        """
        if not user.id:
            raise InvalidArgument("User ID is required to create an access token")

        now = utcnow()
        for token in await self.get_access_tokens(user):
            if (
                token.type == "access"
                and token.device == device
                and token.ip_address == ip_address
                and not token.is_expired(now)
            ):
                logger.debug("Reusing token %s for user %s", token.id, user.id)
                return token

        return await self.tokens.create(user.id, "access", device, ip_address)
