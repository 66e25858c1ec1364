"""
FastAPI dependencies — database session, stores, client context and auth guards.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationFailure
from app.db.session import async_session_factory
from app.models.user import User
from app.services.auth import AuthService
from app.stores.token_store import TokenStore
from app.stores.user_store import UserStore

bearer_scheme = HTTPBearer(auto_error=False)

# Checked in order; the first non-empty header wins.
_IP_HEADERS = ("CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP", "X-Client-IP", "X-Host")


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Stores & services ───────────────────────────────────────────────
async def get_token_store(db: AsyncSession = Depends(get_db)) -> TokenStore:
    return TokenStore(db)


async def get_user_store(
    db: AsyncSession = Depends(get_db),
    tokens: TokenStore = Depends(get_token_store),
) -> UserStore:
    return UserStore(db, tokens)


async def get_auth_service(users: UserStore = Depends(get_user_store)) -> AuthService:
    return AuthService(users)


# ── Client context ──────────────────────────────────────────────────
@dataclass
class ClientContext:
    device: str
    ip_address: str


def get_client_context(request: Request) -> ClientContext:
    """Derive the device / IP pair a token gets bound to."""
    ip_address = ""
    for header in _IP_HEADERS:
        value = request.headers.get(header)
        if value:
            # X-Forwarded-For lists every hop; the first one is the client
            ip_address = value.split(",")[0].strip()
            break
    if not ip_address and request.client is not None:
        ip_address = request.client.host or ""

    device = (
        request.headers.get("X-Device-Id")
        or request.headers.get("User-Agent")
        or "unknown"
    )
    return ClientContext(device=device[:255], ip_address=ip_address[:64])


# ── Auth dependencies ───────────────────────────────────────────────
async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the bearer secret to its (active) owner."""
    try:
        return await auth.authenticate_token(token)
    except AuthenticationFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """Only allow admin role to proceed."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
