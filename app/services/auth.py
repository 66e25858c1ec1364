"""
Authentication service — credential check and session token issuance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.exceptions import INVALID_CREDENTIALS, AuthenticationFailure
from app.core.security import burn_password_check, verify_password
from app.models.token import Token
from app.models.user import User
from app.stores.user_store import UserLookupField, UserStore

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Invalid or expired token"


@dataclass
class LoginResult:
    token: Token
    user: User


class AuthService:
    def __init__(self, users: UserStore) -> None:
        self.users = users

    async def login(self, email: str, password: str, device: str, ip_address: str) -> LoginResult:
        """Verify credentials and hand back a (possibly reused) access token.

        Every failure raises the same AuthenticationFailure so callers cannot
        tell an unknown email from a wrong password.
        """
        user = await self.users.find_by_field(UserLookupField.EMAIL, email)

        if user is None:
            burn_password_check(password)
            logger.debug("Login failed: no account for the given email")
            raise AuthenticationFailure(INVALID_CREDENTIALS)

        if not verify_password(password, user.password):
            logger.debug("Login failed: password mismatch for user %s", user.id)
            raise AuthenticationFailure(INVALID_CREDENTIALS)

        if user.status != "active":
            logger.info("Login refused for user %s with status %s", user.id, user.status)
            raise AuthenticationFailure(INVALID_CREDENTIALS)

        token = await self.users.create_access_token(user, device=device, ip_address=ip_address)
        logger.info("User %s logged in (token %s)", user.id, token.id)
        return LoginResult(token=token, user=user)

    async def authenticate_token(self, secret: str) -> User:
        user = await self.users.find_by_token(secret) if secret else None
        if user is None or user.status != "active":
            raise AuthenticationFailure(INVALID_TOKEN)
        return user
