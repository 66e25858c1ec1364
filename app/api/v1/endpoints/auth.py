"""
Auth endpoints — login, current user, and the caller's own tokens.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.deps import (
    ClientContext,
    get_auth_service,
    get_bearer_token,
    get_client_context,
    get_current_user,
    get_token_store,
)
from app.core.config import settings
from app.models.user import User
from app.schemas.common import ApiResponse, DeleteResult
from app.schemas.token import LoginData, LoginRequest, TokenRead
from app.schemas.user import UserPublic
from app.services.auth import AuthService
from app.stores.token_store import TokenStore

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=ApiResponse[LoginData])
async def login(
    body: LoginRequest,
    client: ClientContext = Depends(get_client_context),
    auth: AuthService = Depends(get_auth_service),
) -> ApiResponse[LoginData]:
    """Authenticate with email / password. Reuses a live token for the same device and IP."""
    try:
        result = await asyncio.wait_for(
            auth.login(body.email, body.password, client.device, client.ip_address),
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error("Login timed out after %ss", settings.REQUEST_TIMEOUT_SECONDS)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Request timed out",
        )

    return ApiResponse(
        data=LoginData(
            token=result.token.token,
            user=UserPublic.model_validate(result.user),
        )
    )


@router.get("/me", response_model=ApiResponse[UserPublic])
async def read_current_user(
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserPublic]:
    """Return profile of the currently authenticated user."""
    return ApiResponse(data=UserPublic.model_validate(current_user))


@router.get("/tokens", response_model=ApiResponse[list[TokenRead]])
async def list_my_tokens(
    current_user: User = Depends(get_current_user),
    tokens: TokenStore = Depends(get_token_store),
) -> ApiResponse[list[TokenRead]]:
    """List every token issued to the caller, expired ones included."""
    owned = await tokens.find_by_user_id(current_user.id)
    return ApiResponse(data=[TokenRead.model_validate(t) for t in owned])


@router.delete("/tokens/{token_id}", response_model=ApiResponse[DeleteResult])
async def delete_my_token(
    token_id: str,
    current_user: User = Depends(get_current_user),
    tokens: TokenStore = Depends(get_token_store),
) -> ApiResponse[DeleteResult]:
    """Sign one of the caller's devices out."""
    token = await tokens.find_by_id(token_id)
    if token is None or token.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Token not found")
    deleted = await tokens.delete(token_id)
    return ApiResponse(data=DeleteResult(deleted=deleted))


@router.post("/logout", response_model=ApiResponse[DeleteResult])
async def logout(
    secret: str = Depends(get_bearer_token),
    current_user: User = Depends(get_current_user),
    tokens: TokenStore = Depends(get_token_store),
) -> ApiResponse[DeleteResult]:
    """Delete the token presented with this request."""
    deleted = False
    for token in await tokens.find_by_user_id(current_user.id):
        if token.token == secret:
            deleted = await tokens.delete(token.id)
            break
    logger.info("User %s logged out", current_user.id)
    return ApiResponse(data=DeleteResult(deleted=deleted))
