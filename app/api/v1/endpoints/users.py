"""
User management endpoints (admin only).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.v1.deps import get_user_store, require_admin
from app.models.user import User
from app.schemas.common import ApiResponse, DeleteResult
from app.schemas.user import UserCreate, UserPublic, UserUpdate
from app.stores.user_store import UserStore

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ApiResponse[UserPublic], status_code=201)
async def create_user(
    body: UserCreate,
    users: UserStore = Depends(get_user_store),
    _admin: User = Depends(require_admin),
) -> ApiResponse[UserPublic]:
    """Create a new user account."""
    user = await users.create(**body.model_dump())
    return ApiResponse(data=UserPublic.model_validate(user))


@router.get("", response_model=ApiResponse[list[UserPublic]])
async def list_users(
    users: UserStore = Depends(get_user_store),
    _admin: User = Depends(require_admin),
) -> ApiResponse[list[UserPublic]]:
    return ApiResponse(data=[UserPublic.model_validate(u) for u in await users.find_all()])


@router.get("/{user_id}", response_model=ApiResponse[UserPublic])
async def get_user(
    user_id: str,
    users: UserStore = Depends(get_user_store),
    _admin: User = Depends(require_admin),
) -> ApiResponse[UserPublic]:
    user = await users.find_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return ApiResponse(data=UserPublic.model_validate(user))


@router.patch("/{user_id}", response_model=ApiResponse[UserPublic])
async def update_user(
    user_id: str,
    body: UserUpdate,
    users: UserStore = Depends(get_user_store),
    _admin: User = Depends(require_admin),
) -> ApiResponse[UserPublic]:
    """Partial update; a password is only re-hashed when it actually changes."""
    # Only openIdSub may be cleared with an explicit null
    changes = {
        field: value
        for field, value in body.model_dump(exclude_unset=True).items()
        if value is not None or field == "open_id_sub"
    }
    user = await users.update(user_id, **changes)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Updated user %s", user_id)
    return ApiResponse(data=UserPublic.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[DeleteResult])
async def delete_user(
    user_id: str,
    users: UserStore = Depends(get_user_store),
    _admin: User = Depends(require_admin),
) -> ApiResponse[DeleteResult]:
    """Delete a user and every token it holds."""
    if not await users.delete(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return ApiResponse(data=DeleteResult(deleted=True))
