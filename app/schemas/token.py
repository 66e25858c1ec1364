"""Pydantic schemas for login and issued tokens."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from app.schemas.user import UserPublic


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", "password")
    @classmethod
    def _required(cls, v: str, info: ValidationInfo) -> str:
        if not v:
            raise ValueError(f"Missing required parameter: {info.field_name}")
        return v


class LoginData(BaseModel):
    token: str
    user: UserPublic


class TokenRead(BaseModel):
    """An issued token as shown to its owner; the secret is never echoed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    user_id: str
    type: str
    device: str
    ip_address: str
    created_at: datetime
    expires_at: datetime
