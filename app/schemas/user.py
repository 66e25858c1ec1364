"""Pydantic schemas for User CRUD.

JSON keys are camelCase (``firstName``, ``openIdSub`` ...); snake_case is
accepted on input as well.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from app.models.user import USER_ROLES, USER_STATUSES

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _check_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


class UserCreate(BaseModel):
    model_config = _CAMEL

    first_name: str = ""
    last_name: str = ""
    email: str
    phone: str = ""
    password: str
    role: str = "user"
    status: str = "active"
    open_id_sub: str | None = None

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if not v:
            raise ValueError("Missing required parameter: password")
        return v

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        if v not in USER_ROLES:
            raise ValueError(f"Role must be one of: {USER_ROLES}")
        return v

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v: str) -> str:
        if v not in USER_STATUSES:
            raise ValueError(f"Status must be one of: {USER_STATUSES}")
        return v


class UserUpdate(BaseModel):
    model_config = _CAMEL

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    password: str | None = None
    role: str | None = None
    status: str | None = None
    open_id_sub: str | None = None

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str | None) -> str | None:
        return _check_email(v) if v is not None else v

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str | None) -> str | None:
        if v is not None and v not in USER_ROLES:
            raise ValueError(f"Role must be one of: {USER_ROLES}")
        return v

    @field_validator("status")
    @classmethod
    def _validate_status(cls, v: str | None) -> str | None:
        if v is not None and v not in USER_STATUSES:
            raise ValueError(f"Status must be one of: {USER_STATUSES}")
        return v


class UserPublic(BaseModel):
    """Everything about an account except the password hash."""

    model_config = _CAMEL

    id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    role: str
    status: str
    open_id_sub: str | None
    created_at: datetime
    updated_at: datetime
