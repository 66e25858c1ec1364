"""Response envelope shared by every endpoint.

Failures never go through these models; the exception handlers render
``{"success": false, "message": ...}`` directly.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool = True
    data: DataT | None = None


class DeleteResult(BaseModel):
    deleted: bool
