"""
Health endpoint — database connectivity.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db
from app.schemas.common import ApiResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


class HealthStatus(BaseModel):
    db: bool


@router.get("/health", response_model=ApiResponse[HealthStatus])
async def health(response: Response, db: AsyncSession = Depends(get_db)) -> ApiResponse[HealthStatus]:
    """Public health check; 503 while the database is unreachable."""
    ok = True
    try:
        await db.execute(select(1))
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        ok = False
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ApiResponse(success=ok, data=HealthStatus(db=ok))
