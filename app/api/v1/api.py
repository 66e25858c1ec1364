"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, health, users

api_router = APIRouter()

# Login, current user, own tokens
api_router.include_router(auth.router)

# Account management (admin)
api_router.include_router(users.router)

# Liveness
api_router.include_router(health.router)
