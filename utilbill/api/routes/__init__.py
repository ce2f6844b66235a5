"""API routes package."""

from fastapi import APIRouter

from utilbill.api.routes import billing, health, rate_of_change

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(billing.router)
api_router.include_router(rate_of_change.router)
