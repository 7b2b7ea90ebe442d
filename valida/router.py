"""Central API router aggregating all domain routers."""

from fastapi import APIRouter

from valida.auth.router import router as auth_router
from valida.copywriting.router import router as copy_router
from valida.dashboard.router import router as dashboard_router
from valida.generation.router import router as generation_router
from valida.health.router import router as health_router
from valida.imaging.router import router as images_router
from valida.profile.router import router as profile_router
from valida.realtime.router import router as realtime_router
from valida.webhook.router import router as webhook_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(generation_router)
api_router.include_router(realtime_router)
api_router.include_router(copy_router)
api_router.include_router(images_router)
api_router.include_router(webhook_router)
api_router.include_router(dashboard_router)
