"""API v1 router aggregation."""

from fastapi import APIRouter

from app.api.v1.jobs import router as jobs_router
from app.api.v1.applications import router as applications_router

router = APIRouter(prefix="/api/v1")

router.include_router(jobs_router)
router.include_router(applications_router)
