"""Job API endpoints (the catalog as students see it)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import require_user_api
from app.models.base import get_db
from app.models.user import User
from app.schemas.job import JobRead, JobSummary
from app.services import job_service

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=list[JobSummary])
async def list_jobs(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_user_api),
    search: str | None = Query(None, min_length=2, description="Search in title"),
    company_id: UUID | None = Query(None, description="Filter by company"),
    limit: int = Query(50, ge=1, le=100),
):
    """List jobs open to applications."""
    return await job_service.list_jobs(db, company_id=company_id, visible_only=True, search=search, limit=limit)


@router.get("/{job_id}", response_model=JobRead)
async def get_job(
    job_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_user_api),
):
    return await job_service.get_visible_job(db, job_id)
