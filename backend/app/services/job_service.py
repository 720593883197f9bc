"""Job catalog queries and mutations."""

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.application import Application
from app.models.base import utcnow
from app.models.job import Job, JobStatus
from app.models.user import User, UserRole
from app.schemas.job import JobForm
from app.services.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)


def escape_like(value: str) -> str:
    """Escape % and _ characters for use in ILIKE patterns."""
    return value.replace("%", r"\%").replace("_", r"\_")


def visible_to_students():
    """SQL criteria for jobs students can see and apply to."""
    return (Job.status == JobStatus.active.value, Job.deadline > utcnow())


async def create_job(db: AsyncSession, company: User, form: JobForm) -> Job:
    if company.role != UserRole.company.value:
        raise ValidationError("Only company accounts can post jobs")

    company_name = company.company_name or company.name
    if not company_name:
        raise ValidationError("Please update your company profile with company name first.")

    job = Job(company_id=company.id, company_name=company_name, **form.to_fields())
    db.add(job)
    await db.flush()

    logger.info("Company %s posted job %s (%s)", company.email, job.id, job.title)
    return job


async def get_job(db: AsyncSession, job_id: UUID, company_id: UUID | None = None) -> Job:
    """Fetch a job; with ``company_id`` the job must belong to that company."""
    query = select(Job).where(Job.id == job_id)
    if company_id is not None:
        query = query.where(Job.company_id == company_id)
    job = (await db.execute(query)).scalar_one_or_none()
    if not job:
        raise NotFound("Job not found")
    return job


async def get_visible_job(db: AsyncSession, job_id: UUID) -> Job:
    job = (await db.execute(select(Job).where(Job.id == job_id, *visible_to_students()))).scalar_one_or_none()
    if not job:
        raise NotFound("Job not found or no longer active")
    return job


async def update_job(db: AsyncSession, job_id: UUID, form: JobForm, company_id: UUID | None = None) -> Job:
    """Replace a job's editable fields. Status may move freely between active and closed."""
    job = await get_job(db, job_id, company_id)
    for field, value in form.to_fields().items():
        setattr(job, field, value)
    await db.flush()

    logger.info("Job %s updated (status=%s)", job.id, job.status)
    return job


async def delete_jobs(db: AsyncSession, job_ids: list[UUID]) -> int:
    """Delete jobs and every application referencing them.

    Both statements run in the caller's transaction, so the cascade commits
    or rolls back as a unit.
    """
    if not job_ids:
        return 0
    apps = await db.execute(delete(Application).where(Application.job_id.in_(job_ids)))
    jobs = await db.execute(delete(Job).where(Job.id.in_(job_ids)))
    logger.info("Deleted %d job(s) and %d application(s)", jobs.rowcount, apps.rowcount)
    return jobs.rowcount


async def delete_job(db: AsyncSession, job_id: UUID, company_id: UUID | None = None) -> None:
    job = await get_job(db, job_id, company_id)
    await delete_jobs(db, [job.id])


async def list_jobs(
    db: AsyncSession,
    company_id: UUID | None = None,
    status: str | None = None,
    visible_only: bool = False,
    search: str | None = None,
    limit: int | None = None,
) -> list[Job]:
    """List jobs, newest first."""
    query = select(Job)

    if company_id is not None:
        query = query.where(Job.company_id == company_id)
    if status:
        query = query.where(Job.status == status)
    if visible_only:
        query = query.where(*visible_to_students())
    if search:
        query = query.where(Job.title.ilike(f"%{escape_like(search)}%", escape="\\"))

    query = query.order_by(Job.created_at.desc())
    if limit:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def application_counts(db: AsyncSession, job_ids: list[UUID]) -> dict[UUID, int]:
    """Number of applications per job."""
    if not job_ids:
        return {}
    result = await db.execute(
        select(Application.job_id, func.count(Application.id).label("count"))
        .where(Application.job_id.in_(job_ids))
        .group_by(Application.job_id)
    )
    return {row.job_id: row.count for row in result}


async def count_jobs(db: AsyncSession, company_id: UUID | None = None, status: str | None = None) -> int:
    query = select(func.count(Job.id))
    if company_id is not None:
        query = query.where(Job.company_id == company_id)
    if status:
        query = query.where(Job.status == status)
    return (await db.execute(query)).scalar() or 0
