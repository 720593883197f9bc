"""Application workflow: applying, status changes and interview scheduling."""

import enum
import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import get_settings
from app.models.application import Application
from app.models.base import as_utc, utcnow
from app.models.job import Job, JobStatus
from app.models.user import User, UserRole
from app.schemas.application import InterviewDetails, StatusUpdate
from app.services.errors import (
    DeadlinePassed,
    DuplicateApplication,
    InvalidStatusTransition,
    JobUnavailable,
    NotAuthorized,
    NotFound,
    ResumeRequired,
    ValidationError,
)

logger = logging.getLogger(__name__)
settings = get_settings()


class ApplicationStatus(str, enum.Enum):
    pending = "pending"
    shortlisted = "shortlisted"
    rejected = "rejected"
    hired = "hired"


# Companies may move an application between any two statuses.
TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    status: frozenset(ApplicationStatus) for status in ApplicationStatus
}


def parse_status(value: str) -> ApplicationStatus:
    """Case-insensitive status lookup."""
    try:
        return ApplicationStatus((value or "").strip().lower())
    except ValueError:
        raise ValidationError("Invalid status value")


def allowed_transitions(current: ApplicationStatus) -> frozenset[ApplicationStatus]:
    allowed = TRANSITIONS[current]
    if current == ApplicationStatus.hired and not settings.allow_hired_revert:
        allowed = allowed - {ApplicationStatus.pending}
    return allowed


def check_transition(current: str, new: ApplicationStatus) -> None:
    if new not in allowed_transitions(parse_status(current)):
        raise InvalidStatusTransition(f"Cannot change status from {current} to {new.value}")


def _with_related(query):
    return query.options(
        selectinload(Application.job),
        selectinload(Application.student),
        selectinload(Application.company),
    )


async def apply(
    db: AsyncSession,
    student: User,
    job_id: UUID,
    cover_letter: str | None = None,
) -> Application:
    """Submit a student's application to a job.

    Checks run in a fixed order: the job must exist, its deadline must not
    have passed (even for closed jobs), it must be active, the student must
    have a resume on file, and there must be no earlier application.
    """
    job = (await db.execute(select(Job).where(Job.id == job_id))).scalar_one_or_none()
    if not job:
        raise JobUnavailable()
    if as_utc(job.deadline) < utcnow():
        raise DeadlinePassed()
    if job.status != JobStatus.active.value:
        raise JobUnavailable()
    if not student.resume:
        raise ResumeRequired()

    existing = await db.execute(
        select(Application.id).where(Application.student_id == student.id, Application.job_id == job.id)
    )
    if existing.scalar_one_or_none():
        raise DuplicateApplication()

    application = Application(
        student_id=student.id,
        job_id=job.id,
        company_id=job.company_id,
        status=ApplicationStatus.pending.value,
        applied_date=utcnow(),
        resume=student.resume,
        cover_letter=(cover_letter or "").strip() or None,
    )
    db.add(application)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise DuplicateApplication()

    logger.info("Student %s applied to job %s", student.email, job.id)
    return application


async def get_application(db: AsyncSession, application_id: UUID) -> Application:
    result = await db.execute(_with_related(select(Application).where(Application.id == application_id)))
    application = result.scalar_one_or_none()
    if not application:
        raise NotFound("Application not found")
    return application


async def get_for_student(db: AsyncSession, student: User, application_id: UUID) -> Application:
    application = await get_application(db, application_id)
    if application.student_id != student.id:
        raise NotFound("Application not found")
    return application


async def _get_managed(db: AsyncSession, application_id: UUID, actor: User) -> Application:
    """Load an application the actor may manage.

    Ownership is derived from the job, not the denormalized company column.
    """
    application = await get_application(db, application_id)
    if actor.role == UserRole.admin.value:
        return application
    if actor.role != UserRole.company.value or application.job is None or application.job.company_id != actor.id:
        logger.warning("User %s tried to manage application %s", actor.email, application_id)
        raise NotAuthorized()
    return application


async def update_status(db: AsyncSession, application_id: UUID, actor: User, update: StatusUpdate) -> Application:
    application = await _get_managed(db, application_id, actor)
    new_status = parse_status(update.status)
    check_transition(application.status, new_status)

    application.status = new_status.value
    if update.feedback is not None:
        application.feedback = update.feedback
    if new_status == ApplicationStatus.shortlisted:
        for field, value in update.supplied().items():
            setattr(application, field, value.value if isinstance(value, enum.Enum) else value)
    await db.flush()

    logger.info("Application %s set to %s by %s", application.id, new_status.value, actor.email)
    return application


async def schedule_interview(
    db: AsyncSession,
    application_id: UUID,
    actor: User,
    details: InterviewDetails,
) -> Application:
    """Apply the supplied interview fields; omitted fields keep their values."""
    application = await _get_managed(db, application_id, actor)
    for field, value in details.supplied().items():
        setattr(application, field, value.value if isinstance(value, enum.Enum) else value)
    await db.flush()

    logger.info("Interview details updated for application %s", application.id)
    return application


async def _list(db: AsyncSession, *criteria, limit: int | None = None) -> list[Application]:
    query = _with_related(select(Application).where(*criteria)).order_by(Application.applied_date.desc())
    if limit:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


def _status_criteria(status: str | None) -> list:
    return [Application.status == parse_status(status).value] if status else []


async def list_for_student(
    db: AsyncSession, student_id: UUID, status: str | None = None, limit: int | None = None
) -> list[Application]:
    return await _list(db, Application.student_id == student_id, *_status_criteria(status), limit=limit)


async def list_for_company(
    db: AsyncSession,
    company_id: UUID,
    status: str | None = None,
    job_id: UUID | None = None,
    limit: int | None = None,
) -> list[Application]:
    criteria = [Application.company_id == company_id, *_status_criteria(status)]
    if job_id is not None:
        criteria.append(Application.job_id == job_id)
    return await _list(db, *criteria, limit=limit)


async def list_for_admin(
    db: AsyncSession, status: str | None = None, job_id: UUID | None = None, limit: int | None = None
) -> list[Application]:
    criteria = _status_criteria(status)
    if job_id is not None:
        criteria.append(Application.job_id == job_id)
    return await _list(db, *criteria, limit=limit)


async def upcoming_interviews(
    db: AsyncSession, student_id: UUID | None = None, company_id: UUID | None = None
) -> list[Application]:
    """Applications with an interview scheduled from now on, soonest first."""
    query = _with_related(
        select(Application).where(Application.interview_date.isnot(None), Application.interview_date >= utcnow())
    )
    if student_id is not None:
        query = query.where(Application.student_id == student_id)
    if company_id is not None:
        query = query.where(Application.company_id == company_id)
    result = await db.execute(query.order_by(Application.interview_date.asc()))
    return list(result.scalars().all())


async def status_counts(
    db: AsyncSession, student_id: UUID | None = None, company_id: UUID | None = None
) -> dict[str, int]:
    """Application counts keyed by status, plus ``total``."""
    query = select(Application.status, func.count(Application.id).label("count")).group_by(Application.status)
    if student_id is not None:
        query = query.where(Application.student_id == student_id)
    if company_id is not None:
        query = query.where(Application.company_id == company_id)

    counts = {status.value: 0 for status in ApplicationStatus}
    for row in await db.execute(query):
        counts[row.status] = row.count
    counts["total"] = sum(counts.values())
    return counts


async def applied_job_ids(db: AsyncSession, student_id: UUID) -> set[UUID]:
    result = await db.execute(select(Application.job_id).where(Application.student_id == student_id))
    return set(result.scalars().all())
