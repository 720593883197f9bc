"""View-model shaping for the role dashboards."""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job import JobStatus
from app.models.user import User
from app.services import application_service, job_service, user_service

PROFILE_FIELDS = ("name", "email", "phone", "branch", "year", "roll_number", "cgpa", "skills", "resume")

RECENT_LIMIT = 5


def capitalize_status(status: str | None) -> str:
    return status.capitalize() if status else ""


def _filled(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    # a CGPA of 0 counts as not entered
    return bool(value)


def profile_completion(student: User) -> int:
    """Percentage of the student profile fields that are filled in."""
    filled = sum(1 for field in PROFILE_FIELDS if _filled(getattr(student, field, None)))
    return round(100 * filled / len(PROFILE_FIELDS))


async def student_dashboard(db: AsyncSession, student: User) -> dict:
    return {
        "stats": await application_service.status_counts(db, student_id=student.id),
        "recent_applications": await application_service.list_for_student(db, student.id, limit=RECENT_LIMIT),
        "recent_jobs": await job_service.list_jobs(db, visible_only=True, limit=RECENT_LIMIT),
        "upcoming_interviews": await application_service.upcoming_interviews(db, student_id=student.id),
        "profile_completion": profile_completion(student),
    }


async def company_dashboard(db: AsyncSession, company: User) -> dict:
    jobs = await job_service.list_jobs(db, company_id=company.id, limit=RECENT_LIMIT)
    return {
        "stats": await application_service.status_counts(db, company_id=company.id),
        "total_jobs": await job_service.count_jobs(db, company_id=company.id),
        "active_jobs": await job_service.count_jobs(db, company_id=company.id, status=JobStatus.active.value),
        "recent_jobs": jobs,
        "application_counts": await job_service.application_counts(db, [job.id for job in jobs]),
        "recent_applications": await application_service.list_for_company(db, company.id, limit=RECENT_LIMIT),
        "upcoming_interviews": await application_service.upcoming_interviews(db, company_id=company.id),
    }


async def admin_dashboard(db: AsyncSession) -> dict:
    return {
        "user_counts": await user_service.count_by_role(db),
        "total_jobs": await job_service.count_jobs(db),
        "active_jobs": await job_service.count_jobs(db, status=JobStatus.active.value),
        "stats": await application_service.status_counts(db),
        "recent_users": (await user_service.list_users(db))[:RECENT_LIMIT],
        "recent_jobs": await job_service.list_jobs(db, limit=RECENT_LIMIT),
        "recent_applications": await application_service.list_for_admin(db, limit=RECENT_LIMIT),
    }
