"""User profiles and admin account operations."""

import logging
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.application import Application
from app.models.base import utcnow
from app.models.job import Job
from app.models.user import User, UserRole, UserStatus
from app.schemas.user import AdminUserCreate, AdminUserUpdate, CompanyProfileUpdate, StudentProfileUpdate
from app.services import auth_service, job_service, storage
from app.services.errors import DuplicateEmail, NotFound, ValidationError

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def list_users(db: AsyncSession, role: str | None = None, search: str | None = None) -> list[User]:
    query = select(User)
    if role:
        query = query.where(User.role == role)
    if search:
        pattern = f"%{job_service.escape_like(search)}%"
        query = query.where(or_(User.name.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\")))
    result = await db.execute(query.order_by(User.created_at.desc()))
    return list(result.scalars().all())


async def count_by_role(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(User.role, func.count(User.id).label("count")).group_by(User.role))
    counts = {role.value: 0 for role in UserRole}
    for row in result:
        counts[row.role] = row.count
    return counts


async def update_student_profile(db: AsyncSession, student: User, form: StudentProfileUpdate) -> User:
    if form.name:
        student.name = form.name.strip()
    student.phone = form.phone
    student.branch = form.branch
    student.year = form.year
    student.roll_number = form.roll_number
    student.cgpa = form.cgpa
    student.skills = form.skills
    await db.flush()
    return student


async def update_company_profile(db: AsyncSession, company: User, form: CompanyProfileUpdate) -> User:
    changes = form.model_dump()
    if not changes["company_name"]:
        changes.pop("company_name")
    for field, value in changes.items():
        setattr(company, field, value)
    await db.flush()
    return company


async def upload_resume(db: AsyncSession, student: User, upload: UploadFile) -> User:
    student.resume = await storage.save_upload(upload, student.id, "resume")
    student.resume_updated_at = utcnow()
    await db.flush()
    return student


async def upload_picture(db: AsyncSession, user: User, upload: UploadFile) -> User:
    """Profile picture for students, logo for companies."""
    if user.role == UserRole.company.value:
        user.logo = await storage.save_upload(upload, user.id, "logo")
    else:
        user.profile_picture = await storage.save_upload(upload, user.id, "picture")
    await db.flush()
    return user


async def admin_create_user(db: AsyncSession, form: AdminUserCreate) -> User:
    auth_service.check_new_password(form.password, None)
    fields = {"name": form.name.strip(), "email": form.email, "password": form.password, "role": form.role.value}
    if form.role == UserRole.company:
        fields["company_name"] = form.name.strip()
    user = await auth_service.create_user(db, status=UserStatus.active.value, **fields)
    logger.info("Admin created %s account %s", user.role, user.email)
    return user


async def admin_update_user(db: AsyncSession, user_id: UUID, form: AdminUserUpdate) -> User:
    user = await get_user(db, user_id)
    changes = form.model_dump(exclude_none=True)

    if "email" in changes:
        changes["email"] = changes["email"].strip().lower()
        if changes["email"] != user.email and await auth_service.get_user_by_email(db, changes["email"]):
            raise DuplicateEmail()
    if "role" in changes:
        changes["role"] = changes["role"].value

    for field, value in changes.items():
        setattr(user, field, value)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise DuplicateEmail()

    logger.info("Admin updated user %s: %s", user.id, sorted(changes))
    return user


async def toggle_status(db: AsyncSession, user_id: UUID, actor: User) -> User:
    user = await get_user(db, user_id)
    if user.id == actor.id:
        raise ValidationError("You cannot deactivate your own account")
    user.status = UserStatus.inactive.value if user.is_active else UserStatus.active.value
    await db.flush()

    logger.info("Admin %s set user %s to %s", actor.email, user.email, user.status)
    return user


async def delete_user(db: AsyncSession, user_id: UUID, actor: User) -> None:
    """Hard-delete a user with everything that references them.

    Students lose their applications; companies lose their jobs and every
    application to those jobs. All statements share the caller's transaction.
    """
    user = await get_user(db, user_id)
    if user.id == actor.id:
        raise ValidationError("You cannot delete your own account")

    if user.role == UserRole.company.value:
        result = await db.execute(select(Job.id).where(Job.company_id == user.id))
        await job_service.delete_jobs(db, list(result.scalars().all()))

    await db.execute(
        delete(Application).where(or_(Application.student_id == user.id, Application.company_id == user.id))
    )
    role, email = user.role, user.email
    await db.execute(delete(User).where(User.id == user.id))

    logger.info("Admin %s deleted %s account %s", actor.email, role, email)
