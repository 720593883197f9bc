"""Student-facing pages."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import csrf_protect, require_role, require_role_api
from app.models.base import get_db
from app.models.user import User, UserRole
from app.routes.context import read_payload, redirect, render
from app.schemas import StudentProfileUpdate, parse_form
from app.services import application_service, dashboard_service, job_service, user_service
from app.services.errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/student")

require_student = require_role(UserRole.student)
require_student_api = require_role_api(UserRole.student)


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    data = await dashboard_service.student_dashboard(db, user)
    return render(request, "student/dashboard.html", user, **data)


@router.get("/jobs", response_class=HTMLResponse)
async def job_list(
    request: Request,
    q: str | None = Query(None),
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    jobs = await job_service.list_jobs(db, visible_only=True, search=q)
    applied = await application_service.applied_job_ids(db, user.id)
    return render(request, "student/jobs.html", user, jobs=jobs, applied_job_ids=applied, q=q or "")


@router.get("/jobs/{job_id}", response_class=HTMLResponse)
async def job_detail(
    request: Request,
    job_id: UUID,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_visible_job(db, job_id)
    applied = job.id in await application_service.applied_job_ids(db, user.id)
    return render(request, "student/job_detail.html", user, job=job, has_applied=applied)


@router.post("/jobs/{job_id}/apply", dependencies=[Depends(require_student_api), Depends(csrf_protect)])
async def apply(
    request: Request,
    job_id: UUID,
    user: User = Depends(require_student_api),
    db: AsyncSession = Depends(get_db),
):
    payload = await read_payload(request)
    application = await application_service.apply(db, user, job_id, payload.get("cover_letter"))
    return {
        "success": True,
        "message": "Application submitted successfully",
        "application_id": str(application.id),
    }


@router.get("/applications", response_class=HTMLResponse)
async def applications(
    request: Request,
    status: str | None = Query(None),
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    items = await application_service.list_for_student(db, user.id, status=status)
    return render(request, "student/applications.html", user, applications=items, status_filter=status or "")


@router.get("/applications/{application_id}", response_class=HTMLResponse)
async def application_detail(
    request: Request,
    application_id: UUID,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    application = await application_service.get_for_student(db, user, application_id)
    return render(request, "student/application_detail.html", user, application=application)


@router.get("/interviews", response_class=HTMLResponse)
async def interviews(
    request: Request,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    items = await application_service.upcoming_interviews(db, student_id=user.id)
    return render(request, "student/interviews.html", user, interviews=items)


@router.get("/profile", response_class=HTMLResponse)
async def profile_page(request: Request, user: User = Depends(require_student)):
    return render(
        request,
        "student/profile.html",
        user,
        profile_completion=dashboard_service.profile_completion(user),
    )


@router.post("/profile", response_class=HTMLResponse, dependencies=[Depends(require_student), Depends(csrf_protect)])
async def profile_submit(
    request: Request,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        await user_service.update_student_profile(db, user, parse_form(StudentProfileUpdate, form))
    except ValidationError as e:
        return render(
            request,
            "student/profile.html",
            user,
            error=e.message,
            profile_completion=dashboard_service.profile_completion(user),
            status_code=e.status_code,
        )
    return redirect("/student/profile", success="Profile updated successfully")


@router.post("/profile/resume", dependencies=[Depends(require_student), Depends(csrf_protect)])
async def upload_resume(
    resume: UploadFile = File(...),
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    try:
        await user_service.upload_resume(db, user, resume)
    except (ValidationError, ExternalServiceError) as e:
        return redirect("/student/profile", error=e.message)
    return redirect("/student/profile", success="Resume uploaded successfully")


@router.post("/profile/picture", dependencies=[Depends(require_student), Depends(csrf_protect)])
async def upload_picture(
    picture: UploadFile = File(...),
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    try:
        await user_service.upload_picture(db, user, picture)
    except (ValidationError, ExternalServiceError) as e:
        return redirect("/student/profile", error=e.message)
    return redirect("/student/profile", success="Profile picture updated successfully")
