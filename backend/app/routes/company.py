"""Company pages: profile, job postings and applicants."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import csrf_protect, require_role, require_role_api
from app.models.base import get_db
from app.models.job import JobType
from app.models.user import User, UserRole
from app.routes.context import read_payload, redirect, render
from app.schemas import CompanyProfileUpdate, InterviewDetails, JobForm, StatusUpdate, parse_form
from app.services import application_service, dashboard_service, job_service, user_service
from app.services.errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/company")

require_company = require_role(UserRole.company)
require_company_api = require_role_api(UserRole.company)

JOB_TYPES = [job_type.value for job_type in JobType]


def _job_form_page(request: Request, user: User, job=None, form=None, error=None, status_code=200):
    return render(
        request,
        "company/job_form.html",
        user,
        job=job,
        form=form or {},
        job_types=JOB_TYPES,
        error=error,
        status_code=status_code,
    )


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    data = await dashboard_service.company_dashboard(db, user)
    return render(request, "company/dashboard.html", user, **data)


@router.get("/profile", response_class=HTMLResponse)
async def profile_page(request: Request, user: User = Depends(require_company)):
    return render(request, "company/profile.html", user)


@router.post("/profile", response_class=HTMLResponse, dependencies=[Depends(require_company), Depends(csrf_protect)])
async def profile_submit(
    request: Request,
    logo: UploadFile | None = File(None),
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        update = parse_form(CompanyProfileUpdate, {key: value for key, value in form.items() if key != "logo"})
        # logo first: a rejected file must leave the profile untouched
        if logo is not None and logo.filename:
            await user_service.upload_picture(db, user, logo)
        await user_service.update_company_profile(db, user, update)
    except (ValidationError, ExternalServiceError) as e:
        return render(request, "company/profile.html", user, error=e.message, status_code=e.status_code)
    return redirect("/company/profile", success="Profile updated successfully")


@router.get("/jobs", response_class=HTMLResponse)
async def job_list(
    request: Request,
    status: str | None = Query(None),
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    jobs = await job_service.list_jobs(db, company_id=user.id, status=status)
    counts = await job_service.application_counts(db, [job.id for job in jobs])
    return render(request, "company/jobs.html", user, jobs=jobs, application_counts=counts)


@router.get("/jobs/post", response_class=HTMLResponse)
async def post_job_page(request: Request, user: User = Depends(require_company)):
    return _job_form_page(request, user)


@router.post("/jobs/post", response_class=HTMLResponse, dependencies=[Depends(require_company), Depends(csrf_protect)])
async def post_job_submit(
    request: Request,
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        job = await job_service.create_job(db, user, parse_form(JobForm, form))
    except ValidationError as e:
        return _job_form_page(request, user, form=dict(form), error=e.message, status_code=e.status_code)
    return redirect("/company/jobs", success=f"Job '{job.title}' posted successfully")


@router.get("/jobs/{job_id}/edit", response_class=HTMLResponse)
async def edit_job_page(
    request: Request,
    job_id: UUID,
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job(db, job_id, company_id=user.id)
    return _job_form_page(request, user, job=job)


@router.post(
    "/jobs/{job_id}/edit",
    response_class=HTMLResponse,
    dependencies=[Depends(require_company), Depends(csrf_protect)],
)
async def edit_job_submit(
    request: Request,
    job_id: UUID,
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job(db, job_id, company_id=user.id)
    form = await request.form()
    try:
        await job_service.update_job(db, job.id, parse_form(JobForm, form), company_id=user.id)
    except ValidationError as e:
        return _job_form_page(request, user, job=job, form=dict(form), error=e.message, status_code=e.status_code)
    return redirect("/company/jobs", success="Job updated successfully")


@router.delete("/jobs/{job_id}", dependencies=[Depends(require_company_api), Depends(csrf_protect)])
async def delete_job(
    job_id: UUID,
    user: User = Depends(require_company_api),
    db: AsyncSession = Depends(get_db),
):
    await job_service.delete_job(db, job_id, company_id=user.id)
    return {"success": True, "message": "Job deleted successfully"}


@router.get("/jobs/{job_id}/applications", response_class=HTMLResponse)
async def job_applications(
    request: Request,
    job_id: UUID,
    status: str | None = Query(None),
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job(db, job_id, company_id=user.id)
    items = await application_service.list_for_company(db, user.id, status=status, job_id=job.id)
    return render(request, "company/job_applications.html", user, job=job, applications=items)


@router.get("/applications", response_class=HTMLResponse)
async def applications(
    request: Request,
    status: str | None = Query(None),
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    items = await application_service.list_for_company(db, user.id, status=status)
    return render(request, "company/applications.html", user, applications=items, status_filter=status or "")


@router.get("/interviews", response_class=HTMLResponse)
async def interviews(
    request: Request,
    user: User = Depends(require_company),
    db: AsyncSession = Depends(get_db),
):
    items = await application_service.upcoming_interviews(db, company_id=user.id)
    return render(request, "company/interviews.html", user, interviews=items)


@router.post(
    "/applications/{application_id}/status",
    dependencies=[Depends(require_company_api), Depends(csrf_protect)],
)
async def update_application_status(
    request: Request,
    application_id: UUID,
    user: User = Depends(require_company_api),
    db: AsyncSession = Depends(get_db),
):
    update = parse_form(StatusUpdate, await read_payload(request))
    application = await application_service.update_status(db, application_id, user, update)
    return {"success": True, "status": application.status}


@router.post(
    "/applications/{application_id}/schedule-interview",
    dependencies=[Depends(require_company_api), Depends(csrf_protect)],
)
async def schedule_interview(
    request: Request,
    application_id: UUID,
    user: User = Depends(require_company_api),
    db: AsyncSession = Depends(get_db),
):
    details = parse_form(InterviewDetails, await read_payload(request))
    await application_service.schedule_interview(db, application_id, user, details)
    return {"success": True, "message": "Interview scheduled successfully"}
