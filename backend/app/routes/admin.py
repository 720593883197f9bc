"""Admin pages and actions."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import (
    csrf_protect,
    require_role,
    require_role_api,
    require_user,
    start_impersonation,
    stop_impersonation,
)
from app.models.base import get_db
from app.models.job import JobType
from app.models.user import User, UserRole
from app.routes.context import read_payload, redirect, render
from app.schemas import AdminUserCreate, AdminUserUpdate, JobForm, StatusUpdate, parse_form
from app.services import application_service, dashboard_service, job_service, settings_service, user_service
from app.services.errors import DuplicateEmail, ImpersonationNotActive, NotFound, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")

require_admin = require_role(UserRole.admin)
require_admin_api = require_role_api(UserRole.admin)

ROLES = [role.value for role in UserRole]
JOB_TYPES = [job_type.value for job_type in JobType]


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    data = await dashboard_service.admin_dashboard(db)
    return render(request, "admin/dashboard.html", user, roles=ROLES, **data)


# --- Users ---


@router.get("/users", response_class=HTMLResponse)
async def user_list(
    request: Request,
    role: str | None = Query(None),
    q: str | None = Query(None),
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.list_users(db, role=role, search=q)
    return render(request, "admin/users.html", user, users=users, roles=ROLES, role_filter=role or "", q=q or "")


@router.post("/users/add", dependencies=[Depends(require_admin), Depends(csrf_protect)])
async def add_user(
    request: Request,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        created = await user_service.admin_create_user(db, parse_form(AdminUserCreate, form))
    except (ValidationError, DuplicateEmail) as e:
        return redirect("/admin/users", error=e.message)
    return redirect("/admin/users", success=f"User {created.email} created successfully")


@router.get("/users/impersonate/{user_id}")
async def impersonate(
    request: Request,
    user_id: UUID,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.get_user(db, user_id)
    try:
        start_impersonation(request, user, target)
    except (ValidationError, NotFound) as e:
        return redirect("/admin/users", error=e.message)
    return redirect("/dashboard")


@router.get("/impersonate/stop")
async def stop_impersonating(
    request: Request,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        await stop_impersonation(request, db)
    except ImpersonationNotActive as e:
        return redirect("/dashboard", error=e.message)
    return redirect("/dashboard")


@router.get("/users/{user_id}", response_class=HTMLResponse)
async def user_detail(
    request: Request,
    user_id: UUID,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.get_user(db, user_id)
    extra = {}
    if target.role == UserRole.student.value:
        extra["applications"] = await application_service.list_for_student(db, target.id)
        extra["profile_completion"] = dashboard_service.profile_completion(target)
    elif target.role == UserRole.company.value:
        extra["jobs"] = await job_service.list_jobs(db, company_id=target.id)
    return render(request, "admin/user_detail.html", user, target=target, **extra)


@router.get("/users/{user_id}/edit", response_class=HTMLResponse)
async def edit_user_page(
    request: Request,
    user_id: UUID,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    target = await user_service.get_user(db, user_id)
    return render(request, "admin/user_form.html", user, target=target, roles=ROLES)


@router.post(
    "/users/{user_id}/edit",
    response_class=HTMLResponse,
    dependencies=[Depends(require_admin), Depends(csrf_protect)],
)
async def edit_user_submit(
    request: Request,
    user_id: UUID,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        await user_service.admin_update_user(db, user_id, parse_form(AdminUserUpdate, form))
    except (ValidationError, DuplicateEmail) as e:
        target = await user_service.get_user(db, user_id)
        return render(
            request, "admin/user_form.html", user, target=target, roles=ROLES, error=e.message, status_code=e.status_code
        )
    return redirect("/admin/users", success="User updated successfully")


@router.post("/users/{user_id}/toggle-status", dependencies=[Depends(require_admin), Depends(csrf_protect)])
async def toggle_user_status(
    user_id: UUID,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        target = await user_service.toggle_status(db, user_id, user)
    except ValidationError as e:
        return redirect("/admin/users", error=e.message)
    return redirect("/admin/users", success=f"{target.email} is now {target.status}")


@router.delete("/users/{user_id}", dependencies=[Depends(require_admin_api), Depends(csrf_protect)])
async def delete_user(
    user_id: UUID,
    user: User = Depends(require_admin_api),
    db: AsyncSession = Depends(get_db),
):
    await user_service.delete_user(db, user_id, user)
    return {"success": True, "message": "User deleted successfully"}


# --- Jobs ---


@router.get("/jobs", response_class=HTMLResponse)
async def job_list(
    request: Request,
    status: str | None = Query(None),
    q: str | None = Query(None),
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    jobs = await job_service.list_jobs(db, status=status, search=q)
    counts = await job_service.application_counts(db, [job.id for job in jobs])
    return render(request, "admin/jobs.html", user, jobs=jobs, application_counts=counts, q=q or "")


@router.get("/jobs/{job_id}", response_class=HTMLResponse)
async def job_detail(
    request: Request,
    job_id: UUID,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job(db, job_id)
    items = await application_service.list_for_admin(db, job_id=job.id)
    return render(request, "admin/job_detail.html", user, job=job, applications=items)


@router.get("/jobs/{job_id}/edit", response_class=HTMLResponse)
async def edit_job_page(
    request: Request,
    job_id: UUID,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job(db, job_id)
    return render(request, "admin/job_form.html", user, job=job, form={}, job_types=JOB_TYPES)


@router.post(
    "/jobs/{job_id}/edit",
    response_class=HTMLResponse,
    dependencies=[Depends(require_admin), Depends(csrf_protect)],
)
async def edit_job_submit(
    request: Request,
    job_id: UUID,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.get_job(db, job_id)
    form = await request.form()
    try:
        await job_service.update_job(db, job.id, parse_form(JobForm, form))
    except ValidationError as e:
        return render(
            request,
            "admin/job_form.html",
            user,
            job=job,
            form=dict(form),
            job_types=JOB_TYPES,
            error=e.message,
            status_code=e.status_code,
        )
    return redirect("/admin/jobs", success="Job updated successfully")


@router.delete("/jobs/{job_id}", dependencies=[Depends(require_admin_api), Depends(csrf_protect)])
async def delete_job(
    job_id: UUID,
    user: User = Depends(require_admin_api),
    db: AsyncSession = Depends(get_db),
):
    await job_service.delete_job(db, job_id)
    logger.info("Admin %s deleted job %s", user.email, job_id)
    return {"success": True, "message": "Job and related applications deleted successfully"}


# --- Applications ---


@router.get("/applications", response_class=HTMLResponse)
async def applications(
    request: Request,
    status: str | None = Query(None),
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items = await application_service.list_for_admin(db, status=status)
    stats = await application_service.status_counts(db)
    return render(
        request, "admin/applications.html", user, applications=items, stats=stats, status_filter=status or ""
    )


@router.post(
    "/applications/{application_id}/status",
    dependencies=[Depends(require_admin_api), Depends(csrf_protect)],
)
async def update_application_status(
    request: Request,
    application_id: UUID,
    user: User = Depends(require_admin_api),
    db: AsyncSession = Depends(get_db),
):
    update = parse_form(StatusUpdate, await read_payload(request))
    application = await application_service.update_status(db, application_id, user, update)
    return {"success": True, "status": application.status}


# --- Settings ---


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(
    request: Request,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    values = await settings_service.get_settings_map(db)
    return render(request, "admin/settings.html", user, values=values, known=settings_service.KNOWN_SETTINGS)


@router.post(
    "/settings",
    response_class=HTMLResponse,
    dependencies=[Depends(require_admin), Depends(csrf_protect)],
)
async def settings_submit(
    request: Request,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()
    try:
        for key in settings_service.KNOWN_SETTINGS:
            if key in form:
                await settings_service.set_setting(db, key, form.get(key, "").strip())
    except ValidationError as e:
        values = await settings_service.get_settings_map(db)
        return render(
            request,
            "admin/settings.html",
            user,
            values=values,
            known=settings_service.KNOWN_SETTINGS,
            error=e.message,
            status_code=e.status_code,
        )
    return redirect("/admin/settings", success="Settings updated successfully")
