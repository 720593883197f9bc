"""Authentication web routes."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import (
    csrf_protect,
    get_current_user,
    login_session,
    require_user,
    validate_csrf_token,
)
from app.models.base import get_db
from app.models.user import User, UserRole
from app.routes.context import redirect, render
from app.schemas import RegisterForm, parse_form
from app.services import auth_service, settings_service
from app.services.errors import (
    AccountDeactivated,
    DuplicateEmail,
    EmailNotFound,
    ExternalServiceError,
    IncorrectCurrentCredential,
    InvalidAdminKey,
    InvalidCredentials,
    InvalidCsrfToken,
    InvalidOrExpiredToken,
    ValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")
account_router = APIRouter(prefix="/account")

LOGIN_ROLES = [role.value for role in UserRole]


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, db: AsyncSession = Depends(get_db)):
    user = await get_current_user(request, db)
    if user:
        return redirect("/dashboard")
    return render(request, "auth/login.html", roles=LOGIN_ROLES, form={})


@router.post("/login", response_class=HTMLResponse)
async def login_submit(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    email = form.get("email", "").strip().lower()
    password = form.get("password", "")
    role = form.get("role", UserRole.student.value)
    values = {"email": email, "role": role}

    try:
        if not validate_csrf_token(request, form.get("csrf_token", "")):
            raise InvalidCsrfToken()
        user = await auth_service.authenticate(db, email, password, role, admin_key=form.get("admin_key"))
    except (InvalidCsrfToken, InvalidCredentials, InvalidAdminKey, AccountDeactivated) as e:
        return render(
            request, "auth/login.html", error=e.message, roles=LOGIN_ROLES, form=values, status_code=e.status_code
        )

    login_session(request, user)
    logger.info("User %s logged in as %s", user.email, user.role)
    return redirect("/dashboard")


@router.get("/register", response_class=HTMLResponse)
async def register_page(request: Request, db: AsyncSession = Depends(get_db)):
    user = await get_current_user(request, db)
    if user:
        return redirect("/dashboard")
    return render(
        request,
        "auth/register.html",
        form={},
        registration_open=await settings_service.registration_open(db),
    )


@router.post("/register", response_class=HTMLResponse)
async def register_submit(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    values = {key: value for key, value in form.items() if "password" not in key and key != "csrf_token"}

    try:
        if not validate_csrf_token(request, form.get("csrf_token", "")):
            raise InvalidCsrfToken()
        user = await auth_service.register_user(db, parse_form(RegisterForm, form))
    except (InvalidCsrfToken, ValidationError, DuplicateEmail) as e:
        return render(
            request,
            "auth/register.html",
            error=e.message,
            form=values,
            registration_open=await settings_service.registration_open(db),
            status_code=e.status_code,
        )

    login_session(request, user)
    return redirect("/dashboard")


@router.post("/logout", dependencies=[Depends(csrf_protect)])
async def logout(request: Request):
    user_id = request.session.get("user_id")
    request.session.clear()
    logger.info("User %s logged out", user_id)
    return redirect("/auth/login")


@router.get("/forgot-password", response_class=HTMLResponse)
async def forgot_password_page(request: Request):
    return render(request, "auth/forgot_password.html")


@router.post("/forgot-password", response_class=HTMLResponse)
async def forgot_password_submit(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    email = form.get("email", "").strip().lower()

    try:
        if not validate_csrf_token(request, form.get("csrf_token", "")):
            raise InvalidCsrfToken()
        await auth_service.request_password_reset(db, email)
    except (InvalidCsrfToken, EmailNotFound, ExternalServiceError) as e:
        return render(request, "auth/forgot_password.html", error=e.message, status_code=e.status_code)

    return render(
        request,
        "auth/forgot_password.html",
        success="Password reset link has been sent to your email",
    )


@router.get("/reset-password/{token}", response_class=HTMLResponse)
async def reset_password_page(request: Request, token: str, db: AsyncSession = Depends(get_db)):
    try:
        await auth_service.find_user_by_reset_token(db, token)
    except InvalidOrExpiredToken as e:
        return render(request, "auth/forgot_password.html", error=e.message, status_code=e.status_code)
    return render(request, "auth/reset_password.html", token=token)


@router.post("/reset-password/{token}", response_class=HTMLResponse)
async def reset_password_submit(request: Request, token: str, db: AsyncSession = Depends(get_db)):
    form = await request.form()

    try:
        if not validate_csrf_token(request, form.get("csrf_token", "")):
            raise InvalidCsrfToken()
        await auth_service.reset_password(db, token, form.get("password", ""), form.get("confirm_password", ""))
    except InvalidOrExpiredToken as e:
        return render(request, "auth/forgot_password.html", error=e.message, status_code=e.status_code)
    except (InvalidCsrfToken, ValidationError) as e:
        return render(request, "auth/reset_password.html", token=token, error=e.message, status_code=e.status_code)

    return redirect("/auth/login", success="Password has been reset. Please log in.")


@account_router.get("/password", response_class=HTMLResponse)
async def change_password_page(request: Request, user: User = Depends(require_user)):
    return render(request, "auth/change_password.html", user)


@account_router.post("/password", response_class=HTMLResponse)
async def change_password_submit(
    request: Request,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    form = await request.form()

    try:
        if not validate_csrf_token(request, form.get("csrf_token", "")):
            raise InvalidCsrfToken()
        await auth_service.change_password(
            db,
            user,
            form.get("current_password", ""),
            form.get("new_password", ""),
            form.get("confirm_password", ""),
        )
    except (InvalidCsrfToken, IncorrectCurrentCredential, ValidationError) as e:
        return render(request, "auth/change_password.html", user, error=e.message, status_code=e.status_code)

    logger.info("User %s changed their password", user.email)
    return render(request, "auth/change_password.html", user, success="Password updated successfully.")
