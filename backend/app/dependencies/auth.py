"""Authentication dependencies for FastAPI routes."""

import logging
import secrets
import uuid

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import get_db
from app.models.user import User, UserRole, UserStatus
from app.services.errors import (
    AccessDenied,
    ImpersonationNotActive,
    InvalidCsrfToken,
    NotFound,
    PortalError,
    ValidationError,
)

logger = logging.getLogger(__name__)

IMPERSONATION_KEY = "impersonation_stack"


class NotAuthenticatedException(Exception):
    """Raised when a route requires login but user is not authenticated."""
    pass


class LoginRequired(PortalError):
    status_code = 401
    message = "Login required"


def _session_user_id(request: Request) -> uuid.UUID | None:
    raw = request.session.get("user_id")
    if not raw:
        return None
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        return None


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User | None:
    """Return the logged-in user or None.

    The user is re-read on every request; deleted or deactivated accounts
    count as anonymous.
    """
    user_id = _session_user_id(request)
    if not user_id:
        return None
    result = await db.execute(
        select(User).where(User.id == user_id, User.status == UserStatus.active.value)
    )
    return result.scalar_one_or_none()


async def require_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """Return the logged-in user or redirect to login."""
    user = await get_current_user(request, db)
    if not user:
        raise NotAuthenticatedException()
    return user


async def require_user_api(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """Return the logged-in user or raise 401 JSON (for AJAX/API endpoints)."""
    request.state.json_errors = True
    user = await get_current_user(request, db)
    if not user:
        raise LoginRequired()
    return user


def require_role(*roles: UserRole):
    """Page-route gate: redirect anonymous users, 403 for other roles."""
    allowed = {role.value for role in roles}

    async def dependency(request: Request, db: AsyncSession = Depends(get_db)) -> User:
        user = await require_user(request, db)
        if user.role not in allowed:
            logger.info("User %s (%s) denied access to %s", user.email, user.role, request.url.path)
            raise AccessDenied()
        return user

    return dependency


def require_role_api(*roles: UserRole):
    """JSON-route gate: 401 for anonymous users, 403 for other roles."""
    allowed = {role.value for role in roles}

    async def dependency(request: Request, db: AsyncSession = Depends(get_db)) -> User:
        user = await require_user_api(request, db)
        if user.role not in allowed:
            raise AccessDenied()
        return user

    return dependency


def ensure_csrf_token(request: Request) -> str:
    """Get or create a CSRF token in the session."""
    token = request.session.get("csrf_token")
    if not token:
        token = secrets.token_urlsafe(32)
        request.session["csrf_token"] = token
    return token


def validate_csrf_token(request: Request, token: str) -> bool:
    """Validate a submitted CSRF token against the session token."""
    session_token = request.session.get("csrf_token")
    if not session_token or not token:
        return False
    return secrets.compare_digest(session_token.encode("utf-8"), token.encode("utf-8"))


async def csrf_protect(request: Request) -> None:
    """Check the CSRF token from the X-CSRF-Token header or the form body."""
    token = request.headers.get("X-CSRF-Token", "")
    if not token and request.headers.get("content-type", "").startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = await request.form()
        token = form.get("csrf_token", "")
    if not validate_csrf_token(request, token):
        raise InvalidCsrfToken()


def login_session(request: Request, user: User) -> None:
    """Start a fresh session for ``user``."""
    csrf_token = request.session.get("csrf_token")
    request.session.clear()
    request.session["user_id"] = str(user.id)
    request.session["role"] = user.role
    if csrf_token:
        request.session["csrf_token"] = csrf_token


def start_impersonation(request: Request, admin: User, target: User) -> None:
    """Push the current identity and switch the session to ``target``."""
    if target.id == admin.id:
        raise ValidationError("You are already logged in as this user")
    if not target.is_active:
        raise NotFound("User not found or inactive")

    stack = list(request.session.get(IMPERSONATION_KEY, []))
    stack.append(str(admin.id))
    request.session[IMPERSONATION_KEY] = stack
    request.session["user_id"] = str(target.id)
    request.session["role"] = target.role

    logger.info("Admin %s started impersonating %s (depth %d)", admin.email, target.email, len(stack))


async def stop_impersonation(request: Request, db: AsyncSession) -> User:
    """Pop one impersonation frame and restore the previous identity."""
    stack = list(request.session.get(IMPERSONATION_KEY, []))
    if not stack:
        raise ImpersonationNotActive()

    previous_id = stack.pop()
    previous = await db.get(User, uuid.UUID(previous_id))
    if not previous:
        request.session.clear()
        raise ImpersonationNotActive("The original account no longer exists")

    if stack:
        request.session[IMPERSONATION_KEY] = stack
    else:
        request.session.pop(IMPERSONATION_KEY, None)
    request.session["user_id"] = str(previous.id)
    request.session["role"] = previous.role

    logger.info("Impersonation ended, restored %s", previous.email)
    return previous


def is_impersonating(request: Request) -> bool:
    return bool(request.session.get(IMPERSONATION_KEY))
