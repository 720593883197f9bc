"""Shared template setup and context for the HTML routes."""

from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from app.config import get_settings
from app.dependencies.auth import ensure_csrf_token, is_impersonating
from app.models.base import as_utc
from app.models.user import User
from app.services.dashboard_service import capitalize_status

settings = get_settings()

templates = Jinja2Templates(directory=str(settings.templates_dir))


def _format_date(value, fmt: str = "%d %b %Y") -> str:
    return as_utc(value).strftime(fmt) if value else ""


def _format_datetime(value) -> str:
    return _format_date(value, "%d %b %Y, %H:%M")


def _input_datetime(value) -> str:
    """Value for <input type="datetime-local">."""
    return _format_date(value, "%Y-%m-%dT%H:%M")


templates.env.filters["date"] = _format_date
templates.env.filters["datetime"] = _format_datetime
templates.env.filters["input_datetime"] = _input_datetime
templates.env.filters["status_label"] = capitalize_status
templates.env.globals["app_name"] = settings.app_name


def ctx(request: Request, user: User | None = None, **extra) -> dict:
    """Build common template context with current_user, csrf_token and flash messages."""
    return {
        "current_user": user,
        "csrf_token": ensure_csrf_token(request),
        "impersonating": is_impersonating(request),
        "success": request.query_params.get("success"),
        "error": request.query_params.get("error"),
        **extra,
    }


def render(request: Request, name: str, user: User | None = None, status_code: int = 200, **extra):
    return templates.TemplateResponse(request, name, ctx(request, user, **extra), status_code=status_code)


def redirect(url: str, **params) -> RedirectResponse:
    """303 redirect, with optional flash message query params."""
    params = {key: value for key, value in params.items() if value}
    if params:
        url = f"{url}?{urlencode(params)}"
    return RedirectResponse(url, status_code=303)


async def read_payload(request: Request) -> dict:
    """Body of an AJAX action, sent either as JSON or as a form."""
    if request.headers.get("content-type", "").startswith("application/json"):
        body = await request.json()
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return {key: value for key, value in form.items() if key != "csrf_token"}
