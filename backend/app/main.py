"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.config import get_settings
from app.models.base import engine, AsyncSessionLocal, Base
from app.api.v1 import router as api_v1_router
from app.dependencies.auth import NotAuthenticatedException
from app.routes.admin import router as admin_router
from app.routes.auth import account_router, router as auth_router
from app.routes.company import router as company_router
from app.routes.context import render
from app.routes.student import router as student_router
from app.routes.web import router as web_router
from app.services.errors import PortalError

# Import models so create_all sees every table
from app.models import application, job, setting, user  # noqa: F401

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting %s...", settings.app_name)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")
    yield
    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Campus placement portal for students, companies and placement administrators",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    max_age=settings.session_max_age_seconds,
    same_site="lax",
    https_only=not settings.debug and settings.site_url.startswith("https"),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.site_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def wants_json(request: Request) -> bool:
    """True for API/AJAX callers that expect a JSON error body."""
    if getattr(request.state, "json_errors", False) or request.url.path.startswith("/api/"):
        return True
    if request.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
        return True
    return "application/json" in request.headers.get("accept", "")


@app.exception_handler(NotAuthenticatedException)
async def not_authenticated_handler(request: Request, exc: NotAuthenticatedException):
    if wants_json(request):
        return JSONResponse({"success": False, "error": "Login required"}, status_code=401)
    return RedirectResponse("/auth/login", status_code=303)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    if wants_json(request):
        return JSONResponse({"success": False, "error": exc.message}, status_code=exc.status_code)
    return render(request, "error.html", error=exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    if wants_json(request):
        return JSONResponse({"success": False, "error": message, "detail": errors}, status_code=422)
    return render(request, "error.html", error=message, status_code=422)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if wants_json(request):
        return JSONResponse({"success": False, "error": "Internal server error"}, status_code=500)
    return render(request, "error.html", error="Something went wrong. Please try again.", status_code=500)


# Include API routers
app.include_router(api_v1_router)

# Include web routes (HTML pages)
app.include_router(web_router)
app.include_router(auth_router)
app.include_router(account_router)
app.include_router(student_router)
app.include_router(company_router)
app.include_router(admin_router)

# Uploaded resumes, pictures and logos
Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}


@app.get("/health/detailed")
async def detailed_health_check():
    checks = {}

    # Database
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            checks["database"] = {"ok": True}
    except Exception as e:
        checks["database"] = {"ok": False, "message": str(e)}

    # Redis
    try:
        r = redis.from_url(settings.redis_url, socket_timeout=5)
        r.ping()
        checks["redis"] = {"ok": True}
    except Exception as e:
        checks["redis"] = {"ok": False, "message": str(e)}

    # Celery workers
    try:
        from app.tasks.celery_app import celery_app
        inspect = celery_app.control.inspect(timeout=5)
        active_workers = inspect.active()
        checks["celery_workers"] = {
            "ok": bool(active_workers),
            "workers": list(active_workers.keys()) if active_workers else [],
        }
    except Exception as e:
        checks["celery_workers"] = {"ok": False, "message": str(e)}

    all_ok = all(check.get("ok", False) for check in checks.values())
    status = "healthy" if all_ok else "degraded"

    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
