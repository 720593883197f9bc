"""Web routes for the public pages."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import get_current_user, require_user
from app.models.base import get_db
from app.models.user import User
from app.routes.context import redirect, render
from app.services import job_service

router = APIRouter()

ROLE_HOME = {
    "student": "/student/dashboard",
    "company": "/company/dashboard",
    "admin": "/admin/dashboard",
}


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, db: AsyncSession = Depends(get_db)):
    """Landing page with the latest open positions."""
    user = await get_current_user(request, db)
    jobs = await job_service.list_jobs(db, visible_only=True, limit=6)
    return render(request, "index.html", user, jobs=jobs)


@router.get("/dashboard")
async def dashboard(user: User = Depends(require_user)):
    return redirect(ROLE_HOME.get(user.role, "/"))
