"""Application API endpoints for the signed-in student."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies.auth import require_role_api
from app.models.base import get_db
from app.models.user import User, UserRole
from app.schemas.application import ApplicationWithJob
from app.services import application_service

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("", response_model=list[ApplicationWithJob])
async def list_applications(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_role_api(UserRole.student)),
    status: str | None = Query(None, description="Filter by status"),
):
    return await application_service.list_for_student(db, user.id, status=status)
