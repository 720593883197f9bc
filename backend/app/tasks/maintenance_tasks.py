"""Periodic cleanup tasks."""

import logging

from sqlalchemy import delete, or_, select, update

from app.tasks.celery_app import celery_app
from app.models.application import Application
from app.models.base import SyncSessionLocal, utcnow
from app.models.job import Job
from app.models.user import User

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.maintenance_tasks.purge_orphaned_applications")
def purge_orphaned_applications():
    """Delete applications whose job or student no longer exists."""
    db = SyncSessionLocal()
    try:
        result = db.execute(
            delete(Application).where(
                or_(
                    Application.job_id.not_in(select(Job.id)),
                    Application.student_id.not_in(select(User.id)),
                )
            ).execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info("Deleted %d orphaned applications", result.rowcount)
        return {"deleted": result.rowcount}
    finally:
        db.close()


@celery_app.task(name="app.tasks.maintenance_tasks.purge_expired_reset_tokens")
def purge_expired_reset_tokens():
    """Clear password reset tokens past their expiry."""
    db = SyncSessionLocal()
    try:
        result = db.execute(
            update(User)
            .where(User.reset_token_expires_at.isnot(None), User.reset_token_expires_at < utcnow())
            .values(reset_token_hash=None, reset_token_expires_at=None)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info("Cleared %d expired reset tokens", result.rowcount)
        return {"cleared": result.rowcount}
    finally:
        db.close()
