"""Admin-managed portal settings."""

import logging
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utcnow
from app.models.setting import Setting
from app.services.errors import ValidationError

logger = logging.getLogger(__name__)

REGISTRATION_DEADLINE = "registration_deadline"

KNOWN_SETTINGS = {
    REGISTRATION_DEADLINE: (
        "Student Registration Deadline",
        "The last date for students to register on the portal.",
    ),
}


async def get_settings_map(db: AsyncSession) -> dict[str, str | None]:
    result = await db.execute(select(Setting))
    return {setting.key: setting.value for setting in result.scalars()}


async def set_setting(db: AsyncSession, key: str, value: str | None) -> Setting:
    """Upsert a known setting."""
    if key not in KNOWN_SETTINGS:
        raise ValidationError(f"Unknown setting: {key}")
    if key == REGISTRATION_DEADLINE and value:
        _parse_date(value)

    result = await db.execute(select(Setting).where(Setting.key == key))
    setting = result.scalar_one_or_none()
    name, description = KNOWN_SETTINGS[key]
    if setting is None:
        setting = Setting(key=key)
        db.add(setting)
    setting.value = value or None
    setting.name = name
    setting.description = description
    await db.flush()

    logger.info("Setting %s updated to %r", key, value)
    return setting


async def registration_open(db: AsyncSession) -> bool:
    """Students may self-register until the end of the deadline day."""
    result = await db.execute(select(Setting.value).where(Setting.key == REGISTRATION_DEADLINE))
    value = result.scalar_one_or_none()
    if not value:
        return True
    return utcnow().date() <= _parse_date(value)


def _parse_date(value: str) -> date:
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        raise ValidationError("Registration deadline must be a date (YYYY-MM-DD)")
