"""Authentication helpers."""

import hashlib
import logging
import secrets
from datetime import timedelta

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.base import utcnow
from app.models.user import User, UserRole
from app.schemas.user import RegisterForm
from app.services import mailer, settings_service
from app.services.errors import (
    AccountDeactivated,
    DuplicateEmail,
    EmailNotFound,
    IncorrectCurrentCredential,
    InvalidAdminKey,
    InvalidCredentials,
    InvalidOrExpiredToken,
    ValidationError,
)

logger = logging.getLogger(__name__)
settings = get_settings()

SELF_REGISTER_ROLES = {UserRole.student, UserRole.company}

# bcrypt only looks at the first 72 bytes and refuses longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plaintext password against a bcrypt hash."""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode("utf-8"))


def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def check_new_password(password: str, confirm: str | None) -> None:
    """Validate a new password and its confirmation."""
    if not password:
        raise ValidationError("All fields are required")
    if len(password) < settings.min_password_length:
        raise ValidationError(f"Password must be at least {settings.min_password_length} characters.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    if confirm is not None and password != confirm:
        raise ValidationError("Passwords do not match")


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, **fields) -> User:
    """Insert a user, hashing ``password``. Raises DuplicateEmail on conflict."""
    password = fields.pop("password")
    email = fields.pop("email").strip().lower()

    if await get_user_by_email(db, email):
        raise DuplicateEmail()

    user = User(email=email, hashed_password=hash_password(password), skills=[], **fields)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise DuplicateEmail()
    return user


async def register_user(db: AsyncSession, form: RegisterForm) -> User:
    """Self-service registration for students and companies."""
    if form.role not in SELF_REGISTER_ROLES:
        raise ValidationError("Admin accounts cannot be self-registered")
    check_new_password(form.password, form.confirm_password)

    if form.role == UserRole.student and not await settings_service.registration_open(db):
        raise ValidationError("Student registration is closed")

    fields = {"name": form.name.strip(), "email": form.email, "password": form.password, "role": form.role.value}
    if form.role == UserRole.student:
        fields.update(branch=form.branch or "", year=form.year or "")
    else:
        fields.update(
            company_name=form.company_name or form.name.strip(),
            industry=form.industry or "",
            website=form.website or "",
        )

    user = await create_user(db, **fields)
    logger.info("Registered %s account %s", user.role, user.email)
    return user


async def authenticate(
    db: AsyncSession,
    email: str,
    password: str,
    role: str,
    admin_key: str | None = None,
) -> User:
    """Verify credentials for the requested role.

    Admin logins must present the shared admin key; it is checked before any
    lookup so the normal login path cannot be used to reach an admin account.
    """
    if role == UserRole.admin.value:
        expected = settings.admin_key
        if not expected or not admin_key or not secrets.compare_digest(
            admin_key.encode("utf-8"), expected.encode("utf-8")
        ):
            logger.warning("Rejected admin login for %s: bad admin key", email)
            raise InvalidAdminKey()

    user = await get_user_by_email(db, email)
    if not user or user.role != role or not verify_password(password, user.hashed_password):
        logger.info("Failed login for %s as %s", email, role)
        raise InvalidCredentials()

    if not user.is_active:
        raise AccountDeactivated()

    user.last_login_at = utcnow()
    await db.flush()
    return user


async def request_password_reset(db: AsyncSession, email: str) -> None:
    """Issue a one-hour reset token and mail the raw value to the user."""
    user = await get_user_by_email(db, email)
    if not user:
        raise EmailNotFound()

    raw_token = secrets.token_hex(32)
    user.reset_token_hash = hash_reset_token(raw_token)
    user.reset_token_expires_at = utcnow() + timedelta(minutes=settings.reset_token_ttl_minutes)
    await db.flush()

    mailer.send_password_reset(user.email, raw_token)
    logger.info("Password reset requested for %s", user.email)


async def find_user_by_reset_token(db: AsyncSession, raw_token: str) -> User:
    result = await db.execute(
        select(User).where(
            User.reset_token_hash == hash_reset_token(raw_token),
            User.reset_token_expires_at > utcnow(),
        )
    )
    user = result.scalar_one_or_none()
    if not user:
        raise InvalidOrExpiredToken()
    return user


async def reset_password(db: AsyncSession, raw_token: str, password: str, confirm: str | None) -> User:
    """Consume a reset token: new hash and cleared token fields in one flush."""
    check_new_password(password, confirm)
    user = await find_user_by_reset_token(db, raw_token)

    user.hashed_password = hash_password(password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    await db.flush()

    logger.info("Password reset completed for %s", user.email)
    return user


async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
    confirm: str | None,
) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise IncorrectCurrentCredential()
    check_new_password(new_password, confirm)

    user.hashed_password = hash_password(new_password)
    await db.flush()
