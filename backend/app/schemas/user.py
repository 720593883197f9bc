"""Pydantic schemas for User forms and output."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import UserRole


def split_csv(value):
    """Turn a comma-separated form value into a clean list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RegisterForm(BaseModel):
    """Self-service registration."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str
    confirm_password: str | None = None
    role: UserRole

    # Student
    branch: str | None = None
    year: str | None = None

    # Company
    company_name: str | None = None
    industry: str | None = None
    website: str | None = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("branch", "year", "company_name", "industry", "website", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)


class AdminUserCreate(BaseModel):
    """User created from the admin dashboard."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str
    role: UserRole

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.strip().lower()


class AdminUserUpdate(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    role: UserRole | None = None
    status: str | None = Field(None, pattern="^(active|inactive)$")
    company_name: str | None = None
    branch: str | None = None
    year: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)


class StudentProfileUpdate(BaseModel):
    name: str | None = Field(None, max_length=100)
    phone: str | None = None
    branch: str | None = None
    year: str | None = None
    roll_number: str | None = None
    cgpa: float | None = Field(None, ge=0, le=10)
    skills: list[str] = []

    @field_validator("name", "phone", "branch", "year", "roll_number", "cgpa", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    @field_validator("skills", mode="before")
    @classmethod
    def _skills(cls, value):
        return split_csv(value)


class CompanyProfileUpdate(BaseModel):
    company_name: str | None = Field(None, max_length=255)
    industry: str | None = None
    website: str | None = None
    description: str | None = None
    location: str | None = None
    phone: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)


class UserSummary(BaseModel):
    """Minimal user info for JSON payloads."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: str
    status: str
    company_name: str | None = None
    created_at: datetime
