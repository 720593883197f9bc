"""Pydantic schemas package."""

from typing import TypeVar

import pydantic
from pydantic import BaseModel

from app.schemas.user import (
    AdminUserCreate,
    AdminUserUpdate,
    CompanyProfileUpdate,
    RegisterForm,
    StudentProfileUpdate,
    UserSummary,
)
from app.schemas.job import JobForm, JobRead, JobSummary
from app.schemas.application import (
    ApplicationRead,
    ApplicationWithJob,
    InterviewDetails,
    InterviewMode,
    StatusUpdate,
)
from app.services.errors import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _describe(error: dict) -> str:
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "__root__")
    message = error.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{field.replace('_', ' ').capitalize()}: {message}" if field else message


def parse_form(schema: type[SchemaT], data) -> SchemaT:
    """Validate submitted form data, raising the portal ValidationError."""
    values = {key: value for key, value in dict(data).items() if key != "csrf_token"}
    try:
        return schema.model_validate(values)
    except pydantic.ValidationError as e:
        raise ValidationError(_describe(e.errors()[0])) from e


__all__ = [
    "parse_form",
    # User
    "AdminUserCreate",
    "AdminUserUpdate",
    "CompanyProfileUpdate",
    "RegisterForm",
    "StudentProfileUpdate",
    "UserSummary",
    # Job
    "JobForm",
    "JobRead",
    "JobSummary",
    # Application
    "ApplicationRead",
    "ApplicationWithJob",
    "InterviewDetails",
    "InterviewMode",
    "StatusUpdate",
]
