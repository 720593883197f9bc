"""Pydantic schemas for Application actions and output."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.base import as_utc
from app.schemas.job import JobSummary
from app.schemas.user import blank_to_none


class InterviewMode(str, Enum):
    online = "Online"
    offline = "Offline"


class InterviewDetails(BaseModel):
    """Partial interview update. Only supplied fields are applied."""

    interview_date: datetime | None = None
    interview_mode: InterviewMode | None = None
    interview_location: str | None = None
    interview_link: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    @field_validator("interview_mode", mode="before")
    @classmethod
    def _mode(cls, value):
        if isinstance(value, str):
            return value.strip().capitalize()
        return value

    @field_validator("interview_date")
    @classmethod
    def _date_utc(cls, value):
        return as_utc(value)

    def supplied(self) -> dict:
        return self.model_dump(include=set(InterviewDetails.model_fields), exclude_none=True)


class StatusUpdate(InterviewDetails):
    status: str
    feedback: str | None = None


class ApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    job_id: UUID
    company_id: UUID
    status: str
    applied_date: datetime
    resume: str
    interview_date: datetime | None = None
    interview_mode: str | None = None
    interview_location: str | None = None
    interview_link: str | None = None
    feedback: str | None = None


class ApplicationWithJob(ApplicationRead):
    job: JobSummary | None = None
