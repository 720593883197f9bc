"""Pydantic schemas for Job forms and output."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.base import as_utc
from app.models.job import JobStatus, JobType
from app.schemas.user import blank_to_none, split_csv

# Form slugs used by the post/edit pages
JOB_TYPE_ALIASES = {
    "full-time": JobType.full_time,
    "part-time": JobType.part_time,
    "internship": JobType.internship,
}


class JobForm(BaseModel):
    """Post/edit job form.

    The optional presentation fields (responsibilities, benefits, salary_period,
    min_cgpa) are folded into description, salary and eligibility.
    """

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    job_type: JobType
    location: str = Field(min_length=1, max_length=255)
    salary: str = Field(min_length=1, max_length=200)
    eligibility: str = Field(min_length=1)
    skills_required: list[str] = []
    deadline: datetime
    status: JobStatus = JobStatus.active

    responsibilities: str | None = None
    benefits: str | None = None
    salary_period: str | None = None
    min_cgpa: str | None = None

    @field_validator("job_type", mode="before")
    @classmethod
    def _job_type(cls, value):
        if isinstance(value, str):
            return JOB_TYPE_ALIASES.get(value.strip().lower(), value)
        return value

    @field_validator("deadline")
    @classmethod
    def _deadline_utc(cls, value):
        return as_utc(value)

    @field_validator("skills_required", mode="before")
    @classmethod
    def _skills(cls, value):
        return split_csv(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return JobStatus.active
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("responsibilities", "benefits", "salary_period", "min_cgpa", mode="before")
    @classmethod
    def _blank(cls, value):
        return blank_to_none(value)

    def to_fields(self) -> dict:
        """Column values for the Job model."""
        description = self.description
        if self.responsibilities:
            description += f"\n\nResponsibilities:\n{self.responsibilities}"
        if self.benefits:
            description += f"\n\nBenefits:\n{self.benefits}"

        salary = self.salary
        if self.salary_period:
            salary = f"₹{salary} {self.salary_period}"

        eligibility = self.eligibility
        if self.min_cgpa:
            eligibility += f" (Min CGPA: {self.min_cgpa})"

        return {
            "title": self.title.strip(),
            "description": description,
            "job_type": self.job_type.value,
            "location": self.location.strip(),
            "salary": salary,
            "eligibility": eligibility,
            "skills_required": self.skills_required,
            "deadline": self.deadline,
            "status": self.status.value,
        }


class JobRead(BaseModel):
    """Full job output."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    company_name: str
    title: str
    description: str
    job_type: str
    location: str
    salary: str
    eligibility: str
    skills_required: list[str] | None = None
    deadline: datetime
    status: str
    created_at: datetime


class JobSummary(BaseModel):
    """Minimal job info for list views."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    company_name: str
    job_type: str
    location: str
    deadline: datetime
    status: str
