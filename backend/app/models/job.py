"""Job posting model."""

import enum

from sqlalchemy import Column, String, DateTime, Text, JSON, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, UUIDMixin


class JobType(str, enum.Enum):
    full_time = "Full-time"
    part_time = "Part-time"
    internship = "Internship"


class JobStatus(str, enum.Enum):
    active = "active"
    closed = "closed"


class Job(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "jobs"

    company_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_name = Column(String(255), nullable=False)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    job_type = Column(String(20), nullable=False)  # Full-time, Part-time, Internship
    location = Column(String(255), nullable=False)
    salary = Column(String(255), nullable=False)
    eligibility = Column(Text, nullable=False)
    skills_required = Column(JSON, default=list)
    deadline = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), nullable=False, default=JobStatus.active.value, index=True)

    # Relationships
    company = relationship("User", back_populates="jobs")
    applications = relationship("Application", back_populates="job", passive_deletes=True)

    __table_args__ = (
        Index("idx_job_status_deadline", "status", "deadline"),
    )
