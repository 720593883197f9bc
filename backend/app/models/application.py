"""Application model."""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, UUIDMixin, utcnow


class Application(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "applications"

    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Uuid(as_uuid=True), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    # Denormalized from the job for company-scoped queries
    company_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default="pending")  # pending, shortlisted, rejected, hired
    applied_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    resume = Column(String(500), nullable=False)  # snapshot at apply time
    cover_letter = Column(Text)

    interview_date = Column(DateTime(timezone=True))
    interview_mode = Column(String(20))  # Online, Offline
    interview_location = Column(String(255))
    interview_link = Column(String(500))
    feedback = Column(Text)

    # Relationships
    job = relationship("Job", back_populates="applications")
    student = relationship("User", foreign_keys=[student_id])
    company = relationship("User", foreign_keys=[company_id])

    __table_args__ = (
        UniqueConstraint("student_id", "job_id", name="uq_applications_student_job"),
        Index("idx_applications_company_status", "company_id", "status"),
        Index("idx_applications_interview", "interview_date"),
    )
