"""User model. Students, companies and administrators share one table."""

import enum

from sqlalchemy import Column, String, DateTime, Float, Text, JSON, Index
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, UUIDMixin


class UserRole(str, enum.Enum):
    student = "student"
    company = "company"
    admin = "admin"


class UserStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.student.value)
    status = Column(String(20), nullable=False, default=UserStatus.active.value)
    phone = Column(String(30))
    profile_picture = Column(String(500))
    last_login_at = Column(DateTime(timezone=True))

    # Student profile
    branch = Column(String(100))
    year = Column(String(20))
    roll_number = Column(String(50))
    cgpa = Column(Float)
    skills = Column(JSON, default=list)
    resume = Column(String(500))
    resume_updated_at = Column(DateTime(timezone=True))

    # Company profile
    company_name = Column(String(255))
    industry = Column(String(100))
    website = Column(String(500))
    description = Column(Text)
    location = Column(String(255))
    logo = Column(String(500))

    # Password reset (only the SHA-256 of the emailed token is kept)
    reset_token_hash = Column(String(64), index=True)
    reset_token_expires_at = Column(DateTime(timezone=True))

    # Relationships
    jobs = relationship("Job", back_populates="company", passive_deletes=True)

    __table_args__ = (
        Index("idx_users_role_status", "role", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.active.value

    @property
    def display_name(self) -> str:
        if self.role == UserRole.company.value and self.company_name:
            return self.company_name
        return self.name
