"""Portal setting model."""

from sqlalchemy import Column, String, Text

from app.models.base import Base, TimestampMixin, UUIDMixin


class Setting(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "settings"

    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text)
    name = Column(String(255))
    description = Column(Text)
