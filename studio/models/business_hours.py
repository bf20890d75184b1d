"""Business hours model definitions."""

from sqlalchemy import Boolean, Column, Integer, Time
from studio.database import Base


class BusinessHours(Base):
    """Opening interval for one weekday (0 = Sunday .. 6 = Saturday)."""
    __tablename__ = "business_hours"

    id = Column(Integer, primary_key=True)
    day_of_week = Column(Integer, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, default=True)
