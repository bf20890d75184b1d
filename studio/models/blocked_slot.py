"""Blocked time model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Time, func
from studio.database import Base


class BlockedSlot(Base):
    """An admin-declared interval on one date during which nothing can be booked."""
    __tablename__ = "blocked_slots"

    id = Column(Integer, primary_key=True)
    block_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    reason = Column(String)
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, server_default=func.now())
