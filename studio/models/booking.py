"""Booking model definitions."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Time,
    func,
    text,
)
from sqlalchemy.orm import relationship

from studio.database import ACTIVE_BOOKING_INDEX, BOOKING_DATE_LOCK_TABLE, Base
from studio.models.service import Service
from studio.models.user import User

BOOKING_STATUSES = ('confirmed', 'pending', 'completed', 'cancelled')
CANCELLED_STATUS = 'cancelled'


class Booking(Base):
    """Represents an appointment on the studio calendar."""
    __tablename__ = "bookings"
    __table_args__ = (
        Index(
            ACTIVE_BOOKING_INDEX,
            'appointment_date',
            'appointment_time',
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer)
    status = Column(String, default='confirmed', nullable=False)
    notes = Column(String)
    total_amount = Column(Numeric(10, 2))
    payment_id = Column(String)
    email_confirmation_sent = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship(Service)
    user = relationship(User)


class BookingDateLock(Base):
    """One row per calendar date, written to serialize SQLite booking writers."""
    __tablename__ = BOOKING_DATE_LOCK_TABLE

    lock_date = Column(Date, primary_key=True)
    locked_at = Column(DateTime, server_default=func.now())
