"""SQLAlchemy-backed reads consumed by the availability engine."""

from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from studio.models.blocked_slot import BlockedSlot
from studio.models.booking import CANCELLED_STATUS, Booking
from studio.models.business_hours import BusinessHours
from studio.models.service import Service
from studio.scheduling.engine import OccupiedBooking
from studio.scheduling.intervals import TimeInterval


class SqlAlchemyScheduleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_active_hours_for_weekday(self, weekday: int) -> TimeInterval | None:
        hours = self.db.query(BusinessHours).filter(
            BusinessHours.day_of_week == weekday,
            BusinessHours.is_active.is_(True),
        ).order_by(BusinessHours.id.asc()).first()

        if hours is None:
            return None

        return TimeInterval.from_times(hours.start_time, hours.end_time)

    def get_occupied_bookings_for_date(
        self,
        target_date: date,
        exclude_booking_id: int | None = None,
    ) -> list[OccupiedBooking]:
        # Rows written before durations were stored on the booking fall back to the service.
        query = self.db.query(
            Booking.appointment_time,
            func.coalesce(Booking.duration_minutes, Service.duration),
        ).join(Service, Booking.service_id == Service.id).filter(
            Booking.appointment_date == target_date,
            Booking.status != CANCELLED_STATUS,
        )

        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)

        return [
            OccupiedBooking(start_time=appointment_time, duration_minutes=duration)
            for appointment_time, duration in query.order_by(Booking.appointment_time.asc()).all()
        ]

    def get_blocked_intervals_for_date(self, target_date: date) -> list[TimeInterval]:
        blocked_slots = self.db.query(BlockedSlot.start_time, BlockedSlot.end_time).filter(
            BlockedSlot.block_date == target_date,
        ).order_by(BlockedSlot.start_time.asc()).all()

        return [TimeInterval.from_times(start_time, end_time) for start_time, end_time in blocked_slots]
