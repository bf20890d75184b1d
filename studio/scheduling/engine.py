"""
Availability engine.

Turns business hours, active bookings and admin blocks for one date into the
list of start times that can be offered, and decides whether a proposed
booking may be written. Both paths go through :func:`overlaps` so the slots
shown to a customer and the check applied at write time cannot disagree.

The engine only reads. Persisting an accepted booking is the caller's job and
must happen under :func:`studio.database.booking_write_lock` together with
the validation call.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import NamedTuple, Protocol, Sequence

from studio.core import config
from studio.scheduling.errors import BlockedConflict, BookingConflict
from studio.scheduling.intervals import TimeInterval, overlaps, to_time, weekday_index

logger = logging.getLogger(__name__)


class OccupiedBooking(NamedTuple):
    start_time: time
    duration_minutes: int

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval.from_duration(self.start_time, self.duration_minutes)


class ScheduleRepository(Protocol):
    def get_active_hours_for_weekday(self, weekday: int) -> TimeInterval | None:
        ...

    def get_occupied_bookings_for_date(
        self,
        target_date: date,
        exclude_booking_id: int | None = None,
    ) -> Sequence[OccupiedBooking]:
        ...

    def get_blocked_intervals_for_date(self, target_date: date) -> Sequence[TimeInterval]:
        ...


@dataclass(frozen=True)
class BookingVerdict:
    accepted: bool
    reason: str | None = None
    conflict: TimeInterval | None = None

    @classmethod
    def accept(cls) -> 'BookingVerdict':
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str, conflict: TimeInterval) -> 'BookingVerdict':
        return cls(accepted=False, reason=reason, conflict=conflict)

    def raise_for_conflict(self) -> None:
        if self.accepted:
            return
        if self.reason == BookingConflict.reason:
            raise BookingConflict(self.conflict)
        raise BlockedConflict(self.conflict)


class AvailabilityEngine:
    def __init__(
        self,
        repository: ScheduleRepository,
        granularity_minutes: int = config.SLOT_GRANULARITY_MINUTES,
        require_full_fit: bool = config.SLOT_REQUIRE_FULL_FIT,
    ):
        if granularity_minutes <= 0:
            raise ValueError('Slot granularity must be a positive number of minutes.')
        self.repository = repository
        self.granularity_minutes = granularity_minutes
        self.require_full_fit = require_full_fit

    def compute_available_slots(self, target_date: date, granularity_minutes: int | None = None) -> list[time]:
        """
        Return the chronologically ordered start times that can be offered on ``target_date``.

        A candidate ``t`` occupies ``[t, t + granularity)`` and is offered only
        if it overlaps no active booking and no blocked interval. A closed day
        yields an empty list. With ``require_full_fit`` the walk stops at the
        first candidate that would run past closing time.
        """
        step = granularity_minutes or self.granularity_minutes
        if step <= 0:
            raise ValueError('Slot granularity must be a positive number of minutes.')

        hours = self.repository.get_active_hours_for_weekday(weekday_index(target_date))
        if hours is None:
            return []

        booked = [booking.interval for booking in self.repository.get_occupied_bookings_for_date(target_date)]
        blocked = list(self.repository.get_blocked_intervals_for_date(target_date))

        slots: list[time] = []
        candidate_start = hours.start

        while candidate_start < hours.end:
            candidate = TimeInterval.from_duration(candidate_start, step)
            if self.require_full_fit and candidate.end > hours.end:
                break

            is_booked = any(overlaps(candidate, span) for span in booked)
            is_blocked = any(overlaps(candidate, span) for span in blocked)
            if not is_booked and not is_blocked:
                slots.append(to_time(candidate_start))

            candidate_start += step

        return slots

    def validate_booking_candidate(
        self,
        target_date: date,
        start_time: time,
        duration_minutes: int,
        exclude_booking_id: int | None = None,
    ) -> BookingVerdict:
        """
        Decide whether a booking of ``duration_minutes`` starting at ``start_time`` fits on ``target_date``.

        Active bookings are checked before blocked intervals so the rejection
        names the first kind of conflict found. ``exclude_booking_id`` lets an
        existing booking be re-checked without colliding with itself.
        """
        candidate = TimeInterval.from_duration(start_time, duration_minutes)

        for booking in self.repository.get_occupied_bookings_for_date(target_date, exclude_booking_id):
            span = booking.interval
            if overlaps(candidate, span):
                logger.warning('Booking candidate %s on %s overlaps booking %s', candidate, target_date, span)
                return BookingVerdict.reject(BookingConflict.reason, span)

        for span in self.repository.get_blocked_intervals_for_date(target_date):
            if overlaps(candidate, span):
                logger.warning('Booking candidate %s on %s overlaps blocked time %s', candidate, target_date, span)
                return BookingVerdict.reject(BlockedConflict.reason, span)

        return BookingVerdict.accept()
