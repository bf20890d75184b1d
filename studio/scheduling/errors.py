"""Errors raised by the availability engine."""


class SchedulingError(Exception):
    """Base class for availability and booking validation errors."""


class InvalidDate(SchedulingError, ValueError):
    def __init__(self, value: str):
        super().__init__(f'Invalid date {value!r}. Use YYYY-MM-DD')
        self.value = value


class InvalidTime(SchedulingError, ValueError):
    def __init__(self, value: str):
        super().__init__(f'Invalid time {value!r}. Use HH:MM')
        self.value = value


class SlotConflict(SchedulingError):
    """A candidate booking overlaps time that is already taken."""

    reason = 'conflict'
    default_message = 'Time slot is not available'

    def __init__(self, conflict=None, message: str | None = None):
        super().__init__(message or self.default_message)
        self.conflict = conflict
        self.message = message or self.default_message


class BookingConflict(SlotConflict):
    reason = 'booking_conflict'
    default_message = 'Time slot is already booked'


class BlockedConflict(SlotConflict):
    reason = 'blocked_conflict'
    default_message = 'Time slot is not available (blocked by admin)'
