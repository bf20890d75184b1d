"""Booking notification hook.

Email and SMS delivery live outside this service. The booking flow only
depends on :class:`BookingNotifier`; the default implementation records the
event in the application log.
"""

import logging
from typing import Protocol

from studio.core import config
from studio.models.booking import Booking

logger = logging.getLogger(__name__)


class BookingNotifier(Protocol):
    def send_booking_confirmation(self, booking: Booking) -> bool:
        ...


class LoggingNotifier:
    def send_booking_confirmation(self, booking: Booking) -> bool:
        logger.info(
            'Booking %s confirmed for user %s on %s at %s',
            booking.id,
            booking.user_id,
            booking.appointment_date,
            booking.appointment_time.strftime(config.TIME_FORMAT),
        )
        return True


_notifier: BookingNotifier = LoggingNotifier()


def get_notifier() -> BookingNotifier:
    return _notifier
