from datetime import date, time

from studio.models.blocked_slot import BlockedSlot
from studio.models.booking import Booking
from studio.models.business_hours import BusinessHours
from studio.scheduling.engine import AvailabilityEngine, OccupiedBooking
from studio.scheduling.intervals import TimeInterval
from studio.scheduling.repository import SqlAlchemyScheduleRepository

MONDAY = date(2026, 1, 5)


def add_booking(db, user, service, start_time, status='confirmed', duration=None, booking_date=MONDAY):
    booking = Booking(
        user_id=user.id,
        service_id=service.id,
        appointment_date=booking_date,
        appointment_time=start_time,
        duration_minutes=duration,
        status=status,
        total_amount=service.price,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def test_active_hours_lookup_skips_inactive_rows(studio_db) -> None:
    studio_db.add_all([
        BusinessHours(day_of_week=0, start_time=time(10, 0), end_time=time(14, 0), is_active=False),
        BusinessHours(day_of_week=1, start_time=time(9, 0), end_time=time(18, 0), is_active=True),
    ])
    studio_db.commit()
    repository = SqlAlchemyScheduleRepository(studio_db)

    assert repository.get_active_hours_for_weekday(0) is None
    assert repository.get_active_hours_for_weekday(1) == TimeInterval(540, 1080)
    assert repository.get_active_hours_for_weekday(3) is None


def test_occupied_bookings_exclude_cancelled_and_other_dates(studio_db, customer, facial) -> None:
    add_booking(studio_db, customer, facial, time(10, 0), duration=60)
    add_booking(studio_db, customer, facial, time(10, 0), status='cancelled', duration=60)
    add_booking(studio_db, customer, facial, time(14, 0), status='pending', duration=60)
    add_booking(studio_db, customer, facial, time(9, 0), duration=60, booking_date=date(2026, 1, 6))
    repository = SqlAlchemyScheduleRepository(studio_db)

    occupied = repository.get_occupied_bookings_for_date(MONDAY)

    assert occupied == [OccupiedBooking(time(10, 0), 60), OccupiedBooking(time(14, 0), 60)]


def test_occupied_bookings_fall_back_to_service_duration(studio_db, customer, peel) -> None:
    add_booking(studio_db, customer, peel, time(11, 0), duration=None)
    repository = SqlAlchemyScheduleRepository(studio_db)

    assert repository.get_occupied_bookings_for_date(MONDAY) == [OccupiedBooking(time(11, 0), 45)]


def test_occupied_bookings_can_exclude_one_booking(studio_db, customer, facial) -> None:
    kept = add_booking(studio_db, customer, facial, time(10, 0), duration=60)
    excluded = add_booking(studio_db, customer, facial, time(12, 0), duration=60)
    repository = SqlAlchemyScheduleRepository(studio_db)

    occupied = repository.get_occupied_bookings_for_date(MONDAY, exclude_booking_id=excluded.id)

    assert occupied == [OccupiedBooking(kept.appointment_time, 60)]


def test_blocked_intervals_are_scoped_to_date(studio_db) -> None:
    studio_db.add_all([
        BlockedSlot(block_date=MONDAY, start_time=time(12, 0), end_time=time(13, 0), reason='Lunch'),
        BlockedSlot(block_date=date(2026, 1, 6), start_time=time(9, 0), end_time=time(10, 0)),
    ])
    studio_db.commit()
    repository = SqlAlchemyScheduleRepository(studio_db)

    assert repository.get_blocked_intervals_for_date(MONDAY) == [TimeInterval(720, 780)]


def test_engine_over_database_state(studio_db, weekday_hours, customer, facial) -> None:
    add_booking(studio_db, customer, facial, time(10, 0), duration=60)
    studio_db.add(BlockedSlot(block_date=MONDAY, start_time=time(12, 0), end_time=time(13, 0)))
    studio_db.commit()
    engine = AvailabilityEngine(SqlAlchemyScheduleRepository(studio_db), granularity_minutes=30)

    slots = engine.compute_available_slots(MONDAY)

    assert time(9, 30) in slots
    assert time(10, 0) not in slots
    assert time(10, 30) not in slots
    assert time(11, 30) in slots
    assert time(12, 0) not in slots
    assert time(12, 30) not in slots
    assert len(slots) == 14
    assert engine.validate_booking_candidate(MONDAY, time(10, 30), 30).reason == 'booking_conflict'
    assert engine.validate_booking_candidate(MONDAY, time(12, 30), 30).reason == 'blocked_conflict'
    assert engine.validate_booking_candidate(MONDAY, time(11, 0), 60).accepted
