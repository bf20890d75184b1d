from datetime import date, time

from studio.models.business_hours import BusinessHours
from studio.models.business_setting import BusinessSetting
from studio.models.service import Service
from studio.scheduling.engine import AvailabilityEngine
from studio.scheduling.repository import SqlAlchemyScheduleRepository
from studio.seed import DEFAULT_SERVICES, DEFAULT_SETTINGS, seed


def test_seed_loads_default_calendar_and_catalog(studio_db) -> None:
    hours_added, services_added, settings_added = seed(studio_db)

    assert hours_added == 6
    assert services_added == len(DEFAULT_SERVICES)
    assert settings_added == len(DEFAULT_SETTINGS)
    assert studio_db.query(BusinessHours).filter(BusinessHours.day_of_week == 0).count() == 0
    assert studio_db.query(Service).filter(Service.name == 'Chemical Peel').one().duration == 45


def test_seed_is_idempotent(studio_db) -> None:
    seed(studio_db)

    assert seed(studio_db) == (0, 0, 0)
    assert studio_db.query(Service).count() == len(DEFAULT_SERVICES)


def test_seed_keeps_edited_settings(studio_db) -> None:
    studio_db.add(BusinessSetting(key='booking_advance_days', value='60'))
    studio_db.commit()

    _, _, settings_added = seed(studio_db)

    assert settings_added == len(DEFAULT_SETTINGS) - 1
    assert studio_db.query(BusinessSetting).filter(BusinessSetting.key == 'booking_advance_days').one().value == '60'


def test_seeded_calendar_drives_availability(studio_db) -> None:
    seed(studio_db)
    engine = AvailabilityEngine(SqlAlchemyScheduleRepository(studio_db), granularity_minutes=30)

    monday = engine.compute_available_slots(date(2026, 1, 5))
    saturday = engine.compute_available_slots(date(2026, 1, 10))

    assert len(monday) == 18
    assert saturday[0] == time(10, 0)
    assert saturday[-1] == time(15, 30)
    assert engine.compute_available_slots(date(2026, 1, 4)) == []
