"""Create tables and load the default studio data.

Usage:
    python -m studio.seed
"""
import logging
from datetime import time
from decimal import Decimal

from sqlalchemy.orm import Session

from studio.core import config
from studio.database import Base, SessionLocal, engine, ensure_blocked_slot_schema, ensure_booking_schema
from studio.models import blocked_slot, booking  # noqa: F401
from studio.models.business_hours import BusinessHours
from studio.models.business_setting import BusinessSetting
from studio.models.service import Service

logger = logging.getLogger(__name__)

# Sunday (0) is closed.
DEFAULT_BUSINESS_HOURS = [
    (1, time(9, 0), time(18, 0)),
    (2, time(9, 0), time(18, 0)),
    (3, time(9, 0), time(18, 0)),
    (4, time(9, 0), time(18, 0)),
    (5, time(9, 0), time(18, 0)),
    (6, time(10, 0), time(16, 0)),
]

DEFAULT_SERVICES = [
    {
        'name': 'Classic European Facial',
        'description': 'A relaxing and rejuvenating facial that cleanses, exfoliates and nourishes the skin.',
        'duration': 60,
        'price': Decimal('85.00'),
        'category': 'Facial',
    },
    {
        'name': 'Anti-Aging Treatment',
        'description': 'Advanced facial targeting fine lines, wrinkles and age spots.',
        'duration': 90,
        'price': Decimal('120.00'),
        'category': 'Anti-Aging',
    },
    {
        'name': 'Deep Cleansing Facial',
        'description': 'Intensive treatment for congested skin with extractions and purifying masks.',
        'duration': 75,
        'price': Decimal('95.00'),
        'category': 'Facial',
    },
    {
        'name': 'Hydrating Facial',
        'description': 'Intense moisture and nourishment for dry or dehydrated skin.',
        'duration': 60,
        'price': Decimal('80.00'),
        'category': 'Facial',
    },
    {
        'name': 'Chemical Peel',
        'description': 'Professional peel to improve texture, reduce acne scars and brighten the complexion.',
        'duration': 45,
        'price': Decimal('110.00'),
        'category': 'Treatment',
    },
]

DEFAULT_SETTINGS = {
    'business_name': config.BUSINESS_NAME,
    'business_email': config.BUSINESS_EMAIL,
    'business_phone': config.BUSINESS_PHONE,
    'business_address': config.BUSINESS_ADDRESS,
    'booking_advance_days': '30',
    'booking_cancellation_hours': '24',
}


def seed_business_hours(db: Session) -> int:
    if db.query(BusinessHours).count():
        return 0

    db.add_all([
        BusinessHours(day_of_week=day_of_week, start_time=start_time, end_time=end_time, is_active=True)
        for day_of_week, start_time, end_time in DEFAULT_BUSINESS_HOURS
    ])
    return len(DEFAULT_BUSINESS_HOURS)


def seed_services(db: Session) -> int:
    existing_names = {name for (name,) in db.query(Service.name).all()}
    new_services = [Service(**values) for values in DEFAULT_SERVICES if values['name'] not in existing_names]
    db.add_all(new_services)
    return len(new_services)


def seed_settings(db: Session) -> int:
    existing_keys = {key for (key,) in db.query(BusinessSetting.key).all()}
    new_settings = [
        BusinessSetting(key=key, value=value)
        for key, value in DEFAULT_SETTINGS.items()
        if key not in existing_keys
    ]
    db.add_all(new_settings)
    return len(new_settings)


def seed(db: Session) -> tuple[int, int, int]:
    hours_added = seed_business_hours(db)
    services_added = seed_services(db)
    settings_added = seed_settings(db)
    db.commit()
    return hours_added, services_added, settings_added


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    ensure_booking_schema()
    ensure_blocked_slot_schema()

    db = SessionLocal()
    try:
        hours_added, services_added, settings_added = seed(db)
    finally:
        db.close()

    logger.info(
        'Seeded %d business hour rows, %d services and %d settings',
        hours_added,
        services_added,
        settings_added,
    )


if __name__ == "__main__":
    main()
