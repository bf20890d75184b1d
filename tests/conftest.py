import os
from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from studio.database import Base  # noqa: E402
from studio.models.blocked_slot import BlockedSlot  # noqa: E402
from studio.models.booking import Booking, BookingDateLock  # noqa: E402
from studio.models.business_setting import BusinessSetting  # noqa: E402
from studio.models.business_hours import BusinessHours  # noqa: E402
from studio.models.service import Service  # noqa: E402
from studio.models.user import User  # noqa: E402

TABLES = [
    User.__table__,
    Service.__table__,
    BusinessHours.__table__,
    BlockedSlot.__table__,
    Booking.__table__,
    BookingDateLock.__table__,
    BusinessSetting.__table__,
]


def next_date_for_weekday(weekday: int) -> date:
    """First date after today falling on ``weekday`` (0 = Sunday)."""
    candidate = date.today() + timedelta(days=1)
    while candidate.isoweekday() % 7 != weekday:
        candidate += timedelta(days=1)
    return candidate


@pytest.fixture
def studio_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))


@pytest.fixture
def studio_file_sessions(tmp_path):
    """Session factory over a file database so separate connections can race."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'studio.db'}",
        connect_args={'check_same_thread': False, 'timeout': 10},
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def weekday_hours(studio_db):
    """Monday to Friday 09:00-18:00, Saturday 10:00-16:00, Sunday closed."""
    rows = [BusinessHours(day_of_week=day, start_time=time(9, 0), end_time=time(18, 0)) for day in range(1, 6)]
    rows.append(BusinessHours(day_of_week=6, start_time=time(10, 0), end_time=time(16, 0)))
    studio_db.add_all(rows)
    studio_db.commit()
    return rows


@pytest.fixture
def customer(studio_db) -> User:
    user = User(email='client@example.com', first_name='Ana', last_name='Lopez', role='customer')
    studio_db.add(user)
    studio_db.commit()
    studio_db.refresh(user)
    return user


@pytest.fixture
def other_customer(studio_db) -> User:
    user = User(email='other@example.com', first_name='Bea', last_name='Ruiz', role='customer')
    studio_db.add(user)
    studio_db.commit()
    studio_db.refresh(user)
    return user


@pytest.fixture
def admin(studio_db) -> User:
    user = User(email='admin@studio.example', first_name='Studio', last_name='Admin', role='admin')
    studio_db.add(user)
    studio_db.commit()
    studio_db.refresh(user)
    return user


@pytest.fixture
def facial(studio_db) -> Service:
    service = Service(name='Classic European Facial', duration=60, price=Decimal('85.00'), category='Facial')
    studio_db.add(service)
    studio_db.commit()
    studio_db.refresh(service)
    return service


@pytest.fixture
def peel(studio_db) -> Service:
    service = Service(name='Chemical Peel', duration=45, price=Decimal('110.00'), category='Treatment')
    studio_db.add(service)
    studio_db.commit()
    studio_db.refresh(service)
    return service


@pytest.fixture
def no_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('studio.routes.booking_routes.ensure_database_ready', lambda: None)


@pytest.fixture
def upcoming():
    return next_date_for_weekday
