from contextlib import contextmanager
from datetime import date
from threading import Lock
from typing import Iterator

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from studio.core import config


DATABASE_URL = config.DATABASE_URL

connect_args = (
    {'check_same_thread': False, 'timeout': config.SQLITE_BUSY_TIMEOUT_SECONDS}
    if DATABASE_URL.startswith('sqlite')
    else {}
)
engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

ACTIVE_BOOKING_INDEX = 'uq_bookings_active_slot'
BOOKING_DATE_LOCK_TABLE = 'booking_date_locks'
BOOKING_LOCK_STRIPES = 64

_schema_lock = Lock()
_booking_schema_checked = False
_blocked_slot_schema_checked = False

_booking_locks = tuple(Lock() for _ in range(BOOKING_LOCK_STRIPES))


def ensure_booking_schema() -> None:
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        inspector = inspect(engine)

        if 'bookings' not in inspector.get_table_names():
            _booking_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('bookings')}
        migration_steps = [
            ('duration_minutes', 'ALTER TABLE bookings ADD COLUMN duration_minutes INTEGER'),
            ('notes', 'ALTER TABLE bookings ADD COLUMN notes VARCHAR'),
            ('total_amount', 'ALTER TABLE bookings ADD COLUMN total_amount NUMERIC(10, 2)'),
            ('email_confirmation_sent', 'ALTER TABLE bookings ADD COLUMN email_confirmation_sent BOOLEAN DEFAULT FALSE'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_bookings_date_status ON bookings(appointment_date, status)')
            )
            connection.execute(
                text(
                    f'CREATE UNIQUE INDEX IF NOT EXISTS {ACTIVE_BOOKING_INDEX} '
                    "ON bookings(appointment_date, appointment_time) WHERE status != 'cancelled'"
                )
            )

        _booking_schema_checked = True


def ensure_blocked_slot_schema() -> None:
    global _blocked_slot_schema_checked

    if _blocked_slot_schema_checked:
        return

    with _schema_lock:
        if _blocked_slot_schema_checked:
            return

        inspector = inspect(engine)

        if 'blocked_slots' not in inspector.get_table_names():
            _blocked_slot_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('blocked_slots')}

        with engine.begin() as connection:
            if 'reason' not in existing_columns:
                connection.execute(text('ALTER TABLE blocked_slots ADD COLUMN reason VARCHAR'))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_blocked_slots_date ON blocked_slots(block_date, start_time)')
            )

        _blocked_slot_schema_checked = True


def _get_booking_lock(booking_date: date) -> Lock:
    # Dates sharing a stripe wait on each other; the pool never grows.
    return _booking_locks[booking_date.toordinal() % BOOKING_LOCK_STRIPES]


@contextmanager
def booking_write_lock(db: Session, booking_date: date) -> Iterator[None]:
    """Serialize the conflict check and the booking write for one calendar date.

    The in-process lock covers a single worker. Across workers the database
    takes over: PostgreSQL gets a transaction scoped advisory lock, SQLite gets
    a write to the date's row in ``booking_date_locks``, which holds the
    database write lock until the caller commits or rolls back. The partial
    unique index on active bookings remains the last line against identical
    start times.
    """
    with _get_booking_lock(booking_date):
        dialect_name = db.get_bind().dialect.name
        lock_key = booking_date.isoformat()

        if dialect_name == 'postgresql':
            db.execute(
                text('SELECT pg_advisory_xact_lock(hashtext(:lock_key))'),
                {'lock_key': f'bookings:{lock_key}'},
            )
        elif dialect_name == 'sqlite':
            db.execute(
                text(
                    f'INSERT INTO {BOOKING_DATE_LOCK_TABLE} (lock_date, locked_at) '
                    'VALUES (:lock_date, CURRENT_TIMESTAMP) '
                    'ON CONFLICT (lock_date) DO UPDATE SET locked_at = CURRENT_TIMESTAMP'
                ),
                {'lock_date': lock_key},
            )
        yield


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
