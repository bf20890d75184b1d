from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from studio.database import ensure_blocked_slot_schema, ensure_booking_schema

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
        ensure_blocked_slot_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
