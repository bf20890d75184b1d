import logging
from datetime import date, time

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_serializer, field_validator
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from studio.auth.dependencies import require_admin
from studio.core import config
from studio.database import get_db
from studio.models.booking import Booking
from studio.models.business_hours import BusinessHours
from studio.models.business_setting import BusinessSetting
from studio.models.user import User
from studio.routes.common import database_unavailable
from studio.scheduling.intervals import parse_time

router = APIRouter(tags=['admin'])

logger = logging.getLogger(__name__)

RECENT_BOOKINGS_LIMIT = 5
MAX_SETTING_KEY_LENGTH = 100
MAX_SETTING_VALUE_LENGTH = 1000


class BusinessHoursRow(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool = True

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        if not 0 <= value <= 6:
            raise ValueError('Day of week must be between 0 (Sunday) and 6 (Saturday).')
        return value

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def validate_times(cls, value):
        if isinstance(value, str):
            return parse_time(value)
        return value


class BusinessHoursResponse(BusinessHoursRow):
    id: int

    class Config:
        from_attributes = True

    @field_serializer('start_time', 'end_time')
    def serialize_times(self, value: time) -> str:
        return value.strftime(config.TIME_FORMAT)


class UpdateBusinessHoursRequest(BaseModel):
    slots: list[BusinessHoursRow]


def validate_business_hours(rows: list[BusinessHoursRow]) -> None:
    active_days: set[int] = set()

    for row in rows:
        if row.start_time >= row.end_time:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Closing time must be after opening time for day {row.day_of_week}.',
            )

        if not row.is_active:
            continue

        if row.day_of_week in active_days:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Only one active opening interval is allowed for day {row.day_of_week}.',
            )
        active_days.add(row.day_of_week)


@router.get('/business-hours', response_model=list[BusinessHoursResponse])
def list_business_hours(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin

    try:
        return db.query(BusinessHours).order_by(BusinessHours.day_of_week.asc(), BusinessHours.id.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/business-hours', response_model=list[BusinessHoursResponse])
def replace_business_hours(
    data: UpdateBusinessHoursRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    validate_business_hours(data.slots)

    try:
        db.query(BusinessHours).delete()
        db.add_all([BusinessHours(**row.model_dump()) for row in data.slots])
        db.commit()
        logger.info('Business hours replaced by %s (%d rows)', admin.email, len(data.slots))

        return db.query(BusinessHours).order_by(BusinessHours.day_of_week.asc(), BusinessHours.id.asc()).all()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


class DashboardBooking(BaseModel):
    id: int
    service_name: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    appointment_date: date
    appointment_time: time
    status: str
    total_amount: float | None = None

    @field_serializer('appointment_time')
    def serialize_appointment_time(self, value: time) -> str:
        return value.strftime(config.TIME_FORMAT)


class DashboardResponse(BaseModel):
    total_customers: int
    total_bookings: int
    booking_revenue: float
    recent_bookings: list[DashboardBooking]


def to_dashboard_booking(booking: Booking) -> DashboardBooking:
    customer_name = None
    if booking.user is not None:
        customer_name = ' '.join(part for part in (booking.user.first_name, booking.user.last_name) if part) or None

    return DashboardBooking(
        id=booking.id,
        service_name=booking.service.name if booking.service else None,
        customer_name=customer_name,
        customer_email=booking.user.email if booking.user else None,
        appointment_date=booking.appointment_date,
        appointment_time=booking.appointment_time,
        status=booking.status,
        total_amount=float(booking.total_amount) if booking.total_amount is not None else None,
    )


@router.get('/dashboard', response_model=DashboardResponse)
def get_dashboard(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin

    try:
        total_customers = db.query(func.count(User.id)).filter(User.role == 'customer').scalar()
        total_bookings = db.query(func.count(Booking.id)).scalar()
        revenue = db.query(func.sum(Booking.total_amount)).filter(Booking.status == 'completed').scalar()
        recent_bookings = db.query(Booking).options(
            joinedload(Booking.service),
            joinedload(Booking.user),
        ).order_by(Booking.created_at.desc(), Booking.id.desc()).limit(RECENT_BOOKINGS_LIMIT).all()

        return DashboardResponse(
            total_customers=total_customers or 0,
            total_bookings=total_bookings or 0,
            booking_revenue=float(revenue or 0),
            recent_bookings=[to_dashboard_booking(booking) for booking in recent_bookings],
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def validate_settings(settings: dict[str, str | None]) -> dict[str, str | None]:
    if not settings:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='No settings to update.',
        )

    normalized: dict[str, str | None] = {}
    for key, value in settings.items():
        setting_key = key.strip()
        if not setting_key or len(setting_key) > MAX_SETTING_KEY_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Setting keys must be 1-{MAX_SETTING_KEY_LENGTH} characters.',
            )
        if value is not None and len(value) > MAX_SETTING_VALUE_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'Value for {setting_key} must be {MAX_SETTING_VALUE_LENGTH} characters or fewer.',
            )
        normalized[setting_key] = value

    return normalized


def load_settings(db: Session) -> dict[str, str | None]:
    rows = db.query(BusinessSetting).order_by(BusinessSetting.key.asc()).all()
    return {row.key: row.value for row in rows}


@router.get('/settings', response_model=dict[str, str | None])
def get_settings(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin

    try:
        return load_settings(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/settings', response_model=dict[str, str | None])
def update_settings(
    settings: dict[str, str | None],
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    changes = validate_settings(settings)

    try:
        existing = {
            row.key: row
            for row in db.query(BusinessSetting).filter(BusinessSetting.key.in_(list(changes))).all()
        }
        for key, value in changes.items():
            if key in existing:
                existing[key].value = value
            else:
                db.add(BusinessSetting(key=key, value=value))

        db.commit()
        logger.info('Settings %s updated by %s', sorted(changes), admin.email)

        return load_settings(db)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
