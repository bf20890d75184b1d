import logging
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_serializer, field_validator
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from studio.auth.dependencies import get_current_user, require_admin
from studio.core import config
from studio.database import booking_write_lock, get_db
from studio.models.blocked_slot import BlockedSlot
from studio.models.booking import CANCELLED_STATUS, Booking
from studio.models.service import Service
from studio.models.user import User
from studio.routes.common import database_unavailable, ensure_database_ready
from studio.scheduling.engine import AvailabilityEngine
from studio.scheduling.errors import BookingConflict, InvalidDate, SlotConflict
from studio.scheduling.intervals import (
    TimeInterval,
    format_minutes,
    overlaps,
    parse_date,
    parse_time,
    weekday_index,
)
from studio.scheduling.repository import SqlAlchemyScheduleRepository
from studio.services.notifications import BookingNotifier, get_notifier

router = APIRouter(tags=['bookings'])

logger = logging.getLogger(__name__)

MAX_BOOKING_NOTES_LENGTH = 600
MAX_BLOCK_REASON_LENGTH = 200
UPDATABLE_STATUSES = ('confirmed', 'completed', 'cancelled')
INVALID_DATE_DETAIL = 'Invalid date format. Use YYYY-MM-DD'


def _parse_date_field(value):
    if isinstance(value, str):
        return parse_date(value)
    return value


def _parse_time_field(value):
    if isinstance(value, str):
        return parse_time(value)
    return value


def _normalize_optional_text(value: str | None, max_length: int, label: str) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > max_length:
        raise ValueError(f'{label} must be {max_length} characters or fewer.')

    return normalized


class BusinessHoursWindow(BaseModel):
    start_time: str
    end_time: str


class AvailabilityResponse(BaseModel):
    available: bool
    date: date
    day_of_week: int
    business_hours: BusinessHoursWindow | None = None
    slots: list[str]
    message: str | None = None


class CreateBookingRequest(BaseModel):
    service_id: int
    appointment_date: date
    appointment_time: time
    notes: str | None = None

    @field_validator('service_id')
    @classmethod
    def validate_service_id(cls, value: int) -> int:
        if value < 1:
            raise ValueError('Service id must be a positive integer.')
        return value

    @field_validator('appointment_date', mode='before')
    @classmethod
    def validate_appointment_date(cls, value):
        return _parse_date_field(value)

    @field_validator('appointment_time', mode='before')
    @classmethod
    def validate_appointment_time(cls, value):
        return _parse_time_field(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, MAX_BOOKING_NOTES_LENGTH, 'Notes')


class UpdateBookingStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in UPDATABLE_STATUSES:
            raise ValueError('Invalid booking status.')
        return normalized


class BookingResponse(BaseModel):
    id: int
    user_id: int
    service_id: int
    service_name: str | None = None
    appointment_date: date
    appointment_time: time
    duration_minutes: int
    status: str
    notes: str | None = None
    total_amount: float | None = None
    email_confirmation_sent: bool = False
    customer_email: str | None = None

    @field_serializer('appointment_time')
    def serialize_appointment_time(self, value: time) -> str:
        return value.strftime(config.TIME_FORMAT)


class BookingStatsResponse(BaseModel):
    total_bookings: int
    by_status: dict[str, int]
    total_revenue: float


class CreateBlockedSlotRequest(BaseModel):
    block_date: date
    start_time: time
    end_time: time
    reason: str | None = None

    @field_validator('block_date', mode='before')
    @classmethod
    def validate_block_date(cls, value):
        return _parse_date_field(value)

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def validate_block_times(cls, value):
        return _parse_time_field(value)

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, MAX_BLOCK_REASON_LENGTH, 'Reason')


class BlockedSlotResponse(BaseModel):
    id: int
    block_date: date
    start_time: time
    end_time: time
    reason: str | None = None
    created_by: int | None = None

    class Config:
        from_attributes = True

    @field_serializer('start_time', 'end_time')
    def serialize_times(self, value: time) -> str:
        return value.strftime(config.TIME_FORMAT)


def to_booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        service_id=booking.service_id,
        service_name=booking.service.name if booking.service else None,
        appointment_date=booking.appointment_date,
        appointment_time=booking.appointment_time,
        duration_minutes=booking.duration_minutes or (booking.service.duration if booking.service else 0),
        status=booking.status,
        notes=booking.notes,
        total_amount=float(booking.total_amount) if booking.total_amount is not None else None,
        email_confirmation_sent=bool(booking.email_confirmation_sent),
        customer_email=booking.user.email if booking.user else None,
    )


def get_availability_engine(db: Session) -> AvailabilityEngine:
    return AvailabilityEngine(SqlAlchemyScheduleRepository(db))


def conflict_exception(conflict: SlotConflict) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=conflict.message)


def ensure_within_business_hours(engine: AvailabilityEngine, booking_date: date, candidate: TimeInterval) -> None:
    hours = engine.repository.get_active_hours_for_weekday(weekday_index(booking_date))
    if hours is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='The studio is closed on this day.',
        )

    if candidate.start < hours.start or candidate.end > hours.end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Appointments must fit within business hours ({hours}).',
        )


def get_visible_booking(booking_id: int, current_user: User, db: Session) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None or (booking.user_id != current_user.id and not current_user.is_admin):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Booking not found.',
        )
    return booking


@router.get('/availability/{date_value}', response_model=AvailabilityResponse)
def get_availability(date_value: str, db: Session = Depends(get_db)):
    try:
        target_date = parse_date(date_value)
    except InvalidDate as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_DATE_DETAIL) from exc

    ensure_database_ready()

    try:
        engine = get_availability_engine(db)
        day_of_week = weekday_index(target_date)
        hours = engine.repository.get_active_hours_for_weekday(day_of_week)

        if hours is None:
            return AvailabilityResponse(
                available=False,
                date=target_date,
                day_of_week=day_of_week,
                slots=[],
                message='Closed on this day',
            )

        slots = engine.compute_available_slots(target_date)

        return AvailabilityResponse(
            available=bool(slots),
            date=target_date,
            day_of_week=day_of_week,
            business_hours=BusinessHoursWindow(
                start_time=format_minutes(hours.start),
                end_time=format_minutes(hours.end),
            ),
            slots=[slot.strftime(config.TIME_FORMAT) for slot in slots],
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: CreateBookingRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: BookingNotifier = Depends(get_notifier),
):
    if datetime.combine(data.appointment_date, data.appointment_time) <= datetime.now():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Appointments must be scheduled in the future.',
        )

    ensure_database_ready()

    try:
        service = db.query(Service).filter(
            Service.id == data.service_id,
            Service.is_active.is_(True),
        ).first()
        if service is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Service not found.',
            )

        engine = get_availability_engine(db)
        candidate = TimeInterval.from_duration(data.appointment_time, service.duration)
        ensure_within_business_hours(engine, data.appointment_date, candidate)

        with booking_write_lock(db, data.appointment_date):
            engine.validate_booking_candidate(
                data.appointment_date,
                data.appointment_time,
                service.duration,
            ).raise_for_conflict()

            booking = Booking(
                user_id=current_user.id,
                service_id=service.id,
                appointment_date=data.appointment_date,
                appointment_time=data.appointment_time,
                duration_minutes=service.duration,
                status='confirmed',
                notes=data.notes,
                total_amount=service.price,
            )
            db.add(booking)
            db.commit()

        db.refresh(booking)
        logger.info(
            'Booking %s created for %s on %s at %s',
            booking.id,
            current_user.email,
            booking.appointment_date,
            candidate,
        )
    except SlotConflict as exc:
        db.rollback()
        raise conflict_exception(exc) from exc
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Concurrent booking detected on %s at %s', data.appointment_date, data.appointment_time)
        raise conflict_exception(BookingConflict()) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    send_confirmation(booking, notifier, db)

    return to_booking_response(booking)


def send_confirmation(booking: Booking, notifier: BookingNotifier, db: Session) -> None:
    """Notify the customer. Delivery problems never undo a committed booking."""
    try:
        delivered = notifier.send_booking_confirmation(booking)
    except Exception:
        logger.exception('Booking confirmation for booking %s could not be sent', booking.id)
        return

    if not delivered:
        return

    try:
        booking.email_confirmation_sent = True
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Could not record confirmation status for booking %s', booking.id)


@router.get('/my-bookings', response_model=list[BookingResponse])
def list_my_bookings(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        bookings = db.query(Booking).filter(
            Booking.user_id == current_user.id,
        ).order_by(Booking.appointment_date.desc(), Booking.appointment_time.desc()).all()

        return [to_booking_response(booking) for booking in bookings]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/admin/all', response_model=list[BookingResponse])
def list_all_bookings(
    date_value: str | None = Query(default=None, alias='date'),
    status_value: str | None = Query(default=None, alias='status'),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    filters = []

    if date_value:
        try:
            filters.append(Booking.appointment_date == parse_date(date_value))
        except InvalidDate as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_DATE_DETAIL) from exc

    if status_value:
        filters.append(Booking.status == status_value.strip().lower())

    ensure_database_ready()

    try:
        bookings = db.query(Booking).filter(*filters).order_by(
            Booking.appointment_date.desc(),
            Booking.appointment_time.desc(),
        ).all()

        return [to_booking_response(booking) for booking in bookings]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/admin/stats', response_model=BookingStatsResponse)
def get_booking_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        status_counts = db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        revenue = db.query(func.sum(Booking.total_amount)).filter(Booking.status == 'completed').scalar()

        by_status = {booking_status: count for booking_status, count in status_counts}
        return BookingStatsResponse(
            total_bookings=sum(by_status.values()),
            by_status=by_status,
            total_revenue=float(revenue or 0),
        )
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('/admin/block-slot', response_model=BlockedSlotResponse, status_code=status.HTTP_201_CREATED)
def create_blocked_slot(
    data: CreateBlockedSlotRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if data.start_time >= data.end_time:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='End time must be after start time.',
        )

    ensure_database_ready()

    candidate = TimeInterval.from_times(data.start_time, data.end_time)

    try:
        with booking_write_lock(db, data.block_date):
            engine = get_availability_engine(db)
            existing_blocks = engine.repository.get_blocked_intervals_for_date(data.block_date)
            if any(overlaps(candidate, block) for block in existing_blocks):
                db.rollback()
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail='Time slot overlaps with existing blocked time.',
                )

            blocked_slot = BlockedSlot(
                block_date=data.block_date,
                start_time=data.start_time,
                end_time=data.end_time,
                reason=data.reason,
                created_by=admin.id,
            )
            db.add(blocked_slot)
            db.commit()

        db.refresh(blocked_slot)
        logger.info('Blocked %s on %s (%s)', candidate, data.block_date, data.reason or 'no reason given')

        return blocked_slot
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/admin/blocked-slots', response_model=list[BlockedSlotResponse])
def list_blocked_slots(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin
    ensure_database_ready()

    try:
        return db.query(BlockedSlot).order_by(
            BlockedSlot.block_date.desc(),
            BlockedSlot.start_time.desc(),
        ).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.delete('/admin/blocked-slots/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_blocked_slot(
    slot_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        blocked_slot = db.query(BlockedSlot).filter(BlockedSlot.id == slot_id).first()

        if not blocked_slot:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Blocked slot not found.',
            )

        db.delete(blocked_slot)
        db.commit()
        logger.info('Blocked slot %s removed by %s', slot_id, admin.email)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/{booking_id}', response_model=BookingResponse)
def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return to_booking_response(get_visible_booking(booking_id, current_user, db))
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{booking_id}/status', response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    data: UpdateBookingStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if booking is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Booking not found.',
            )

        if booking.user_id != current_user.id and not current_user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Access denied.',
            )

        if booking.status == CANCELLED_STATUS and data.status != CANCELLED_STATUS:
            # A cancelled booking released its time; taking it back needs a fresh check.
            engine = get_availability_engine(db)
            with booking_write_lock(db, booking.appointment_date):
                engine.validate_booking_candidate(
                    booking.appointment_date,
                    booking.appointment_time,
                    booking.duration_minutes or booking.service.duration,
                    exclude_booking_id=booking.id,
                ).raise_for_conflict()

                booking.status = data.status
                db.commit()
        else:
            booking.status = data.status
            db.commit()

        db.refresh(booking)
        logger.info('Booking %s set to %s by %s', booking.id, booking.status, current_user.email)

        return to_booking_response(booking)
    except SlotConflict as exc:
        db.rollback()
        raise conflict_exception(exc) from exc
    except IntegrityError as exc:
        db.rollback()
        raise conflict_exception(BookingConflict()) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
