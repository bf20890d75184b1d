import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio.auth.dependencies import require_admin
from studio.database import get_db
from studio.models.service import Service
from studio.models.user import User
from studio.routes.common import database_unavailable

router = APIRouter(tags=['services'])

logger = logging.getLogger(__name__)

SERVICE_NOT_FOUND_DETAIL = 'Service not found.'


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


def _validate_name(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Service name is required.')
    return normalized


def _validate_duration(value: int) -> int:
    if value < 1:
        raise ValueError('Duration must be at least 1 minute.')
    return value


def _validate_price(value: float) -> float:
    if value < 0:
        raise ValueError('Price cannot be negative.')
    return value


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    duration: int
    price: float
    category: str | None = None
    image_url: str | None = None
    benefits: str | None = None
    is_active: bool
    is_displayed: bool
    display_order: int

    class Config:
        from_attributes = True


class CreateServiceRequest(BaseModel):
    name: str
    description: str | None = None
    duration: int
    price: float
    category: str | None = None
    image_url: str | None = None
    benefits: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_name(value)

    @field_validator('duration')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        return _validate_duration(value)

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: float) -> float:
        return _validate_price(value)

    @field_validator('description', 'category', 'image_url', 'benefits')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return _strip_optional(value)


class UpdateServiceRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    duration: int | None = None
    price: float | None = None
    category: str | None = None
    image_url: str | None = None
    benefits: str | None = None
    is_active: bool | None = None
    is_displayed: bool | None = None
    display_order: int | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return None if value is None else _validate_name(value)

    @field_validator('duration')
    @classmethod
    def validate_duration(cls, value: int | None) -> int | None:
        return None if value is None else _validate_duration(value)

    @field_validator('price')
    @classmethod
    def validate_price(cls, value: float | None) -> float | None:
        return None if value is None else _validate_price(value)

    @field_validator('display_order')
    @classmethod
    def validate_display_order(cls, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValueError('Display order must be a non-negative integer.')
        return value

    @field_validator('description', 'category', 'image_url', 'benefits')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return _strip_optional(value)


class ServiceDisplayOrder(BaseModel):
    id: int
    display_order: int

    @field_validator('display_order')
    @classmethod
    def validate_display_order(cls, value: int) -> int:
        if value < 0:
            raise ValueError('Display order must be a non-negative integer.')
        return value


class UpdateDisplayOrderRequest(BaseModel):
    services: list[ServiceDisplayOrder]

    @field_validator('services')
    @classmethod
    def validate_services(cls, value: list[ServiceDisplayOrder]) -> list[ServiceDisplayOrder]:
        if not value:
            raise ValueError('At least one service is required.')
        service_ids = [entry.id for entry in value]
        if len(set(service_ids)) != len(service_ids):
            raise ValueError('Each service may appear only once.')
        return value


def get_active_service(service_id: int, db: Session) -> Service:
    service = db.query(Service).filter(
        Service.id == service_id,
        Service.is_active.is_(True),
    ).first()
    if service is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SERVICE_NOT_FOUND_DETAIL)
    return service


@router.get('', response_model=list[ServiceResponse])
def list_services(db: Session = Depends(get_db)):
    try:
        return db.query(Service).filter(
            Service.is_active.is_(True),
            Service.is_displayed.is_(True),
        ).order_by(Service.display_order.asc(), Service.category.asc(), Service.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/meta/categories', response_model=list[str])
def list_service_categories(db: Session = Depends(get_db)):
    try:
        rows = db.query(Service.category).filter(
            Service.is_active.is_(True),
            Service.category.is_not(None),
        ).distinct().order_by(Service.category.asc()).all()

        return [category for (category,) in rows]
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/admin/all', response_model=list[ServiceResponse])
def list_services_for_admin(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del admin

    try:
        return db.query(Service).filter(
            Service.is_active.is_(True),
        ).order_by(Service.display_order.asc(), Service.created_at.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/admin/display-order', response_model=list[ServiceResponse])
def update_display_order(
    data: UpdateDisplayOrderRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    requested = {entry.id: entry.display_order for entry in data.services}

    try:
        services = db.query(Service).filter(Service.id.in_(list(requested))).all()
        if len(services) != len(requested):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SERVICE_NOT_FOUND_DETAIL)

        for service in services:
            service.display_order = requested[service.id]

        db.commit()
        logger.info('Display order of %d services updated by %s', len(services), admin.email)

        return db.query(Service).filter(
            Service.is_active.is_(True),
        ).order_by(Service.display_order.asc(), Service.created_at.desc()).all()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/category/{category}', response_model=list[ServiceResponse])
def list_services_by_category(category: str, db: Session = Depends(get_db)):
    try:
        return db.query(Service).filter(
            Service.category == category,
            Service.is_active.is_(True),
        ).order_by(Service.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{service_id}', response_model=ServiceResponse)
def get_service(service_id: int, db: Session = Depends(get_db)):
    try:
        return get_active_service(service_id, db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: CreateServiceRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        service = Service(**data.model_dump())
        db.add(service)
        db.commit()
        db.refresh(service)
        logger.info('Service %s (%s, %s min) created by %s', service.id, service.name, service.duration, admin.email)

        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{service_id}', response_model=ServiceResponse)
def update_service(
    service_id: int,
    data: UpdateServiceRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='No fields to update.')

    for field_name in ('name', 'duration', 'price', 'is_active', 'is_displayed', 'display_order'):
        if field_name in changes and changes[field_name] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f'{field_name} cannot be null.',
            )

    try:
        service = db.query(Service).filter(Service.id == service_id).first()
        if service is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SERVICE_NOT_FOUND_DETAIL)

        for field_name, value in changes.items():
            setattr(service, field_name, value)

        db.commit()
        db.refresh(service)
        logger.info('Service %s updated by %s: %s', service.id, admin.email, sorted(changes))

        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{service_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        service = db.query(Service).filter(Service.id == service_id).first()
        if service is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SERVICE_NOT_FOUND_DETAIL)

        # Existing bookings keep pointing at the row.
        service.is_active = False
        db.commit()
        logger.info('Service %s deactivated by %s', service_id, admin.email)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
