import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from studio.models.service import Service
from studio.routes.service_routes import (
    CreateServiceRequest,
    UpdateDisplayOrderRequest,
    UpdateServiceRequest,
    create_service,
    delete_service,
    get_service,
    list_service_categories,
    list_services,
    list_services_by_category,
    list_services_for_admin,
    update_display_order,
    update_service,
)


def test_create_service_request_normalizes_text() -> None:
    request = CreateServiceRequest(name='  Hydrating Facial ', duration=60, price=80, category=' Facial ', description='   ')

    assert request.name == 'Hydrating Facial'
    assert request.category == 'Facial'
    assert request.description is None


@pytest.mark.parametrize(
    'overrides',
    [
        {'name': '   '},
        {'duration': 0},
        {'price': -1},
    ],
)
def test_create_service_request_rejects_invalid_values(overrides: dict) -> None:
    payload = {'name': 'Chemical Peel', 'duration': 45, 'price': 110}
    payload.update(overrides)

    with pytest.raises(ValidationError):
        CreateServiceRequest(**payload)


def test_public_listing_hides_inactive_and_hidden_services(studio_db, facial, peel) -> None:
    hidden = Service(name='Staff Training', duration=30, price=0, category='Internal', is_displayed=False)
    retired = Service(name='Old Mask', duration=30, price=20, category='Facial', is_active=False)
    studio_db.add_all([hidden, retired])
    studio_db.commit()

    names = [service.name for service in list_services(db=studio_db)]

    assert names == ['Classic European Facial', 'Chemical Peel']
    assert list_service_categories(db=studio_db) == ['Facial', 'Internal', 'Treatment']
    assert [service.name for service in list_services_by_category(category='Facial', db=studio_db)] == [
        'Classic European Facial',
    ]


def test_get_service_returns_not_found_for_inactive(studio_db, facial) -> None:
    assert get_service(service_id=facial.id, db=studio_db).name == 'Classic European Facial'

    facial.is_active = False
    studio_db.commit()

    with pytest.raises(HTTPException) as exception_info:
        get_service(service_id=facial.id, db=studio_db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Service not found.'


def test_create_service_persists_catalog_entry(studio_db, admin) -> None:
    service = create_service(
        data=CreateServiceRequest(name='Anti-Aging Treatment', duration=90, price=120, category='Anti-Aging'),
        admin=admin,
        db=studio_db,
    )

    assert service.id is not None
    assert service.duration == 90
    assert service.is_active is True
    assert [row.name for row in list_services_for_admin(admin=admin, db=studio_db)] == ['Anti-Aging Treatment']


def test_update_service_applies_partial_changes(studio_db, admin, facial) -> None:
    service = update_service(
        service_id=facial.id,
        data=UpdateServiceRequest(duration=75, display_order=2),
        admin=admin,
        db=studio_db,
    )

    assert service.duration == 75
    assert service.display_order == 2
    assert service.name == 'Classic European Facial'


def test_update_service_requires_changes(studio_db, admin, facial) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_service(service_id=facial.id, data=UpdateServiceRequest(), admin=admin, db=studio_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'No fields to update.'


def test_update_service_rejects_null_required_field(studio_db, admin, facial) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_service(service_id=facial.id, data=UpdateServiceRequest(price=None), admin=admin, db=studio_db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'price cannot be null.'


def test_update_service_returns_not_found(studio_db, admin) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_service(service_id=404, data=UpdateServiceRequest(name='Ghost'), admin=admin, db=studio_db)

    assert exception_info.value.status_code == 404


def test_delete_service_is_a_soft_delete(studio_db, admin, facial) -> None:
    delete_service(service_id=facial.id, admin=admin, db=studio_db)

    stored = studio_db.query(Service).filter(Service.id == facial.id).one()
    assert stored.is_active is False
    assert list_services(db=studio_db) == []

    with pytest.raises(HTTPException) as exception_info:
        delete_service(service_id=999, admin=admin, db=studio_db)

    assert exception_info.value.status_code == 404


def test_update_display_order_reorders_catalog_in_one_call(studio_db, admin, facial, peel) -> None:
    services = update_display_order(
        data=UpdateDisplayOrderRequest(services=[
            {'id': facial.id, 'display_order': 2},
            {'id': peel.id, 'display_order': 1},
        ]),
        admin=admin,
        db=studio_db,
    )

    assert [(service.name, service.display_order) for service in services] == [
        ('Chemical Peel', 1),
        ('Classic European Facial', 2),
    ]
    assert [service.name for service in list_services(db=studio_db)] == ['Chemical Peel', 'Classic European Facial']


def test_update_display_order_changes_nothing_when_a_service_is_missing(studio_db, admin, facial) -> None:
    with pytest.raises(HTTPException) as exception_info:
        update_display_order(
            data=UpdateDisplayOrderRequest(services=[
                {'id': facial.id, 'display_order': 5},
                {'id': 404, 'display_order': 1},
            ]),
            admin=admin,
            db=studio_db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Service not found.'

    studio_db.rollback()
    assert studio_db.query(Service).filter(Service.id == facial.id).one().display_order == 0


@pytest.mark.parametrize(
    'services',
    [
        [],
        [{'id': 1, 'display_order': -1}],
        [{'id': 1, 'display_order': 1}, {'id': 1, 'display_order': 2}],
    ],
)
def test_update_display_order_request_rejects_invalid_payloads(services: list) -> None:
    with pytest.raises(ValidationError):
        UpdateDisplayOrderRequest(services=services)
