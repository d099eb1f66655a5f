"""Unit tests for FleetService."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from car_rental.core.exceptions import NotFoundError, ServiceUnavailableError, ValidationError
from car_rental.schemas.car import CreateCarRequest, UpdateCarRequest
from car_rental.services.fleet_service import FleetService


@pytest.mark.asyncio
async def test_create_car(test_session, sample_car_data):
    service = FleetService(test_session)

    car = await service.create_car(CreateCarRequest(**sample_car_data))

    assert car.id is not None
    assert car.name == "Swift"
    assert car.transmission == "Manual & Automatic"
    assert car.price_3_days == 2200
    assert car.is_available is True


@pytest.mark.asyncio
async def test_list_cars_orders_by_price(test_session, fleet):
    service = FleetService(test_session)

    cars = await service.list_cars()

    assert [car.name for car in cars] == ["Swift", "Innova", "Creta"]


@pytest.mark.asyncio
async def test_list_available_only(test_session, fleet):
    fleet["Innova"].is_available = False
    await test_session.commit()

    cars = await FleetService(test_session).list_cars(available_only=True)

    assert [car.name for car in cars] == ["Swift", "Creta"]


@pytest.mark.asyncio
async def test_list_cars_failure_is_service_unavailable():
    db = AsyncMock()
    db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

    with pytest.raises(ServiceUnavailableError) as exc_info:
        await FleetService(db).list_cars()

    assert exc_info.value.status_code == 503
    assert exc_info.value.problem_details["dependency"] == "fleet"


@pytest.mark.asyncio
async def test_get_car_or_raise(test_session, fleet):
    service = FleetService(test_session)

    car = await service.get_car_or_raise(str(fleet["Creta"].id))
    assert car.name == "Creta"

    with pytest.raises(NotFoundError):
        await service.get_car_or_raise(str(uuid4()))

    with pytest.raises(ValidationError):
        await service.get_car_or_raise("not-a-uuid")


@pytest.mark.asyncio
async def test_update_car_changes_only_given_fields(test_session, fleet):
    service = FleetService(test_session)
    swift = fleet["Swift"]

    car = await service.update_car(UpdateCarRequest(car_id=str(swift.id), price=2600, is_available=False))

    assert car.price == 2600
    assert car.is_available is False
    assert car.price_3_days == 2200
    assert car.name == "Swift"


@pytest.mark.asyncio
async def test_update_can_clear_a_tier(test_session, fleet):
    car = await FleetService(test_session).update_car(
        UpdateCarRequest(car_id=str(fleet["Swift"].id), price_15_days=None)
    )
    assert car.price_15_days is None


@pytest.mark.asyncio
async def test_delete_cars(test_session, fleet):
    service = FleetService(test_session)

    deleted = await service.delete_cars([str(fleet["Swift"].id), str(uuid4())])

    assert deleted == 1
    assert [car.name for car in await service.list_cars()] == ["Innova", "Creta"]


@pytest.mark.asyncio
async def test_delete_all_cars(test_session, fleet):
    service = FleetService(test_session)

    assert await service.delete_all_cars() == 3
    assert await service.list_cars() == []
