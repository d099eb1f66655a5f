"""Fleet service for car inventory operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError, ServiceUnavailableError, ValidationError
from ..models.car import Car
from ..schemas.car import CreateCarRequest, UpdateCarRequest

logger = logging.getLogger(__name__)

FLEET_UNAVAILABLE = "We couldn't load the fleet right now. Please try again shortly."


def parse_car_id(car_id: str) -> UUID:
    """
    Parse a car id from a request body.

    Raises:
        ValidationError: If the id is not a UUID
    """
    try:
        return UUID(car_id)
    except (ValueError, TypeError):
        raise ValidationError(
            detail=f"Invalid car ID format: {car_id}",
            errors={"car_id": car_id},
        ) from None


class FleetService:
    """Service for car-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_cars(self, available_only: bool = False) -> list[Car]:
        """
        All cars ordered by ascending base price.

        Raises:
            ServiceUnavailableError: If the fleet cannot be read; no partial
                list is ever returned
        """
        stmt = select(Car).order_by(Car.price.asc(), Car.name.asc())
        if available_only:
            stmt = stmt.where(Car.is_available.is_(True))

        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Fleet read failed", extra={"error": str(e)})
            raise ServiceUnavailableError(detail=FLEET_UNAVAILABLE, dependency="fleet") from None

    async def get_car(self, car_id: UUID) -> Optional[Car]:
        stmt = select(Car).where(Car.id == car_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_car_or_raise(self, car_id: str) -> Car:
        """
        Get car by ID or raise NotFoundError.

        Args:
            car_id: Car ID as received from the client

        Returns:
            Car entity

        Raises:
            ValidationError: If the ID is malformed
            NotFoundError: If no such car exists
        """
        car = await self.get_car(parse_car_id(car_id))
        if not car:
            logger.warning("Car not found", extra={"car_id": car_id})
            raise NotFoundError(resource_type="car", resource_id=car_id)
        return car

    async def create_car(self, request: CreateCarRequest) -> Car:
        car = Car(**request.model_dump(mode="json"))
        self.db.add(car)
        await self.db.commit()
        await self.db.refresh(car)

        logger.info(
            "Car created",
            extra={"car_id": str(car.id), "brand": car.brand, "name": car.name, "price": car.price}
        )
        return car

    async def update_car(self, request: UpdateCarRequest) -> Car:
        """
        Apply the fields present in ``request`` to an existing car.

        Raises:
            NotFoundError: If the car does not exist
        """
        car = await self.get_car_or_raise(request.car_id)
        changes = request.model_dump(mode="json", exclude={"car_id"}, exclude_unset=True)
        for field, value in changes.items():
            setattr(car, field, value)

        await self.db.commit()
        await self.db.refresh(car)

        logger.info("Car updated", extra={"car_id": str(car.id), "fields": sorted(changes)})
        return car

    async def delete_cars(self, car_ids: list[str]) -> int:
        """Delete the given cars; unknown ids are ignored."""
        ids = [parse_car_id(car_id) for car_id in car_ids]
        result = await self.db.execute(delete(Car).where(Car.id.in_(ids)))
        await self.db.commit()

        logger.info("Cars deleted", extra={"requested": len(ids), "deleted": result.rowcount})
        return result.rowcount

    async def delete_all_cars(self) -> int:
        result = await self.db.execute(delete(Car))
        await self.db.commit()

        logger.warning("All cars deleted", extra={"deleted": result.rowcount})
        return result.rowcount
