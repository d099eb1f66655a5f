"""Fleet Pydantic schemas."""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.car import FuelType, Transmission


class TransmissionFilter(str, Enum):
    """Gearbox filter offered to customers."""
    ALL = "All"
    MANUAL = "Manual"
    AUTOMATIC = "Automatic"


class SortOption(str, Enum):
    """Catalog ordering."""
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"


class CarFields(BaseModel):
    """Editable car attributes shared by create and update."""

    name: str = Field(..., min_length=1, max_length=128, description="Model name, e.g. Swift")
    brand: str = Field(..., min_length=1, max_length=128, description="Manufacturer")
    category: str = Field("5-Seater", max_length=32, description="Seating category")
    category_label: str = Field("Hatchback", max_length=64, description="Body style label")
    transmission: Transmission = Field(Transmission.MANUAL, description="Gearbox options")
    fuel: FuelType = Field(FuelType.PETROL, description="Fuel type")
    image: Optional[str] = Field(None, max_length=512, description="Primary image URL")
    images: list[str] = Field(default_factory=list, description="Gallery image URLs")
    price: int = Field(..., gt=0, description="Day rate for 1-2 day trips")
    price_3_days: Optional[int] = Field(None, gt=0, description="Day rate from 3 days")
    price_7_days: Optional[int] = Field(None, gt=0, description="Day rate from 8 days")
    price_15_days: Optional[int] = Field(None, gt=0, description="Day rate from 16 days")
    km_limit: int = Field(300, ge=0, description="Included km per day")
    extra_km_charge: int = Field(10, ge=0, description="Charge per extra km")
    is_available: bool = Field(True, description="Shown to customers")


class CreateCarRequest(CarFields):
    """Request schema for adding a car to the fleet."""


class UpdateCarRequest(BaseModel):
    """Request schema for editing a car; omitted fields are left unchanged."""

    car_id: str = Field(..., description="Car to update")
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    brand: Optional[str] = Field(None, min_length=1, max_length=128)
    category: Optional[str] = Field(None, max_length=32)
    category_label: Optional[str] = Field(None, max_length=64)
    transmission: Optional[Transmission] = None
    fuel: Optional[FuelType] = None
    image: Optional[str] = Field(None, max_length=512)
    images: Optional[list[str]] = None
    price: Optional[int] = Field(None, gt=0)
    price_3_days: Optional[int] = Field(None, gt=0)
    price_7_days: Optional[int] = Field(None, gt=0)
    price_15_days: Optional[int] = Field(None, gt=0)
    km_limit: Optional[int] = Field(None, ge=0)
    extra_km_charge: Optional[int] = Field(None, ge=0)
    is_available: Optional[bool] = None


class DeleteCarsRequest(BaseModel):
    """Request schema for removing selected cars."""

    car_ids: list[str] = Field(..., min_length=1, description="Cars to delete")


class DeleteCarsResponse(BaseModel):
    deleted: int = Field(..., ge=0)


class Car(BaseModel):
    """Car response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    brand: str
    category: str
    category_label: str
    transmission: str
    fuel: str
    image: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    price: int
    price_3_days: Optional[int] = None
    price_7_days: Optional[int] = None
    price_15_days: Optional[int] = None
    km_limit: int
    extra_km_charge: int
    is_available: bool

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v) -> str:
        return str(v)


class CarWithPrice(Car):
    """Car annotated with its trip price for the current duration."""

    total_price: int = Field(..., ge=0)
    full_days: int = Field(..., ge=0)
    extra_hours: int = Field(..., ge=0, le=23)
    tier: str
    trip_km_limit: int = Field(..., ge=0)


class AvailabilityRequest(BaseModel):
    """Request schema for listing cars for the session's trip."""

    transmission: TransmissionFilter = Field(TransmissionFilter.ALL)


class AvailabilityResponse(BaseModel):
    """Availability listing; ``awaiting_dates`` when no duration is known yet."""

    status: Literal["awaiting_dates", "ready"]
    transmission: TransmissionFilter
    full_days: Optional[int] = None
    extra_hours: Optional[int] = None
    cars: list[CarWithPrice] = Field(default_factory=list)


class CatalogRequest(BaseModel):
    """Request schema for browsing the full fleet."""

    search: str = Field("", max_length=100, description="Matches name, brand or category label")
    category: Optional[str] = Field(None, description="Seating category, omit for all")
    fuel: Optional[FuelType] = Field(None, description="Fuel type, omit for all")
    transmission: TransmissionFilter = Field(TransmissionFilter.ALL)
    sort: SortOption = Field(SortOption.PRICE_ASC)


class CatalogResponse(BaseModel):
    cars: list[Car]
    total: int
    brands: list[str]


class QuoteRequest(BaseModel):
    """Request schema for a stand-alone price quote."""

    car_id: str
    pickup_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    pickup_time: str = Field("10:00", pattern=r"^\d{2}:\d{2}$")
    drop_date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    drop_time: str = Field("10:00", pattern=r"^\d{2}:\d{2}$")


class QuoteResponse(BaseModel):
    """Itemised trip price."""

    car: Car
    total_hours: int
    full_days: int
    extra_hours: int
    tier: str
    per_day_rate: int
    hourly_rate: float
    days_price: int
    hours_price: int
    total_price: int
    km_limit: int


class LocationsResponse(BaseModel):
    """Pickup hubs the business serves."""

    locations: list[str]
