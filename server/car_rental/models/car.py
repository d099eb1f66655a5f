"""Car model definition."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import utcnow


class Transmission(str, Enum):
    """Gearbox options offered for a car."""
    MANUAL = "Manual"
    AUTOMATIC = "Automatic"
    BOTH = "Manual & Automatic"


class FuelType(str, Enum):
    """Fuel types in the fleet."""
    PETROL = "Petrol"
    DIESEL = "Diesel"


class Car(Base):
    """Car entity representing one fleet model and its day-rate tiers."""

    __tablename__ = "cars"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Catalog information
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    brand: Mapped[str] = mapped_column(String(128), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="5-Seater")
    category_label: Mapped[str] = mapped_column(String(64), nullable=False, default="Hatchback")
    transmission: Mapped[str] = mapped_column(String(32), nullable=False, default=Transmission.MANUAL.value)
    fuel: Mapped[str] = mapped_column(String(16), nullable=False, default=FuelType.PETROL.value)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Pricing: base day rate covers 1-2 days, tiers are optional
    price: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    price_3_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_7_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_15_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    km_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=300)
    extra_km_charge: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("price > 0", name="ck_car_price_positive"),
        CheckConstraint("price_3_days IS NULL OR price_3_days > 0", name="ck_car_price_3_days_positive"),
        CheckConstraint("price_7_days IS NULL OR price_7_days > 0", name="ck_car_price_7_days_positive"),
        CheckConstraint("price_15_days IS NULL OR price_15_days > 0", name="ck_car_price_15_days_positive"),
        CheckConstraint("km_limit >= 0", name="ck_car_km_limit_non_negative"),
    )

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.name}".strip()

    def __repr__(self) -> str:
        return f"<Car(id={self.id}, brand='{self.brand}', name='{self.name}', price={self.price})>"
