# File: src/smart_parking/infrastructure/settings.py
"""
Application configuration using Pydantic Settings.

Values come from SMART_PARKING_* environment variables or a .env file and
are frozen into a FacilityConfig when the engine is built.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.models import FacilityConfig


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SMART_PARKING_",
        env_file=".env",
        extra="ignore",
    )

    # Facility
    slot_capacity: int = Field(default=10, gt=0)
    waiting_capacity: int = Field(default=10, gt=0)
    max_vehicle_id: int = Field(default=100, gt=0)

    # Billing
    hourly_rate: Decimal = Field(default=Decimal("50"), ge=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def to_facility_config(self) -> FacilityConfig:
        return FacilityConfig(
            slot_capacity=self.slot_capacity,
            waiting_capacity=self.waiting_capacity,
            hourly_rate=self.hourly_rate,
            max_vehicle_id=self.max_vehicle_id,
            currency=self.currency,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
