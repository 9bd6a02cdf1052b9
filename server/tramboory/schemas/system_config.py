"""System configuration schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from .common import TIME_PATTERN, CamelModel


class BusinessHours(CamelModel):
    start: str = Field("14:00", pattern=TIME_PATTERN)
    end: str = Field("19:00", pattern=TIME_PATTERN)


class TimeBlock(CamelModel):
    """Window of one or more weekdays (0 = Sunday) that produces bookable slots."""

    name: str = Field(..., min_length=1, max_length=100)
    days: List[int] = Field(..., min_length=1)
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    duration: float = Field(..., ge=1, le=12, description="Event duration in hours")
    half_hour_break: bool = True
    max_events_per_block: int = Field(1, ge=1)

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Los días deben estar entre 0 (domingo) y 6 (sábado)")
        return v

    @model_validator(mode="after")
    def validate_range(self) -> "TimeBlock":
        if self.start_time >= self.end_time:
            raise ValueError("La hora de inicio debe ser anterior a la hora de fin")
        return self


class RestDay(CamelModel):
    day: int = Field(..., ge=0, le=6)
    name: str = Field(..., min_length=1, max_length=50)
    fee: float = Field(0, ge=0)
    can_be_released: bool = True


class SystemConfigUpdate(CamelModel):
    """Full or partial replacement of the active configuration."""

    advance_booking_days: Optional[int] = Field(None, ge=1, le=365)
    min_advance_booking_days: Optional[int] = Field(None, ge=0, le=365)
    max_concurrent_events: Optional[int] = Field(None, ge=1, le=50)
    default_event_duration: Optional[float] = Field(None, ge=1, le=24)
    business_hours: Optional[BusinessHours] = None
    time_blocks: Optional[List[TimeBlock]] = None
    rest_days: Optional[List[RestDay]] = None
    one_event_per_day: Optional[bool] = None

    @field_validator("rest_days")
    @classmethod
    def unique_rest_days(cls, v: Optional[List[RestDay]]) -> Optional[List[RestDay]]:
        if v is not None and len({rest_day.day for rest_day in v}) != len(v):
            raise ValueError("Los días de descanso no pueden repetirse")
        return v


class SystemConfigOut(CamelModel):
    id: Optional[UUID] = None
    advance_booking_days: int
    min_advance_booking_days: int
    max_concurrent_events: int
    default_event_duration: float
    business_hours: BusinessHours
    time_blocks: List[TimeBlock]
    rest_days: List[RestDay]
    one_event_per_day: bool
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PublicConfig(CamelModel):
    advance_booking_days: int
    min_advance_booking_days: int
    default_event_duration: float
    time_blocks: List[TimeBlock]
    rest_days: List[RestDay]
