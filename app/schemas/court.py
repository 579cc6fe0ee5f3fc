from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime, time
from enum import Enum

from app.utils.time_utils import parse_time


class WindowStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"
    PAST = "past"


class CourtBase(BaseModel):
    name: str
    sport_type: str
    price_per_hour: int = Field(ge=0)  # Precio en centavos
    open_time: time
    close_time: time
    slot_minutes: int = Field(default=60, gt=0, le=1440)


class CourtCreate(CourtBase):
    facility_id: int


class CourtUpdate(BaseModel):
    name: Optional[str] = None
    sport_type: Optional[str] = None
    price_per_hour: Optional[int] = Field(default=None, ge=0)
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    slot_minutes: Optional[int] = Field(default=None, gt=0, le=1440)
    is_active: Optional[bool] = None


class CourtResponse(CourtBase):
    id: int
    facility_id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CourtScheduleCreate(BaseModel):
    date_from: date
    date_to: date
    slot_minutes: int = Field(default=60, gt=0, le=1440)
    active_weekdays: List[int] = Field(default_factory=lambda: list(range(7)))
    base_price: int = Field(ge=0)
    peak_price: Optional[int] = Field(default=None, ge=0)
    peak_hours: List[str] = Field(default_factory=list)

    @field_validator("active_weekdays")
    @classmethod
    def validate_weekdays(cls, value):
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("active_weekdays must be between 0 (Monday) and 6 (Sunday)")
        return sorted(set(value))

    @field_validator("peak_hours")
    @classmethod
    def validate_peak_hours(cls, value):
        return sorted({parse_time(hour).strftime("%H:%M") for hour in value})

    @field_validator("date_to")
    @classmethod
    def validate_range(cls, value, info):
        date_from = info.data.get("date_from")
        if date_from and value < date_from:
            raise ValueError("date_to must be on or after date_from")
        return value


class CourtScheduleResponse(CourtScheduleCreate):
    id: int
    court_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class TimeWindow(BaseModel):
    court_id: int
    date: date
    start_time: time
    end_time: time
    price: int
    status: WindowStatus = WindowStatus.AVAILABLE
    booking_id: Optional[int] = None
    is_own_booking: bool = False
    maintenance_reason: Optional[str] = None


class AvailabilityResponse(BaseModel):
    court_id: int
    date: date
    windows: List[TimeWindow]


class SelectionRequest(BaseModel):
    date: date
    start_times: List[time] = Field(min_length=1)


class SelectionSummary(BaseModel):
    effective_start: time
    effective_end: time
    total_duration_hours: float
    total_price: int
    is_consecutive: bool
    window_count: int
