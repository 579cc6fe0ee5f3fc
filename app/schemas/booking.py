from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime, time
from enum import Enum

from app.schemas.court import TimeWindow


class BookingOutcome(str, Enum):
    CREATED = "created"
    SLOT_UNAVAILABLE = "slot_unavailable"
    ERROR = "error"


class BookingWindowRequest(BaseModel):
    start_time: time
    end_time: Optional[time] = None


class BookingCreate(BaseModel):
    court_id: int
    booking_date: date
    windows: List[BookingWindowRequest] = Field(min_length=1)
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    court_id: int
    user_id: int
    booking_date: date
    start_time: time
    end_time: time
    price: int
    status: str
    payment_status: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class BookingError(BaseModel):
    code: str
    message: str


class BookingResult(BaseModel):
    start_time: time
    end_time: Optional[time] = None
    window: Optional[TimeWindow] = None
    outcome: BookingOutcome
    booking: Optional[BookingResponse] = None
    error: Optional[BookingError] = None


class BookingResultsResponse(BaseModel):
    court_id: int
    booking_date: date
    created_count: int
    failed_count: int
    results: List[BookingResult]
