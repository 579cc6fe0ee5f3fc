from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime, time


class MaintenanceBlockCreate(BaseModel):
    court_id: int
    block_date: date
    start_time: time
    end_time: time
    reason: Optional[str] = "Maintenance"


class MaintenanceBlockClear(BaseModel):
    court_id: int
    block_date: date
    start_time: time
    end_time: time


class MaintenanceBlockResponse(BaseModel):
    id: int
    court_id: int
    block_date: date
    start_time: time
    end_time: time
    reason: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
