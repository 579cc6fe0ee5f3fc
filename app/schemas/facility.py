from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class FacilityBase(BaseModel):
    name: str
    location: str
    description: Optional[str] = None


class FacilityCreate(FacilityBase):
    pass


class FacilityUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class FacilityResponse(FacilityBase):
    id: int
    owner_id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
