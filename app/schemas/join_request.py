from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from enum import Enum


class JoinRequestDecision(str, Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"


class JoinRequestCreate(BaseModel):
    match_id: int
    message: Optional[str] = None


class JoinRequestDecide(BaseModel):
    status: JoinRequestDecision


class JoinRequestResponse(BaseModel):
    id: int
    match_id: int
    requester_id: int
    status: str
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class JoinRequestsListResponse(BaseModel):
    requests: List[JoinRequestResponse]
    total_count: int


class JoinRequestCounts(BaseModel):
    total: int = 0
    pending: int = 0
    accepted: int = 0
    declined: int = 0


class JoinRequestStats(BaseModel):
    received: JoinRequestCounts
    sent: JoinRequestCounts
