from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime


class MatchBase(BaseModel):
    sport: Optional[str] = None
    date_time: datetime
    location: str
    players_required: int = Field(gt=0)
    level: str
    description: Optional[str] = None


class MatchCreate(MatchBase):
    @field_validator("date_time")
    @classmethod
    def to_local_naive(cls, value: datetime) -> datetime:
        # Los horarios se guardan como hora local sin zona
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value


class MatchResponse(MatchBase):
    id: int
    creator_id: int
    status: str
    current_participants: int
    created_at: datetime

    class Config:
        from_attributes = True


class MatchCapacity(BaseModel):
    match_id: int
    accepted_count: int
    required: int
    remaining: int
    can_accept: bool


class MatchParticipant(BaseModel):
    user_id: int
    name: Optional[str] = None
    join_request_id: int
    joined_at: datetime


class MatchParticipantsResponse(BaseModel):
    match_id: int
    creator_id: int
    participants: List[MatchParticipant]
    total_count: int
    required: int


class UserMatchesResponse(BaseModel):
    created_matches: List[MatchResponse]
    joined_matches: List[MatchResponse]
