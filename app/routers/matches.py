from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.crud import match as crud
from app.schemas.join_request import JoinRequestResponse, JoinRequestsListResponse
from app.schemas.match import (
    MatchCapacity,
    MatchCreate,
    MatchParticipantsResponse,
    MatchResponse,
    UserMatchesResponse,
)
from app.services import join_request_service, match_service
from app.services.auth import get_current_user
from app.models.user import User

router = APIRouter()


@router.post("/", response_model=MatchResponse, status_code=status.HTTP_201_CREATED)
def create_match(
    match: MatchCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return match_service.create_match(db, match, creator_id=current_user.id)


@router.get("/", response_model=List[MatchResponse])
def read_matches(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """Partidos próximos que todavía no se jugaron ni se cancelaron."""
    return match_service.list_upcoming_matches(db, skip=skip, limit=limit)


@router.get("/me", response_model=UserMatchesResponse)
def read_my_matches(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    """Partidos que creó el usuario y partidos en los que fue aceptado."""
    return match_service.get_user_matches(db, current_user.id)

@router.get("/{match_id}", response_model=MatchResponse)
def read_match(match_id: int, db: Session = Depends(get_db)):
    db_match = crud.get_match(db, match_id=match_id)
    if db_match is None:
        raise HTTPException(status_code=404, detail="Match not found")
    return db_match


@router.get("/{match_id}/capacity", response_model=MatchCapacity)
def read_match_capacity(match_id: int, db: Session = Depends(get_db)):
    return match_service.get_match_capacity(db, match_id)


@router.get("/{match_id}/participants", response_model=MatchParticipantsResponse)
def read_match_participants(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return match_service.get_participants(db, match_id)

@router.post("/{match_id}/cancel", response_model=MatchResponse)
def cancel_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return match_service.cancel_match(db, match_id, creator_id=current_user.id)


@router.post("/{match_id}/complete", response_model=MatchResponse)
def complete_match(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return match_service.complete_match(db, match_id, creator_id=current_user.id)

@router.get("/{match_id}/join-requests", response_model=JoinRequestsListResponse)
def read_match_join_requests(
    match_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    requests = join_request_service.list_requests_for_match(
        db, match_id, creator_id=current_user.id
    )
    return JoinRequestsListResponse(
        requests=[JoinRequestResponse.model_validate(r) for r in requests],
        total_count=len(requests),
    )
