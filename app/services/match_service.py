"""
Partidos y su capacidad.

La capacidad cuenta solo las solicitudes aceptadas de otros jugadores; el
creador no ocupa un lugar.
"""

from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.crud import join_request as join_request_crud
from app.crud import match as match_crud
from app.exceptions import (
    ConcurrencyConflict,
    InvalidMatch,
    InvalidTransition,
    MatchNotFound,
    PermissionDenied,
)
from app.models.match import Match, MatchStatus
from app.schemas.match import (
    MatchCapacity,
    MatchCreate,
    MatchParticipant,
    MatchParticipantsResponse,
    MatchResponse,
    UserMatchesResponse,
)
from app.utils.locks import match_locks

logger = logging.getLogger(__name__)


def accepted_count(db: Session, match_id: int) -> int:
    return join_request_crud.count_accepted(db, match_id)


def has_room(match: Match, accepted: int) -> bool:
    return accepted < match.players_required and match.status == MatchStatus.UPCOMING.value


def can_accept(db: Session, match_id: int) -> bool:
    """
    Consulta informativa: ¿se puede aceptar un jugador más?
    La aceptación real vuelve a verificarlo dentro de su transacción.
    """
    match = match_crud.get_match(db, match_id)
    if not match:
        raise MatchNotFound()
    return has_room(match, accepted_count(db, match_id))


def get_match_capacity(db: Session, match_id: int) -> MatchCapacity:
    match = match_crud.get_match(db, match_id)
    if not match:
        raise MatchNotFound()

    accepted = accepted_count(db, match_id)
    return MatchCapacity(
        match_id=match.id,
        accepted_count=accepted,
        required=match.players_required,
        remaining=max(match.players_required - accepted, 0),
        can_accept=has_room(match, accepted),
    )


def get_participants(db: Session, match_id: int) -> MatchParticipantsResponse:
    """Jugadores aceptados. El creador no figura: no ocupa lugar en el cupo."""
    match = match_crud.get_match(db, match_id)
    if not match:
        raise MatchNotFound()

    accepted = join_request_crud.get_accepted_requests(db, match_id)
    return MatchParticipantsResponse(
        match_id=match.id,
        creator_id=match.creator_id,
        participants=[
            MatchParticipant(
                user_id=request.requester_id,
                name=request.requester.name if request.requester else None,
                join_request_id=request.id,
                joined_at=request.updated_at or request.created_at,
            )
            for request in accepted
        ],
        total_count=len(accepted),
        required=match.players_required,
    )


def get_user_matches(db: Session, user_id: int) -> UserMatchesResponse:
    return UserMatchesResponse(
        created_matches=[
            MatchResponse.model_validate(m)
            for m in match_crud.get_matches(db, creator_id=user_id)
        ],
        joined_matches=[
            MatchResponse.model_validate(m)
            for m in match_crud.get_joined_matches(db, user_id)
        ],
    )

def create_match(
    db: Session, match: MatchCreate, creator_id: int, now: Optional[datetime] = None
) -> Match:
    now = now or datetime.now()
    if match.date_time <= now:
        raise InvalidMatch()

    db_match = match_crud.create_match(db, match, creator_id)
    logger.info(
        f"Match {db_match.id} created by user {creator_id} for {db_match.date_time} "
        f"({db_match.players_required} players)"
    )
    return db_match


def list_upcoming_matches(
    db: Session, skip: int = 0, limit: int = 100, now: Optional[datetime] = None
) -> List[Match]:
    return match_crud.get_matches(
        db,
        skip=skip,
        limit=limit,
        status=MatchStatus.UPCOMING,
        date_from=now or datetime.now(),
    )


def _close_match(
    db: Session,
    match_id: int,
    creator_id: int,
    new_status: MatchStatus,
    now: Optional[datetime] = None,
) -> Match:
    with match_locks.hold(match_id):
        match = match_crud.get_match_for_update(db, match_id)
        if not match:
            raise MatchNotFound()
        if match.creator_id != creator_id:
            db.rollback()
            raise PermissionDenied(f"Only the match creator can mark it {new_status.value}")
        if match.status != MatchStatus.UPCOMING.value:
            db.rollback()
            raise InvalidTransition(f"Match is already {match.status}")
        if new_status == MatchStatus.COMPLETED and match.date_time > (now or datetime.now()):
            db.rollback()
            raise InvalidTransition("Match has not been played yet")

        try:
            match = match_crud.update_match_status(db, match, new_status)
        except StaleDataError as e:
            db.rollback()
            raise ConcurrencyConflict("Match was modified concurrently") from e

    logger.info(f"Match {match_id} {new_status.value} by creator {creator_id}")
    return match


def cancel_match(db: Session, match_id: int, creator_id: int) -> Match:
    """Cancela el partido. Las solicitudes pendientes quedan como están pero ya no se pueden aceptar."""
    return _close_match(db, match_id, creator_id, MatchStatus.CANCELLED)


def complete_match(
    db: Session, match_id: int, creator_id: int, now: Optional[datetime] = None
) -> Match:
    """El creador marca el partido como jugado, solo después de su horario."""
    return _close_match(db, match_id, creator_id, MatchStatus.COMPLETED, now=now)
