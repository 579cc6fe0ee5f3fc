from datetime import datetime
from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.join_request import JoinRequest, JoinRequestStatus
from app.models.match import Match, MatchStatus
from app.schemas.match import MatchCreate


def get_match(db: Session, match_id: int) -> Optional[Match]:
    return db.query(Match).filter(Match.id == match_id).first()


def get_match_for_update(db: Session, match_id: int) -> Optional[Match]:
    """Obtiene el partido con bloqueo de fila (SELECT ... FOR UPDATE)."""
    return (
        db.query(Match)
        .filter(Match.id == match_id)
        .with_for_update(nowait=False)
        .populate_existing()
        .first()
    )


def get_matches(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    status: Optional[MatchStatus] = None,
    creator_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
) -> List[Match]:
    query = db.query(Match)

    if status:
        query = query.filter(Match.status == status.value)
    if creator_id:
        query = query.filter(Match.creator_id == creator_id)
    if date_from:
        query = query.filter(Match.date_time >= date_from)

    return query.order_by(Match.date_time.asc()).offset(skip).limit(limit).all()


def get_joined_matches(db: Session, user_id: int) -> List[Match]:
    """Partidos de otros creadores en los que el usuario fue aceptado"""
    return (
        db.query(Match)
        .join(JoinRequest, JoinRequest.match_id == Match.id)
        .filter(
            JoinRequest.requester_id == user_id,
            JoinRequest.status == JoinRequestStatus.ACCEPTED.value,
            Match.creator_id != user_id,
        )
        .order_by(Match.date_time.desc())
        .all()
    )

def create_match(db: Session, match: MatchCreate, creator_id: int) -> Match:
    db_match = Match(**match.model_dump(), creator_id=creator_id)
    db.add(db_match)
    db.commit()
    db.refresh(db_match)
    return db_match


def update_match_status(db: Session, match: Match, status: MatchStatus) -> Match:
    match.status = status.value
    db.commit()
    db.refresh(match)
    return match
