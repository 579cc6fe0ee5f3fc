from sqlalchemy.orm import Session
from sqlalchemy import and_, case, func
from typing import List, Optional
import logging

from app.models.join_request import JoinRequest, JoinRequestStatus, OPEN_STATUSES
from app.models.match import Match

logger = logging.getLogger(__name__)


def get_join_request(db: Session, request_id: int) -> Optional[JoinRequest]:
    """Obtener una solicitud por ID"""
    return db.query(JoinRequest).filter(JoinRequest.id == request_id).first()


def get_open_request(
    db: Session, match_id: int, requester_id: int
) -> Optional[JoinRequest]:
    """Solicitud pendiente o aceptada del jugador para el partido, si existe"""
    return (
        db.query(JoinRequest)
        .filter(
            and_(
                JoinRequest.match_id == match_id,
                JoinRequest.requester_id == requester_id,
                JoinRequest.status.in_(OPEN_STATUSES),
            )
        )
        .first()
    )


def count_accepted(db: Session, match_id: int) -> int:
    """Cantidad de solicitudes aceptadas (no incluye al creador)"""
    return (
        db.query(JoinRequest)
        .filter(
            and_(
                JoinRequest.match_id == match_id,
                JoinRequest.status == JoinRequestStatus.ACCEPTED.value,
            )
        )
        .count()
    )


def create_join_request(
    db: Session, match_id: int, requester_id: int, message: Optional[str] = None
) -> JoinRequest:
    """Inserta la solicitud pendiente sin commit"""
    db_request = JoinRequest(
        match_id=match_id,
        requester_id=requester_id,
        message=message,
        status=JoinRequestStatus.PENDING.value,
    )
    db.add(db_request)
    db.flush()
    return db_request


def transition_from_pending(
    db: Session, request_id: int, new_status: JoinRequestStatus
) -> bool:
    """
    UPDATE condicional: solo cambia el estado si la solicitud sigue pendiente.
    Devuelve False si otra transacción ya la procesó.
    """
    updated = (
        db.query(JoinRequest)
        .filter(
            and_(
                JoinRequest.id == request_id,
                JoinRequest.status == JoinRequestStatus.PENDING.value,
            )
        )
        .update(
            {"status": new_status.value, "updated_at": func.now()},
            synchronize_session=False,
        )
    )
    return updated == 1


def get_requests_by_match(db: Session, match_id: int) -> List[JoinRequest]:
    """Todas las solicitudes de un partido, de la más antigua a la más nueva"""
    return (
        db.query(JoinRequest)
        .filter(JoinRequest.match_id == match_id)
        .order_by(JoinRequest.created_at.asc(), JoinRequest.id.asc())
        .all()
    )


def get_accepted_requests(db: Session, match_id: int) -> List[JoinRequest]:
    """Solicitudes aceptadas de un partido, en el orden en que se aceptaron"""
    return (
        db.query(JoinRequest)
        .filter(
            and_(
                JoinRequest.match_id == match_id,
                JoinRequest.status == JoinRequestStatus.ACCEPTED.value,
            )
        )
        .order_by(JoinRequest.updated_at.asc(), JoinRequest.id.asc())
        .all()
    )

def get_requests_by_requester(db: Session, requester_id: int) -> List[JoinRequest]:
    """Solicitudes enviadas por un jugador"""
    return (
        db.query(JoinRequest)
        .filter(JoinRequest.requester_id == requester_id)
        .order_by(JoinRequest.created_at.desc(), JoinRequest.id.desc())
        .all()
    )


def get_pending_requests_for_creator(db: Session, creator_id: int) -> List[JoinRequest]:
    """Solicitudes pendientes de todos los partidos creados por el usuario"""
    return (
        db.query(JoinRequest)
        .join(Match, Match.id == JoinRequest.match_id)
        .filter(
            and_(
                Match.creator_id == creator_id,
                JoinRequest.status == JoinRequestStatus.PENDING.value,
            )
        )
        .order_by(JoinRequest.created_at.asc(), JoinRequest.id.asc())
        .all()
    )


def _status_counts(query) -> dict:
    row = query.with_entities(
        func.count(JoinRequest.id),
        func.sum(case((JoinRequest.status == JoinRequestStatus.PENDING.value, 1), else_=0)),
        func.sum(case((JoinRequest.status == JoinRequestStatus.ACCEPTED.value, 1), else_=0)),
        func.sum(case((JoinRequest.status == JoinRequestStatus.DECLINED.value, 1), else_=0)),
    ).one()
    return {
        "total": row[0] or 0,
        "pending": row[1] or 0,
        "accepted": row[2] or 0,
        "declined": row[3] or 0,
    }


def get_received_stats(db: Session, creator_id: int) -> dict:
    """Estadísticas de solicitudes recibidas en los partidos del usuario"""
    query = db.query(JoinRequest).join(Match, Match.id == JoinRequest.match_id)
    return _status_counts(query.filter(Match.creator_id == creator_id))


def get_sent_stats(db: Session, requester_id: int) -> dict:
    """Estadísticas de solicitudes enviadas por el usuario"""
    query = db.query(JoinRequest).filter(JoinRequest.requester_id == requester_id)
    return _status_counts(query)


def delete_join_request(db: Session, join_request: JoinRequest) -> None:
    request_id = join_request.id
    db.delete(join_request)
    db.commit()
    logger.info(f"Join request {request_id} deleted")
