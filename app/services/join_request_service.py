"""
Solicitudes para unirse a un partido: pending -> accepted | declined.

La aceptación verifica la capacidad y cambia el estado en una sola transacción:
lock por partido dentro del proceso, SELECT ... FOR UPDATE sobre el partido,
UPDATE condicional sobre la solicitud y control de versión en matches. Las
notificaciones se envían después del commit.
"""

from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.crud import join_request as join_request_crud
from app.crud import match as match_crud
from app.exceptions import (
    CannotJoinOwnMatch,
    ConcurrencyConflict,
    DuplicateRequest,
    InvalidTransition,
    JoinRequestNotFound,
    MatchFull,
    MatchNotFound,
    PermissionDenied,
)
from app.models.join_request import JoinRequest, JoinRequestStatus
from app.models.match import Match, MatchStatus
from app.schemas.join_request import JoinRequestCounts, JoinRequestDecision, JoinRequestStats
from app.services import notification_service
from app.services.match_service import accepted_count, has_room
from app.services.notification_service import InAppNotificationSink, NotificationSink
from app.utils.locks import match_locks

logger = logging.getLogger(__name__)


def _match_payload(match: Match, join_request: JoinRequest) -> dict:
    return {
        "match_id": match.id,
        "request_id": join_request.id,
        "location": match.location,
        "date_time": match.date_time.isoformat(),
    }


def _closed_reason(match: Match) -> str:
    if match.status != MatchStatus.UPCOMING.value:
        return f"Match is {match.status} and not accepting players"
    return f"Match already has {match.players_required} accepted players"


def _insert_request(
    db: Session, match: Match, requester_id: int, message: Optional[str]
) -> JoinRequest:
    if join_request_crud.get_open_request(db, match.id, requester_id):
        raise DuplicateRequest()

    # Chequeo informativo: el cupo real se vuelve a verificar al aceptar
    if not has_room(match, accepted_count(db, match.id)):
        raise MatchFull(_closed_reason(match))

    try:
        join_request = join_request_crud.create_join_request(
            db, match.id, requester_id, message
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConcurrencyConflict("A concurrent request for this match was detected") from e

    db.refresh(join_request)
    return join_request


def submit_join_request(
    db: Session,
    match_id: int,
    requester_id: int,
    message: Optional[str] = None,
    sink: Optional[NotificationSink] = None,
) -> JoinRequest:
    """
    Crea una solicitud pendiente y avisa al creador del partido.

    Raises:
        MatchNotFound: si el partido no existe
        CannotJoinOwnMatch: si quien pide es el creador
        DuplicateRequest: si ya tiene una solicitud pendiente o aceptada
        MatchFull: si el partido no acepta más jugadores en este momento
    """
    match = match_crud.get_match(db, match_id)
    if not match:
        raise MatchNotFound()
    if match.creator_id == requester_id:
        raise CannotJoinOwnMatch()

    with match_locks.hold(match_id):
        try:
            join_request = _insert_request(db, match, requester_id, message)
        except ConcurrencyConflict:
            logger.warning(f"Concurrent join request on match {match_id}, retrying once")
            try:
                join_request = _insert_request(db, match, requester_id, message)
            except ConcurrencyConflict as e:
                raise DuplicateRequest() from e

    logger.info(
        f"Join request {join_request.id} submitted by user {requester_id} for match {match_id}"
    )

    sink = sink or InAppNotificationSink(db)
    payload = _match_payload(match, join_request)
    payload["requester_id"] = requester_id
    payload["requester_name"] = join_request.requester.name if join_request.requester else None
    notification_service.deliver(
        sink, match.creator_id, notification_service.JOIN_REQUEST_RECEIVED, payload
    )
    return join_request


def _decide_once(
    db: Session, request_id: int, decision: JoinRequestDecision
) -> bool:
    """
    Aplica la decisión en una transacción. Devuelve True si el partido quedó completo.
    Lanza ConcurrencyConflict si la versión del partido cambió entre lectura y escritura.
    """
    join_request = join_request_crud.get_join_request(db, request_id)
    match = match_crud.get_match_for_update(db, join_request.match_id)

    db.refresh(join_request)
    if join_request.status != JoinRequestStatus.PENDING.value:
        db.rollback()
        raise InvalidTransition(f"Join request is already {join_request.status}")

    if decision == JoinRequestDecision.DECLINED:
        if not join_request_crud.transition_from_pending(
            db, request_id, JoinRequestStatus.DECLINED
        ):
            db.rollback()
            raise InvalidTransition()
        db.commit()
        return False

    accepted = accepted_count(db, match.id)
    if not has_room(match, accepted):
        db.rollback()
        raise MatchFull(_closed_reason(match))

    if not join_request_crud.transition_from_pending(
        db, request_id, JoinRequestStatus.ACCEPTED
    ):
        db.rollback()
        raise InvalidTransition()

    match.current_participants = accepted + 1
    try:
        db.commit()
    except (StaleDataError, IntegrityError) as e:
        db.rollback()
        raise ConcurrencyConflict("Match capacity changed concurrently") from e

    return accepted + 1 >= match.players_required


def decide_join_request(
    db: Session,
    request_id: int,
    decision: JoinRequestDecision,
    creator_id: int,
    sink: Optional[NotificationSink] = None,
) -> JoinRequest:
    """
    Acepta o rechaza una solicitud pendiente. Solo el creador del partido.

    Si aceptar dejaría el partido por encima de players_required, falla con
    MatchFull y la solicitud sigue pendiente.
    """
    join_request = join_request_crud.get_join_request(db, request_id)
    if not join_request:
        raise JoinRequestNotFound()
    match = join_request.match
    if match.creator_id != creator_id:
        raise PermissionDenied("Only the match creator can decide on join requests")

    with match_locks.hold(match.id):
        try:
            became_full = _decide_once(db, request_id, decision)
        except ConcurrencyConflict:
            logger.warning(f"Version conflict deciding request {request_id}, retrying once")
            try:
                became_full = _decide_once(db, request_id, decision)
            except ConcurrencyConflict as e:
                raise MatchFull() from e

    db.refresh(join_request)
    db.refresh(match)
    logger.info(
        f"Join request {request_id} {join_request.status} by creator {creator_id} "
        f"(match {match.id}: {match.current_participants}/{match.players_required})"
    )

    sink = sink or InAppNotificationSink(db)
    payload = _match_payload(match, join_request)
    if join_request.status == JoinRequestStatus.ACCEPTED.value:
        event = notification_service.JOIN_REQUEST_ACCEPTED
    else:
        event = notification_service.JOIN_REQUEST_DECLINED
    notification_service.deliver(sink, join_request.requester_id, event, payload)

    if became_full:
        notification_service.deliver(
            sink, match.creator_id, notification_service.MATCH_FULL, payload
        )

    return join_request


def withdraw_join_request(db: Session, request_id: int, requester_id: int) -> None:
    """El jugador retira su solicitud mientras sigue pendiente."""
    join_request = join_request_crud.get_join_request(db, request_id)
    if not join_request:
        raise JoinRequestNotFound()
    if join_request.requester_id != requester_id:
        raise PermissionDenied("You can only withdraw your own requests")

    with match_locks.hold(join_request.match_id):
        db.refresh(join_request)
        if join_request.status != JoinRequestStatus.PENDING.value:
            raise InvalidTransition(
                f"Only pending requests can be withdrawn, this one is {join_request.status}"
            )
        join_request_crud.delete_join_request(db, join_request)


def list_requests_for_match(db: Session, match_id: int, creator_id: int) -> List[JoinRequest]:
    match = match_crud.get_match(db, match_id)
    if not match:
        raise MatchNotFound()
    if match.creator_id != creator_id:
        raise PermissionDenied("Only the match creator can see its join requests")
    return join_request_crud.get_requests_by_match(db, match_id)


def list_my_requests(db: Session, requester_id: int) -> List[JoinRequest]:
    return join_request_crud.get_requests_by_requester(db, requester_id)


def list_pending_for_creator(db: Session, creator_id: int) -> List[JoinRequest]:
    return join_request_crud.get_pending_requests_for_creator(db, creator_id)


def get_stats(db: Session, user_id: int) -> JoinRequestStats:
    return JoinRequestStats(
        received=JoinRequestCounts(**join_request_crud.get_received_stats(db, user_id)),
        sent=JoinRequestCounts(**join_request_crud.get_sent_stats(db, user_id)),
    )
