from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.schemas.join_request import (
    JoinRequestCreate,
    JoinRequestDecide,
    JoinRequestResponse,
    JoinRequestsListResponse,
    JoinRequestStats,
)
from app.services import join_request_service
from app.services.auth import get_current_user
from app.services.notification_service import NotificationSink, get_notification_sink
from app.models.user import User

router = APIRouter()
logger = logging.getLogger(__name__)


def _as_list(requests) -> JoinRequestsListResponse:
    return JoinRequestsListResponse(
        requests=[JoinRequestResponse.model_validate(r) for r in requests],
        total_count=len(requests),
    )


@router.post("/", response_model=JoinRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_join_request(
    join_request: JoinRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """Pedir lugar en un partido. El creador del partido recibe una notificación."""
    return join_request_service.submit_join_request(
        db,
        match_id=join_request.match_id,
        requester_id=current_user.id,
        message=join_request.message,
        sink=sink,
    )


@router.get("/me", response_model=JoinRequestsListResponse)
def read_my_join_requests(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return _as_list(join_request_service.list_my_requests(db, current_user.id))


@router.get("/pending", response_model=JoinRequestsListResponse)
def read_pending_join_requests(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    """Solicitudes pendientes en todos los partidos que creó el usuario."""
    return _as_list(join_request_service.list_pending_for_creator(db, current_user.id))


@router.get("/stats", response_model=JoinRequestStats)
def read_join_request_stats(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return join_request_service.get_stats(db, current_user.id)


@router.put("/{request_id}", response_model=JoinRequestResponse)
def decide_join_request(
    request_id: int,
    decision: JoinRequestDecide,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    sink: NotificationSink = Depends(get_notification_sink),
):
    """
    Aceptar o rechazar una solicitud pendiente (solo el creador del partido).
    Si el partido ya está completo responde 409 y la solicitud sigue pendiente.
    """
    return join_request_service.decide_join_request(
        db, request_id, decision.status, creator_id=current_user.id, sink=sink
    )


@router.delete("/{request_id}")
def withdraw_join_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    join_request_service.withdraw_join_request(db, request_id, current_user.id)
    return {"message": "Join request withdrawn"}
