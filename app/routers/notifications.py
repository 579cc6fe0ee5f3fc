from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.database import get_db
from app.services.auth import get_current_user
from app.models.user import User
from app.schemas.notification import (
    FCMTokenCreate,
    NotificationResponse,
    NotificationsListResponse,
)
from app.crud import fcm_token as fcm_crud
from app.crud import notification as notification_crud

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=NotificationsListResponse)
def get_notifications(
    skip: int = 0,
    limit: int = 50,
    unread_only: bool = False,
    type: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Bandeja del usuario: reservas nuevas en sus canchas y novedades de sus
    solicitudes y partidos. Incluye el conteo de no leídas.
    """
    notifications = notification_crud.get_user_notifications(
        db,
        current_user.id,
        skip=skip,
        limit=limit,
        unread_only=unread_only,
        event_type=type,
    )
    return NotificationsListResponse(
        success=True,
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=notification_crud.get_unread_notifications_count(
            db, current_user.id
        ),
    )


@router.put("/read-all")
def mark_all_as_read(
    db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    updated = notification_crud.mark_all_notifications_as_read(db, current_user.id)
    return {"success": True, "updated": updated}


@router.put("/{notification_id}/read")
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not notification_crud.mark_notification_as_read(
        db, notification_id, current_user.id
    ):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True}


@router.post("/register-token", status_code=status.HTTP_201_CREATED)
def register_fcm_token(
    token_data: FCMTokenCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """El dispositivo se registra para recibir push de los mismos eventos."""
    fcm_token = fcm_crud.register_token(db, token_data, current_user.id)
    logger.info(
        f"FCM token registered for user {current_user.id} "
        f"({token_data.device_type or 'unknown'} device)"
    )
    return {"id": fcm_token.id, "device_type": fcm_token.device_type}
