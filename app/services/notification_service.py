import logging
from typing import Any, Dict, Optional

from fastapi import Depends
from firebase_admin.exceptions import FirebaseError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import NOTIFICATION_MAX_ATTEMPTS
from app.crud import fcm_token as fcm_crud
from app.crud import notification as notification_crud
from app.database import get_db
from app.schemas.notification import NotificationCreate
from app.services.fcm_service import fcm_service

logger = logging.getLogger(__name__)

# Tipos de evento que emite el núcleo
NEW_BOOKING = "new_booking"
JOIN_REQUEST_RECEIVED = "join_request_received"
JOIN_REQUEST_ACCEPTED = "join_request_accepted"
JOIN_REQUEST_DECLINED = "join_request_declined"
MATCH_FULL = "match_full"

_TITLES = {
    NEW_BOOKING: "New booking",
    JOIN_REQUEST_RECEIVED: "New join request",
    JOIN_REQUEST_ACCEPTED: "Join request accepted",
    JOIN_REQUEST_DECLINED: "Join request declined",
    MATCH_FULL: "Match is full",
}


def build_message(event_type: str, payload: Dict[str, Any]) -> str:
    """Texto legible para la notificación en la app."""
    if event_type == NEW_BOOKING:
        return (
            f"{payload.get('court_name', 'Your court')} was booked on "
            f"{payload.get('booking_date')} at {payload.get('start_time')}"
        )
    if event_type == JOIN_REQUEST_RECEIVED:
        return (
            f"{payload.get('requester_name', 'A player')} wants to join your match "
            f"at {payload.get('location', 'your venue')}"
        )
    if event_type == JOIN_REQUEST_ACCEPTED:
        return f"You're in! Your request to join the match at {payload.get('location')} was accepted"
    if event_type == JOIN_REQUEST_DECLINED:
        return f"Your request to join the match at {payload.get('location')} was declined"
    if event_type == MATCH_FULL:
        return f"Your match at {payload.get('location')} has all the players it needs"
    return payload.get("message", event_type)


def _fcm_data_stringify(data: dict) -> dict:
    """FCM solo acepta datos con valores string. Convierte todos los valores a str."""
    if not data:
        return {}
    return {k: str(v) if v is not None else "" for k, v in data.items()}


class NotificationSink:
    """Destino de eventos del núcleo: (user_id, event_type, payload)."""

    def notify(self, user_id: int, event_type: str, payload: Dict[str, Any]) -> bool:
        raise NotImplementedError


class InAppNotificationSink(NotificationSink):
    """
    Guarda la notificación en la bandeja del usuario y, si Firebase está
    configurado, la envía como push a sus dispositivos activos.

    Se llama después del commit de la transición: un fallo acá se reintenta
    y se registra, pero nunca deshace el cambio de estado.
    """

    def __init__(self, db: Session, max_attempts: Optional[int] = None):
        self.db = db
        self.max_attempts = max(1, max_attempts or NOTIFICATION_MAX_ATTEMPTS)

    def notify(self, user_id: int, event_type: str, payload: Dict[str, Any]) -> bool:
        title = _TITLES.get(event_type, "Notification")
        message = build_message(event_type, payload)

        notification = self._attempt(
            f"store {event_type} for user {user_id}",
            lambda: notification_crud.create_notification(
                self.db,
                NotificationCreate(
                    user_id=user_id,
                    title=title,
                    message=message,
                    type=event_type,
                    data=payload,
                ),
            ),
        )
        if notification is None:
            return False
        logger.info(f"Notification created for user {user_id}: {event_type}")

        fcm_data = _fcm_data_stringify(payload)
        fcm_data.update({"type": event_type, "notification_id": str(notification.id)})
        self._attempt(
            f"push {event_type} to user {user_id}",
            lambda: self._push(user_id, title, message, fcm_data),
        )
        return True

    def _attempt(self, action: str, func):
        for attempt in range(1, self.max_attempts + 1):
            try:
                return func()
            except (SQLAlchemyError, FirebaseError) as e:
                self.db.rollback()
                if attempt == self.max_attempts:
                    logger.exception(f"Giving up on {action} after {attempt} attempts")
                    return None
                logger.warning(
                    f"Failed to {action} (attempt {attempt}/{self.max_attempts}): {e}"
                )
            except Exception:
                # Errores no transitorios (credenciales, mensaje inválido): sin reintento
                self.db.rollback()
                logger.exception(f"Failed to {action}")
                return None
        return None

    def _push(self, user_id: int, title: str, message: str, data: Dict[str, str]) -> bool:
        tokens = fcm_crud.get_active_tokens(self.db, user_id)
        if not tokens:
            return False

        result = fcm_service.send_to_tokens(tokens, title, message, data)
        if result.get("invalid_tokens"):
            fcm_crud.deactivate_tokens(self.db, result["invalid_tokens"])
        return result.get("success", 0) > 0


def get_notification_sink(db: Session = Depends(get_db)) -> NotificationSink:
    return InAppNotificationSink(db)


def deliver(
    sink: NotificationSink, user_id: int, event_type: str, payload: Dict[str, Any]
) -> bool:
    """
    Entrega un evento después del commit de la transición. Cualquier fallo del
    sink se registra y se descarta: la operación ya confirmada no se informa como error.
    """
    try:
        return sink.notify(user_id, event_type, payload)
    except Exception:
        logger.exception(f"Notification {event_type} for user {user_id} was not delivered")
        return False
