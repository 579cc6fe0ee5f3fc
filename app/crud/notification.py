from sqlalchemy.orm import Query, Session
from typing import List, Optional
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate


def _inbox(db: Session, user_id: int, unread_only: bool = False) -> Query:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query


def create_notification(db: Session, notification: NotificationCreate) -> Notification:
    """Guarda un evento en la bandeja del usuario"""
    db_notification = Notification(**notification.model_dump())
    db.add(db_notification)
    db.commit()
    db.refresh(db_notification)
    return db_notification


def get_user_notifications(
    db: Session,
    user_id: int,
    skip: int = 0,
    limit: int = 100,
    unread_only: bool = False,
    event_type: Optional[str] = None,
) -> List[Notification]:
    """Bandeja del usuario, de la más nueva a la más vieja"""
    query = _inbox(db, user_id, unread_only)
    if event_type:
        query = query.filter(Notification.type == event_type)
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_unread_notifications_count(db: Session, user_id: int) -> int:
    return _inbox(db, user_id, unread_only=True).count()


def mark_notification_as_read(db: Session, notification_id: int, user_id: int) -> bool:
    """False si la notificación no existe o es de otro usuario"""
    updated = (
        _inbox(db, user_id)
        .filter(Notification.id == notification_id)
        .update({"is_read": True}, synchronize_session="fetch")
    )
    db.commit()
    return updated > 0


def mark_all_notifications_as_read(db: Session, user_id: int) -> int:
    updated = _inbox(db, user_id, unread_only=True).update(
        {"is_read": True}, synchronize_session="fetch"
    )
    db.commit()
    return updated
