from sqlalchemy.orm import Session
from typing import List
import logging

from app.models.fcm_token import FCMToken
from app.schemas.notification import FCMTokenCreate

logger = logging.getLogger(__name__)


def register_token(db: Session, token_data: FCMTokenCreate, user_id: int) -> FCMToken:
    """Crear o reasignar un token FCM al usuario"""
    existing_token = db.query(FCMToken).filter(FCMToken.token == token_data.token).first()

    if existing_token:
        if existing_token.user_id != user_id:
            logger.info(
                f"FCM token moved from user {existing_token.user_id} to user {user_id}"
            )
        existing_token.user_id = user_id
        existing_token.device_type = token_data.device_type
        existing_token.is_active = True
        db.commit()
        db.refresh(existing_token)
        return existing_token

    db_token = FCMToken(
        user_id=user_id,
        token=token_data.token,
        device_type=token_data.device_type,
        is_active=True,
    )
    db.add(db_token)
    db.commit()
    db.refresh(db_token)
    return db_token


def get_active_tokens(db: Session, user_id: int) -> List[str]:
    tokens = (
        db.query(FCMToken)
        .filter(FCMToken.user_id == user_id, FCMToken.is_active == True)
        .all()
    )
    return [token.token for token in tokens]


def deactivate_tokens(db: Session, tokens: List[str]) -> int:
    """Marca como inactivos los tokens que Firebase reportó inválidos"""
    if not tokens:
        return 0
    updated = (
        db.query(FCMToken)
        .filter(FCMToken.token.in_(tokens))
        .update({"is_active": False}, synchronize_session=False)
    )
    db.commit()
    return updated
