from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Index,
    text,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.database import Base


class JoinRequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


OPEN_STATUSES = [JoinRequestStatus.PENDING.value, JoinRequestStatus.ACCEPTED.value]


class JoinRequest(Base):
    __tablename__ = "join_requests"
    __table_args__ = (
        # Una sola solicitud abierta (pendiente o aceptada) por jugador y partido.
        # Las rechazadas no cuentan: el jugador puede volver a pedir.
        Index(
            "uq_join_requests_open_per_requester",
            "match_id",
            "requester_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'accepted')"),
            sqlite_where=text("status IN ('pending', 'accepted')"),
        ),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        String(20), nullable=False, default=JoinRequestStatus.PENDING.value
    )
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relaciones
    match = relationship("app.models.match.Match", back_populates="join_requests")
    requester = relationship(
        "app.models.user.User", back_populates="join_requests"
    )
