from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.database import Base


class MatchStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    sport = Column(String, nullable=True)
    date_time = Column(DateTime, nullable=False)
    location = Column(String, nullable=False)
    # Capacidad: jugadores que se aceptan además del creador
    players_required = Column(Integer, nullable=False)
    level = Column(String, nullable=False)
    description = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default=MatchStatus.UPCOMING.value)
    # Copia desnormalizada de la cantidad de solicitudes aceptadas
    current_participants = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    creator = relationship("app.models.user.User", back_populates="created_matches")
    join_requests = relationship(
        "app.models.join_request.JoinRequest",
        back_populates="match",
        cascade="all, delete-orphan",
    )
