from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True)
    email = Column(String, unique=True, index=True)
    phone = Column(String)
    hashed_password = Column(String)
    is_active = Column(Boolean, default=True)
    is_owner = Column(Boolean, default=False)  # Puede administrar instalaciones
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    facilities = relationship(
        "app.models.facility.Facility", back_populates="owner"
    )
    bookings = relationship("app.models.booking.Booking", back_populates="user")
    created_matches = relationship(
        "app.models.match.Match", back_populates="creator"
    )
    join_requests = relationship(
        "app.models.join_request.JoinRequest", back_populates="requester"
    )
    notifications = relationship(
        "app.models.notification.Notification",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    fcm_tokens = relationship(
        "app.models.fcm_token.FCMToken",
        back_populates="user",
        cascade="all, delete-orphan",
    )
