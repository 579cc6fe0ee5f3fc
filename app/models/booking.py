from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Time,
    DateTime,
    ForeignKey,
    Index,
    text,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.database import Base


class BookingStatus(str, enum.Enum):
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


# Estados que ocupan un turno en la grilla de disponibilidad
OCCUPYING_STATUSES = [BookingStatus.BOOKED.value, BookingStatus.COMPLETED.value]


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # CRÍTICO: como máximo una reserva activa por turno (court_id, fecha, hora de inicio)
        Index(
            "uq_bookings_booked_window",
            "court_id",
            "booking_date",
            "start_time",
            unique=True,
            postgresql_where=text("status = 'booked'"),
            sqlite_where=text("status = 'booked'"),
        ),
        Index("ix_bookings_court_date", "court_id", "booking_date"),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(Integer, ForeignKey("courts.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    price = Column(Integer, nullable=False)  # Precio cobrado en centavos
    status = Column(String(20), nullable=False, default=BookingStatus.BOOKED.value)
    payment_status = Column(
        String(20), nullable=False, default=PaymentStatus.PENDING.value
    )
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    court = relationship("app.models.court.Court", back_populates="bookings")
    user = relationship("app.models.user.User", back_populates="bookings")
