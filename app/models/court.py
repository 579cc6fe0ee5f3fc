from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Boolean,
    Time,
)
from sqlalchemy.orm import relationship
from app.database import Base
from datetime import datetime


class Court(Base):
    __tablename__ = "courts"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=False)
    name = Column(String, nullable=False)
    sport_type = Column(String, nullable=False)  # e.g., padel, tennis, futsal
    price_per_hour = Column(Integer, nullable=False, default=0)  # Precio en centavos
    open_time = Column(Time, nullable=False)  # Horario local de apertura
    close_time = Column(Time, nullable=False)  # Horario local de cierre
    slot_minutes = Column(Integer, nullable=False, default=60)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    facility = relationship("app.models.facility.Facility", back_populates="courts")
    bookings = relationship("app.models.booking.Booking", back_populates="court")
    maintenance_blocks = relationship(
        "app.models.maintenance_block.MaintenanceBlock",
        back_populates="court",
        cascade="all, delete-orphan",
    )
    schedules = relationship(
        "app.models.court_schedule.CourtSchedule",
        back_populates="court",
        cascade="all, delete-orphan",
    )

    @property
    def owner_id(self):
        return self.facility.owner_id if self.facility else None

    @property
    def is_bookable(self) -> bool:
        return bool(self.is_active) and bool(self.facility and self.facility.is_active)
