from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base


class CourtSchedule(Base):
    """
    Configuración de generación de turnos definida por el dueño para un rango de fechas.
    Reemplaza la granularidad y el precio plano de la cancha en las fechas que cubre.
    """

    __tablename__ = "court_schedules"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(Integer, ForeignKey("courts.id"), nullable=False, index=True)
    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    slot_minutes = Column(Integer, nullable=False, default=60)
    # Días activos de la semana (0 = lunes, 6 = domingo)
    active_weekdays = Column(JSON, nullable=False, default=lambda: list(range(7)))
    base_price = Column(Integer, nullable=False)  # Precio por hora en centavos
    peak_price = Column(Integer, nullable=True)  # Precio por hora en horario pico
    peak_hours = Column(JSON, nullable=False, default=list)  # ["18:00", "19:00", ...]
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    court = relationship("app.models.court.Court", back_populates="schedules")

    def covers(self, target_date) -> bool:
        return self.date_from <= target_date <= self.date_to
