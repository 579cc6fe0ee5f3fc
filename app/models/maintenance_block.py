from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Time,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime

from app.database import Base


class MaintenanceBlock(Base):
    __tablename__ = "maintenance_blocks"
    __table_args__ = (
        UniqueConstraint(
            "court_id", "block_date", "start_time", name="uq_maintenance_block_start"
        ),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(Integer, ForeignKey("courts.id"), nullable=False, index=True)
    block_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    reason = Column(String(255), default="Maintenance")
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    court = relationship(
        "app.models.court.Court", back_populates="maintenance_blocks"
    )
