"""
Bloqueos de mantenimiento impuestos por el dueño de la cancha, por fuera del flujo de reservas.
"""

from datetime import date, time
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud import booking as booking_crud
from app.crud import court as court_crud
from app.crud import maintenance as maintenance_crud
from app.exceptions import (
    CourtNotFound,
    InvalidWindow,
    MaintenanceBlockNotFound,
    MaintenanceConflict,
    PermissionDenied,
)
from app.models.court import Court
from app.models.maintenance_block import MaintenanceBlock
from app.services.availability import windows_for_date
from app.utils.locks import window_locks
from app.utils.time_utils import format_time, intervals_overlap, parse_time

logger = logging.getLogger(__name__)


def _owned_court(db: Session, court_id: int, owner_id: int) -> Court:
    court = court_crud.get_court(db, court_id)
    if not court:
        raise CourtNotFound()
    if court.owner_id != owner_id:
        raise PermissionDenied("Only the court owner can manage maintenance")
    return court


def list_maintenance(db: Session, court_id: int, block_date: date) -> List[MaintenanceBlock]:
    if not court_crud.get_court(db, court_id):
        raise CourtNotFound()
    return maintenance_crud.get_blocks(db, court_id, block_date)


def set_maintenance(
    db: Session,
    court_id: int,
    block_date: date,
    start_time: time,
    end_time: time,
    owner_id: int,
    reason: Optional[str] = None,
) -> MaintenanceBlock:
    """
    Bloquea [start_time, end_time) en la cancha para la fecha.

    Toma los locks de todos los turnos que toca el bloqueo, así no puede
    cruzarse con una reserva en curso sobre esos turnos.

    Raises:
        MaintenanceConflict: si algún turno del rango ya tiene una reserva, o ya
            existe otro bloqueo que empieza a la misma hora
    """
    court = _owned_court(db, court_id, owner_id)
    start_time, end_time = parse_time(start_time), parse_time(end_time)
    if end_time <= start_time:
        raise InvalidWindow("Maintenance must end after it starts")

    existing = maintenance_crud.get_block_by_span(
        db, court_id, block_date, start_time, end_time
    )
    if existing:
        return existing

    keys = [
        (court_id, block_date, window.start_time)
        for window in windows_for_date(db, court, block_date)
        if intervals_overlap(window.start_time, window.end_time, start_time, end_time)
    ]

    with window_locks.hold_many(keys):
        booked = booking_crud.get_occupying_bookings_in_range(
            db, court_id, block_date, start_time, end_time
        )
        if booked:
            raise MaintenanceConflict(
                f"{len(booked)} booking(s) already hold windows between "
                f"{format_time(start_time)} and {format_time(end_time)}"
            )

        block = MaintenanceBlock(
            court_id=court_id,
            block_date=block_date,
            start_time=start_time,
            end_time=end_time,
            reason=reason or "Maintenance",
            created_by=owner_id,
        )
        db.add(block)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise MaintenanceConflict(
                f"Another maintenance block already starts at {format_time(start_time)}"
            ) from e

    db.refresh(block)
    logger.info(
        f"Maintenance block {block.id} set on court {court_id}, {block_date} "
        f"{format_time(start_time)}-{format_time(end_time)}"
    )
    return block


def clear_maintenance(
    db: Session,
    court_id: int,
    block_date: date,
    start_time: time,
    end_time: time,
    owner_id: int,
) -> int:
    """Quita el bloqueo con ese rango exacto. Devuelve cuántos se borraron (0 si no había)."""
    _owned_court(db, court_id, owner_id)
    deleted = maintenance_crud.delete_blocks_by_span(
        db, court_id, block_date, parse_time(start_time), parse_time(end_time)
    )
    if deleted:
        logger.info(f"Cleared {deleted} maintenance block(s) on court {court_id}, {block_date}")
    return deleted


def clear_maintenance_by_id(db: Session, block_id: int, owner_id: int) -> None:
    block = maintenance_crud.get_block(db, block_id)
    if not block:
        raise MaintenanceBlockNotFound()
    _owned_court(db, block.court_id, owner_id)
    maintenance_crud.delete_block(db, block)
    logger.info(f"Maintenance block {block_id} cleared")
