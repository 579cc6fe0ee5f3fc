"""
Disponibilidad de turnos: cruza los turnos generados con reservas y bloqueos de mantenimiento.

Siempre se calcula contra el estado confirmado en la base; no hay caché entre requests.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from app.crud import booking as booking_crud
from app.crud import court as court_crud
from app.crud import maintenance as maintenance_crud
from app.exceptions import CourtNotFound
from app.models.booking import Booking
from app.models.court import Court
from app.models.maintenance_block import MaintenanceBlock
from app.schemas.court import TimeWindow, WindowStatus
from app.services.slot_generator import generate_windows
from app.utils.retry import retry_read
from app.utils.time_utils import interval_covers, intervals_overlap

logger = logging.getLogger(__name__)


def is_past_window(window_date: date, start_time, now: datetime) -> bool:
    """Un turno es pasado si su fecha ya pasó o si empieza a la hora actual o antes."""
    today = now.date()
    if window_date < today:
        return True
    if window_date > today:
        return False
    return start_time <= now.time()


def resolve_status(
    window: TimeWindow,
    bookings: Iterable[Booking],
    blocks: Iterable[MaintenanceBlock],
    now: datetime,
    current_user_id: Optional[int] = None,
) -> TimeWindow:
    """
    Estado de un turno. Orden: pasado, bloqueado, reservado, disponible.

    `bookings` deben ser reservas que ocupan turnos (reservadas o completadas).
    """
    resolved = window.model_copy(
        update={
            "status": WindowStatus.AVAILABLE,
            "booking_id": None,
            "is_own_booking": False,
            "maintenance_reason": None,
        }
    )

    if is_past_window(window.date, window.start_time, now):
        resolved.status = WindowStatus.PAST
        return resolved

    for block in blocks:
        if interval_covers(
            block.start_time, block.end_time, window.start_time, window.end_time
        ):
            resolved.status = WindowStatus.BLOCKED
            resolved.maintenance_reason = block.reason
            return resolved

    for booking in bookings:
        if intervals_overlap(
            booking.start_time, booking.end_time, window.start_time, window.end_time
        ):
            resolved.status = WindowStatus.BOOKED
            resolved.booking_id = booking.id
            resolved.is_own_booking = (
                current_user_id is not None and booking.user_id == current_user_id
            )
            return resolved

    return resolved


def reconcile_windows(
    windows: List[TimeWindow],
    bookings: List[Booking],
    blocks: List[MaintenanceBlock],
    now: datetime,
    current_user_id: Optional[int] = None,
) -> List[TimeWindow]:
    return [
        resolve_status(window, bookings, blocks, now, current_user_id)
        for window in windows
    ]


def windows_for_date(db: Session, court: Court, target_date: date) -> List[TimeWindow]:
    """Turnos generados para la fecha, aplicando la configuración vigente si existe."""
    schedule = court_crud.get_schedule_for_date(db, court.id, target_date)
    return generate_windows(court, target_date, schedule=schedule)


@retry_read
def get_availability(
    db: Session,
    court_id: int,
    target_date: date,
    current_user_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[TimeWindow]:
    """
    Turnos de la cancha para la fecha con su estado actual.
    Una cancha inactiva (o de una instalación inactiva) no publica turnos.
    """
    court = court_crud.get_court(db, court_id)
    if not court:
        raise CourtNotFound()

    if not court.is_bookable:
        logger.info(f"Court {court_id} is inactive, no availability published")
        return []

    now = now or datetime.now()
    windows = windows_for_date(db, court, target_date)
    bookings = booking_crud.get_occupying_bookings(db, court_id, target_date)
    blocks = maintenance_crud.get_blocks(db, court_id, target_date)

    return reconcile_windows(windows, bookings, blocks, now, current_user_id)
