"""
Generación de turnos a partir del horario de la cancha.

Funciones puras: no consultan la base de datos. La configuración por rango de
fechas (CourtSchedule) se pasa ya resuelta por el llamador.
"""

from datetime import date
from typing import List, Optional
import logging

from app.config import DEFAULT_SLOT_MINUTES
from app.models.court import Court
from app.models.court_schedule import CourtSchedule
from app.schemas.court import TimeWindow
from app.utils.time_utils import (
    format_time,
    minutes_to_time,
    parse_time,
    time_to_minutes,
)

logger = logging.getLogger(__name__)


def prorate_price(price_per_hour: int, minutes: int) -> int:
    """Precio de un turno de `minutes` minutos, redondeado al centavo (mitad hacia arriba)."""
    return (price_per_hour * minutes + 30) // 60


def generate_windows(
    court: Court,
    target_date: date,
    granularity: Optional[int] = None,
    schedule: Optional[CourtSchedule] = None,
) -> List[TimeWindow]:
    """
    Genera los turnos de una cancha para una fecha, en orden ascendente.

    Los turnos cubren [open_time, close_time) sin huecos ni solapamientos. Si el
    último tramo no alcanza para un turno completo, se descarta. Si el horario de
    cierre no es posterior al de apertura no hay turnos.

    Args:
        court: Cancha con open_time, close_time, slot_minutes y price_per_hour
        target_date: Fecha para la que se generan los turnos
        granularity: Duración del turno en minutos; pisa cualquier otra configuración
        schedule: Configuración vigente para la fecha (granularidad, días, precios pico)

    Returns:
        Lista de TimeWindow con status "available"
    """
    if schedule is not None and not schedule.covers(target_date):
        schedule = None

    if schedule is not None and target_date.weekday() not in (
        schedule.active_weekdays or []
    ):
        return []

    if granularity is None:
        if schedule is not None:
            granularity = schedule.slot_minutes
        else:
            granularity = court.slot_minutes or DEFAULT_SLOT_MINUTES
    if granularity <= 0:
        raise ValueError(f"Granularity must be positive, got {granularity}")

    open_minutes = time_to_minutes(court.open_time)
    close_minutes = time_to_minutes(court.close_time)
    if close_minutes <= open_minutes:
        logger.debug(
            f"Court {court.id} closes at {format_time(court.close_time)}, "
            f"not after opening at {format_time(court.open_time)}: no windows"
        )
        return []

    base_price = schedule.base_price if schedule is not None else court.price_per_hour
    peak_price = schedule.peak_price if schedule is not None else None
    peak_starts = set()
    if schedule is not None and peak_price is not None:
        peak_starts = {parse_time(hour) for hour in schedule.peak_hours or []}

    windows = []
    start = open_minutes
    while start + granularity <= close_minutes:
        start_time = minutes_to_time(start)
        hourly = peak_price if start_time in peak_starts else base_price
        windows.append(
            TimeWindow(
                court_id=court.id,
                date=target_date,
                start_time=start_time,
                end_time=minutes_to_time(start + granularity),
                price=prorate_price(hourly or 0, granularity),
            )
        )
        start += granularity

    return windows
