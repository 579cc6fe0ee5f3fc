"""
Utilidades de horarios para turnos de cancha.
Todos los horarios son de reloj local ("HH:MM") y los intervalos son semiabiertos [inicio, fin).
"""

from datetime import time
from typing import Union

MINUTES_PER_DAY = 1440


def parse_time(value: Union[str, time]) -> time:
    """
    Convierte un string "HH:MM" (o "HH:MM:SS") a time.
    Si ya es un time, lo devuelve sin segundos ni microsegundos.

    Raises:
        ValueError: si el formato no es válido
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time format: {value!r}. Use HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time: {value!r}")
    return time(hours, minutes)


def time_to_minutes(value: time) -> int:
    """Minutos desde medianoche (0-1439)."""
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    """Inversa de time_to_minutes. 1440 no es representable y lanza ValueError."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range: {minutes}")
    return time(minutes // 60, minutes % 60)


def format_time(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def intervals_overlap(
    start_a: time, end_a: time, start_b: time, end_b: time
) -> bool:
    """Dos intervalos semiabiertos se solapan si cada uno empieza antes de que termine el otro."""
    return start_a < end_b and start_b < end_a


def interval_covers(
    outer_start: time, outer_end: time, inner_start: time, inner_end: time
) -> bool:
    """True si [outer_start, outer_end) contiene completamente a [inner_start, inner_end)."""
    return outer_start <= inner_start and inner_end <= outer_end
