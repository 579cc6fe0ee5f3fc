from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy.orm import Session

from app.exceptions import InvalidSelection, InvalidWindow
from app.schemas.court import SelectionSummary, TimeWindow
from app.services.availability import get_availability
from app.utils.time_utils import format_time, time_to_minutes


def compute_selection(windows: List[TimeWindow]) -> SelectionSummary:
    """
    Resumen de una selección de turnos, contiguos o no.

    La duración total es la suma de la duración de cada turno, no el lapso entre
    el primer inicio y el último fin: 09-10 y 14-15 suman 2 horas.
    """
    if not windows:
        raise InvalidSelection()

    start_times = [window.start_time for window in windows]
    if len(set(start_times)) != len(start_times):
        raise InvalidSelection("Each window can only be selected once")

    ordered = sorted(windows, key=lambda window: window.start_time)

    total_minutes = sum(
        time_to_minutes(window.end_time) - time_to_minutes(window.start_time)
        for window in ordered
    )
    is_consecutive = all(
        current.end_time == following.start_time
        for current, following in zip(ordered, ordered[1:])
    )

    return SelectionSummary(
        effective_start=ordered[0].start_time,
        effective_end=ordered[-1].end_time,
        total_duration_hours=total_minutes / 60,
        total_price=sum(window.price for window in ordered),
        is_consecutive=is_consecutive,
        window_count=len(ordered),
    )


def select_windows(
    db: Session,
    court_id: int,
    target_date: date,
    start_times: List[time],
    current_user_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> SelectionSummary:
    """Resuelve horas de inicio contra los turnos de la fecha y calcula el resumen."""
    if len(set(start_times)) != len(start_times):
        raise InvalidSelection("Each window can only be selected once")

    windows = get_availability(
        db, court_id, target_date, current_user_id=current_user_id, now=now
    )
    by_start = {window.start_time: window for window in windows}

    selected = []
    for start_time in start_times:
        window = by_start.get(start_time)
        if window is None:
            raise InvalidWindow(
                f"{format_time(start_time)} is not a window of court {court_id} on {target_date}"
            )
        selected.append(window)

    return compute_selection(selected)
