"""
Motor de reservas: único camino para crear una reserva.

Cada turno pedido se resuelve por separado (éxito parcial): se toma el lock del
turno (court_id, fecha, hora de inicio), se vuelve a verificar la disponibilidad
contra la base y recién entonces se inserta y se hace commit. El índice único
parcial uq_bookings_booked_window cubre las carreras entre procesos.
"""

from datetime import date, datetime
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.crud import booking as booking_crud
from app.crud import court as court_crud
from app.crud import maintenance as maintenance_crud
from app.exceptions import (
    BookingNotFinished,
    BookingNotFound,
    ConcurrencyConflict,
    CourtBookingError,
    CourtInactive,
    CourtNotFound,
    InvalidTransition,
    InvalidWindow,
    PermissionDenied,
    SlotUnavailable,
)
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.models.court import Court
from app.schemas.booking import (
    BookingError,
    BookingOutcome,
    BookingResponse,
    BookingResult,
    BookingResultsResponse,
    BookingWindowRequest,
)
from app.schemas.court import TimeWindow, WindowStatus
from app.services import notification_service
from app.services.availability import resolve_status, windows_for_date
from app.services.notification_service import InAppNotificationSink, NotificationSink
from app.services.payment import NoopPaymentGateway, PaymentGateway
from app.utils.locks import window_locks
from app.utils.time_utils import format_time, parse_time

logger = logging.getLogger(__name__)


def _fresh_status(
    db: Session, window: TimeWindow, user_id: int, now: datetime
) -> TimeWindow:
    """Estado del turno leído en este momento, no el que vio el usuario antes."""
    bookings = booking_crud.get_occupying_bookings_in_range(
        db, window.court_id, window.date, window.start_time, window.end_time
    )
    blocks = maintenance_crud.get_blocks(db, window.court_id, window.date)
    return resolve_status(window, bookings, blocks, now, current_user_id=user_id)


def _insert_booking(
    db: Session,
    window: TimeWindow,
    user_id: int,
    now: datetime,
    notes: Optional[str],
) -> Booking:
    current = _fresh_status(db, window, user_id, now)

    if current.status == WindowStatus.PAST:
        raise InvalidWindow(
            f"Window {format_time(window.start_time)} on {window.date} has already started"
        )
    if current.status == WindowStatus.BLOCKED:
        raise SlotUnavailable(
            f"Window {format_time(window.start_time)} is blocked: {current.maintenance_reason}"
        )
    if current.status == WindowStatus.BOOKED:
        raise SlotUnavailable(
            f"Window {format_time(window.start_time)} on {window.date} is already booked"
        )

    try:
        booking = booking_crud.create_booking(
            db,
            court_id=window.court_id,
            user_id=user_id,
            booking_date=window.date,
            start_time=window.start_time,
            end_time=window.end_time,
            price=window.price,
            notes=notes,
        )
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConcurrencyConflict(
            f"Window {format_time(window.start_time)} was taken concurrently"
        ) from e

    db.refresh(booking)
    return booking


def _book_window(
    db: Session,
    window: TimeWindow,
    user_id: int,
    now: datetime,
    notes: Optional[str],
) -> Booking:
    """Reserva un turno; un conflicto de concurrencia se reintenta una sola vez."""
    key = (window.court_id, window.date, window.start_time)
    with window_locks.hold(key):
        try:
            return _insert_booking(db, window, user_id, now, notes)
        except ConcurrencyConflict as e:
            logger.warning(f"{e.message}, re-checking window {key} once")

        try:
            return _insert_booking(db, window, user_id, now, notes)
        except ConcurrencyConflict as e:
            raise SlotUnavailable(e.message) from e


def _confirm_payment(db: Session, booking: Booking, gateway: PaymentGateway) -> None:
    """El turno ya está reservado: si el cobro falla, la reserva queda con pago pendiente."""
    booking_id = booking.id
    try:
        approved = gateway.confirm(booking)
    except Exception:
        db.rollback()
        logger.exception(f"Payment confirmation failed for booking {booking_id}")
        return
    if not approved:
        logger.info(f"Payment pending for booking {booking_id}")
        return
    booking.payment_status = PaymentStatus.PAID.value
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Could not mark booking {booking_id} as paid")
        return
    db.refresh(booking)


def _failed(request: BookingWindowRequest, window, outcome, error) -> BookingResult:
    return BookingResult(
        start_time=request.start_time,
        end_time=window.end_time if window else request.end_time,
        window=window,
        outcome=outcome,
        error=BookingError(**error.to_dict()),
    )


def create_bookings(
    db: Session,
    court_id: int,
    booking_date: date,
    user_id: int,
    windows: List[BookingWindowRequest],
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    sink: Optional[NotificationSink] = None,
    payment_gateway: Optional[PaymentGateway] = None,
) -> BookingResultsResponse:
    """
    Convierte una selección de turnos en reservas, turno por turno.

    Las reservas ya confirmadas no se deshacen si falla un turno posterior: el
    resultado informa qué turnos quedaron reservados y cuáles no (y por qué).

    Raises:
        CourtNotFound: si la cancha no existe
        CourtInactive: si la cancha o su instalación están inactivas
    """
    court = court_crud.get_court(db, court_id)
    if not court:
        raise CourtNotFound()
    if not court.is_bookable:
        raise CourtInactive()

    now = now or datetime.now()
    sink = sink or InAppNotificationSink(db)
    payment_gateway = payment_gateway or NoopPaymentGateway()

    schedule = {
        window.start_time: window
        for window in windows_for_date(db, court, booking_date)
    }

    results = []
    created = []
    seen = set()
    for request in windows:
        start_time = parse_time(request.start_time)
        if start_time in seen:
            continue
        seen.add(start_time)

        window = schedule.get(start_time)
        if window is None or (
            request.end_time is not None and parse_time(request.end_time) != window.end_time
        ):
            error = InvalidWindow(
                f"{format_time(start_time)} is not a window of court {court_id} on {booking_date}"
            )
            results.append(_failed(request, window, BookingOutcome.ERROR, error))
            continue

        try:
            booking = _book_window(db, window, user_id, now, notes)
        except SlotUnavailable as e:
            logger.warning(f"Booking rejected for court {court_id}: {e.message}")
            results.append(_failed(request, window, BookingOutcome.SLOT_UNAVAILABLE, e))
            continue
        except CourtBookingError as e:
            results.append(_failed(request, window, BookingOutcome.ERROR, e))
            continue
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                f"Storage error booking court {court_id} on {booking_date} at {format_time(start_time)}"
            )
            error = CourtBookingError("Booking could not be stored, please retry")
            results.append(_failed(request, window, BookingOutcome.ERROR, error))
            continue

        logger.info(
            f"Booking {booking.id} created: court {court_id}, {booking_date} "
            f"{format_time(booking.start_time)}-{format_time(booking.end_time)}, user {user_id}"
        )
        _confirm_payment(db, booking, payment_gateway)
        created.append(booking)
        results.append(
            BookingResult(
                start_time=window.start_time,
                end_time=window.end_time,
                window=window.model_copy(
                    update={
                        "status": WindowStatus.BOOKED,
                        "booking_id": booking.id,
                        "is_own_booking": True,
                    }
                ),
                outcome=BookingOutcome.CREATED,
                booking=BookingResponse.model_validate(booking),
            )
        )

    if created:
        _notify_owner(court, created, user_id, sink)

    return BookingResultsResponse(
        court_id=court_id,
        booking_date=booking_date,
        created_count=len(created),
        failed_count=len(results) - len(created),
        results=results,
    )


def _notify_owner(
    court: Court, bookings: List[Booking], user_id: int, sink: NotificationSink
) -> None:
    owner_id = court.owner_id
    if owner_id is None or owner_id == user_id:
        return
    notification_service.deliver(
        sink,
        owner_id,
        notification_service.NEW_BOOKING,
        {
            "court_id": court.id,
            "court_name": court.name,
            "booking_date": bookings[0].booking_date.isoformat(),
            "start_time": ", ".join(format_time(b.start_time) for b in bookings),
            "booking_ids": [b.id for b in bookings],
            "user_id": user_id,
        },
    )


def complete_booking(
    db: Session, booking_id: int, owner_id: int, now: Optional[datetime] = None
) -> Booking:
    """Marca la reserva como completada. Solo el dueño de la cancha, y solo cuando el turno terminó."""
    booking = booking_crud.get_booking(db, booking_id)
    if not booking:
        raise BookingNotFound()
    if booking.court.owner_id != owner_id:
        raise PermissionDenied("Only the court owner can complete a booking")
    if booking.status != BookingStatus.BOOKED.value:
        raise InvalidTransition(f"Booking is {booking.status}, only booked bookings can be completed")

    now = now or datetime.now()
    if now < datetime.combine(booking.booking_date, booking.end_time):
        raise BookingNotFinished()

    booking = booking_crud.update_booking_status(db, booking, BookingStatus.COMPLETED)
    logger.info(f"Booking {booking.id} completed by owner {owner_id}")
    return booking


def get_booking_for_user(db: Session, booking_id: int, user_id: int) -> Booking:
    """Una reserva la ven quien la hizo y el dueño de la cancha."""
    booking = booking_crud.get_booking(db, booking_id)
    if not booking:
        raise BookingNotFound()
    if booking.user_id != user_id and booking.court.owner_id != user_id:
        raise PermissionDenied("You cannot view this booking")
    return booking
