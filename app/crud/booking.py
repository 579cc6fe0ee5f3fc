from datetime import date, time
from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.booking import Booking, BookingStatus, OCCUPYING_STATUSES
from app.models.court import Court


def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
    return db.query(Booking).filter(Booking.id == booking_id).first()


def get_bookings(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[int] = None,
    court_id: Optional[int] = None,
    booking_date: Optional[date] = None,
    status: Optional[BookingStatus] = None,
    date_from: Optional[date] = None,
) -> List[Booking]:
    query = db.query(Booking)

    if user_id:
        query = query.filter(Booking.user_id == user_id)
    if court_id:
        query = query.filter(Booking.court_id == court_id)
    if booking_date:
        query = query.filter(Booking.booking_date == booking_date)
    if status:
        query = query.filter(Booking.status == status.value)
    if date_from:
        query = query.filter(Booking.booking_date >= date_from)

    return (
        query.order_by(Booking.booking_date.desc(), Booking.start_time.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_facility_bookings(
    db: Session,
    facility_id: int,
    booking_date: Optional[date] = None,
    status: Optional[BookingStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Booking]:
    """Reservas de todas las canchas de una instalación"""
    query = (
        db.query(Booking)
        .join(Court, Court.id == Booking.court_id)
        .filter(Court.facility_id == facility_id)
    )
    if booking_date:
        query = query.filter(Booking.booking_date == booking_date)
    if status:
        query = query.filter(Booking.status == status.value)

    return (
        query.order_by(
            Booking.booking_date.desc(), Booking.start_time.asc(), Booking.court_id.asc()
        )
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_occupying_bookings(
    db: Session, court_id: int, booking_date: date
) -> List[Booking]:
    """Reservas que ocupan turnos de la cancha en la fecha (reservadas o completadas)."""
    return (
        db.query(Booking)
        .filter(
            Booking.court_id == court_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(OCCUPYING_STATUSES),
        )
        .order_by(Booking.start_time.asc())
        .all()
    )


def get_occupying_bookings_in_range(
    db: Session, court_id: int, booking_date: date, start_time: time, end_time: time
) -> List[Booking]:
    """Reservas activas que se solapan con [start_time, end_time)."""
    return (
        db.query(Booking)
        .filter(
            Booking.court_id == court_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(OCCUPYING_STATUSES),
            Booking.start_time < end_time,
            Booking.end_time > start_time,
        )
        .all()
    )


def create_booking(
    db: Session,
    court_id: int,
    user_id: int,
    booking_date: date,
    start_time: time,
    end_time: time,
    price: int,
    notes: Optional[str] = None,
) -> Booking:
    """Inserta la reserva sin hacer commit; la transacción la maneja el servicio de reservas."""
    db_booking = Booking(
        court_id=court_id,
        user_id=user_id,
        booking_date=booking_date,
        start_time=start_time,
        end_time=end_time,
        price=price,
        status=BookingStatus.BOOKED.value,
        notes=notes,
    )
    db.add(db_booking)
    db.flush()
    return db_booking


def update_booking_status(
    db: Session, booking: Booking, status: BookingStatus
) -> Booking:
    booking.status = status.value
    db.commit()
    db.refresh(booking)
    return booking
