from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.crud import booking as crud
from app.schemas.booking import BookingCreate, BookingResponse, BookingResultsResponse
from app.services import booking_service
from app.services.auth import get_current_user
from app.services.notification_service import NotificationSink, get_notification_sink
from app.services.payment import PaymentGateway, get_payment_gateway
from app.models.user import User

router = APIRouter()


@router.post(
    "/", response_model=BookingResultsResponse, status_code=status.HTTP_201_CREATED
)
def create_bookings(
    booking: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    sink: NotificationSink = Depends(get_notification_sink),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Reserva uno o más turnos de una cancha.

    Cada turno se procesa por separado: la respuesta indica cuáles se reservaron
    y cuáles fallaron, con el motivo.
    """
    return booking_service.create_bookings(
        db,
        court_id=booking.court_id,
        booking_date=booking.booking_date,
        user_id=current_user.id,
        windows=booking.windows,
        notes=booking.notes,
        sink=sink,
        payment_gateway=payment_gateway,
    )


@router.get("/me", response_model=List[BookingResponse])
def read_my_bookings(
    upcoming: bool = False,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_bookings(
        db,
        skip=skip,
        limit=limit,
        user_id=current_user.id,
        date_from=date.today() if upcoming else None,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return booking_service.get_booking_for_user(db, booking_id, current_user.id)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
def complete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return booking_service.complete_booking(db, booking_id, owner_id=current_user.id)
