from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.crud import booking as booking_crud
from app.crud import court as crud
from app.crud import facility as facility_crud
from app.schemas.booking import BookingResponse
from app.schemas.court import (
    AvailabilityResponse,
    CourtCreate,
    CourtResponse,
    CourtScheduleCreate,
    CourtScheduleResponse,
    CourtUpdate,
    SelectionRequest,
    SelectionSummary,
)
from app.services.auth import get_current_owner, get_current_user
from app.services.availability import get_availability
from app.services.selection import select_windows
from app.models.user import User

router = APIRouter()


def _get_owned_court(db: Session, court_id: int, user: User):
    db_court = crud.get_court(db, court_id=court_id)
    if db_court is None:
        raise HTTPException(status_code=404, detail="Court not found")
    if db_court.owner_id != user.id:
        raise HTTPException(status_code=403, detail="Can only manage your own courts")
    return db_court


@router.post("/", response_model=CourtResponse, status_code=status.HTTP_201_CREATED)
def create_court(
    court: CourtCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    facility = facility_crud.get_facility(db, court.facility_id)
    if facility is None:
        raise HTTPException(status_code=404, detail="Facility not found")
    if facility.owner_id != current_user.id:
        raise HTTPException(
            status_code=403, detail="Can only create courts for your own facilities"
        )
    return crud.create_court(db=db, court=court)


@router.get("/", response_model=List[CourtResponse])
def read_courts(
    skip: int = 0,
    limit: int = 100,
    facility_id: Optional[int] = None,
    sport_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return crud.get_courts(
        db, skip=skip, limit=limit, facility_id=facility_id, sport_type=sport_type
    )


@router.get("/{court_id}", response_model=CourtResponse)
def read_court(court_id: int, db: Session = Depends(get_db)):
    db_court = crud.get_court(db, court_id=court_id)
    if db_court is None:
        raise HTTPException(status_code=404, detail="Court not found")
    return db_court


@router.put("/{court_id}", response_model=CourtResponse)
def update_court(
    court_id: int,
    court: CourtUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    # Los cambios de horario o precio no tocan las reservas ya hechas
    _get_owned_court(db, court_id, current_user)
    return crud.update_court(db=db, court_id=court_id, court=court)


@router.post(
    "/{court_id}/schedules",
    response_model=CourtScheduleResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_court_schedule(
    court_id: int,
    schedule: CourtScheduleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    _get_owned_court(db, court_id, current_user)
    return crud.create_schedule(db, court_id=court_id, schedule=schedule)


@router.get("/{court_id}/schedules", response_model=List[CourtScheduleResponse])
def read_court_schedules(court_id: int, db: Session = Depends(get_db)):
    if crud.get_court(db, court_id=court_id) is None:
        raise HTTPException(status_code=404, detail="Court not found")
    return crud.get_schedules(db, court_id=court_id)


@router.get("/{court_id}/availability", response_model=AvailabilityResponse)
def read_availability(
    court_id: int,
    date: date = Query(..., description="Fecha a consultar (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Turnos de la cancha para la fecha con su estado
    (available, booked, blocked o past), calculados en el momento.
    """
    windows = get_availability(db, court_id, date, current_user_id=current_user.id)
    return AvailabilityResponse(court_id=court_id, date=date, windows=windows)


@router.post("/{court_id}/selection", response_model=SelectionSummary)
def compute_court_selection(
    court_id: int,
    selection: SelectionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return select_windows(
        db,
        court_id,
        selection.date,
        selection.start_times,
        current_user_id=current_user.id,
    )


@router.get("/{court_id}/bookings", response_model=List[BookingResponse])
def read_court_bookings(
    court_id: int,
    date: date = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    _get_owned_court(db, court_id, current_user)
    return booking_crud.get_bookings(db, court_id=court_id, booking_date=date)
