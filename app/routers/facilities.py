from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.crud import booking as booking_crud
from app.crud import facility as crud
from app.models.booking import BookingStatus
from app.schemas.booking import BookingResponse
from app.schemas.facility import FacilityCreate, FacilityResponse, FacilityUpdate
from app.services.auth import get_current_owner
from app.models.user import User

router = APIRouter()


@router.post("/", response_model=FacilityResponse, status_code=status.HTTP_201_CREATED)
def create_facility(
    facility: FacilityCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    return crud.create_facility(db=db, facility=facility, owner_id=current_user.id)


@router.get("/", response_model=List[FacilityResponse])
def read_facilities(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.get_facilities(db, skip=skip, limit=limit)


@router.get("/{facility_id}", response_model=FacilityResponse)
def read_facility(facility_id: int, db: Session = Depends(get_db)):
    db_facility = crud.get_facility(db, facility_id=facility_id)
    if db_facility is None:
        raise HTTPException(status_code=404, detail="Facility not found")
    return db_facility


@router.put("/{facility_id}", response_model=FacilityResponse)
def update_facility(
    facility_id: int,
    facility: FacilityUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    db_facility = crud.get_facility(db, facility_id=facility_id)
    if db_facility is None:
        raise HTTPException(status_code=404, detail="Facility not found")
    if db_facility.owner_id != current_user.id:
        raise HTTPException(status_code=403, detail="Can only edit your own facilities")
    return crud.update_facility(db=db, facility_id=facility_id, facility=facility)


@router.get("/{facility_id}/bookings", response_model=List[BookingResponse])
def read_facility_bookings(
    facility_id: int,
    booking_date: Optional[date] = None,
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    """Reservas de todas las canchas de la instalación (solo el dueño)."""
    db_facility = crud.get_facility(db, facility_id=facility_id)
    if db_facility is None:
        raise HTTPException(status_code=404, detail="Facility not found")
    if db_facility.owner_id != current_user.id:
        raise HTTPException(
            status_code=403, detail="Can only view bookings of your own facilities"
        )
    return booking_crud.get_facility_bookings(
        db,
        facility_id,
        booking_date=booking_date,
        status=booking_status,
        skip=skip,
        limit=limit,
    )
