from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.facility import Facility
from app.schemas.facility import FacilityCreate, FacilityUpdate


def get_facility(db: Session, facility_id: int) -> Optional[Facility]:
    return db.query(Facility).filter(Facility.id == facility_id).first()


def get_facilities(
    db: Session, skip: int = 0, limit: int = 100, owner_id: Optional[int] = None
) -> List[Facility]:
    query = db.query(Facility)
    if owner_id:
        query = query.filter(Facility.owner_id == owner_id)
    return query.order_by(Facility.id).offset(skip).limit(limit).all()


def create_facility(db: Session, facility: FacilityCreate, owner_id: int) -> Facility:
    db_facility = Facility(**facility.model_dump(), owner_id=owner_id)
    db.add(db_facility)
    db.commit()
    db.refresh(db_facility)
    return db_facility


def update_facility(
    db: Session, facility_id: int, facility: FacilityUpdate
) -> Optional[Facility]:
    db_facility = get_facility(db, facility_id)
    if not db_facility:
        return None

    update_data = facility.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_facility, field, value)

    db.commit()
    db.refresh(db_facility)
    return db_facility
