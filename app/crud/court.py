from datetime import date
from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.court import Court
from app.models.court_schedule import CourtSchedule
from app.schemas.court import CourtCreate, CourtUpdate, CourtScheduleCreate


def get_court(db: Session, court_id: int) -> Optional[Court]:
    return db.query(Court).filter(Court.id == court_id).first()


def get_courts(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    facility_id: Optional[int] = None,
    sport_type: Optional[str] = None,
    active_only: bool = True,
) -> List[Court]:
    query = db.query(Court)

    if facility_id:
        query = query.filter(Court.facility_id == facility_id)
    if sport_type:
        query = query.filter(Court.sport_type == sport_type)
    if active_only:
        query = query.filter(Court.is_active == True)

    return query.order_by(Court.id).offset(skip).limit(limit).all()


def create_court(db: Session, court: CourtCreate) -> Court:
    db_court = Court(**court.model_dump())
    db.add(db_court)
    db.commit()
    db.refresh(db_court)
    return db_court


def update_court(db: Session, court_id: int, court: CourtUpdate) -> Optional[Court]:
    db_court = get_court(db, court_id)
    if not db_court:
        return None

    update_data = court.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_court, field, value)

    db.commit()
    db.refresh(db_court)
    return db_court


def create_schedule(
    db: Session, court_id: int, schedule: CourtScheduleCreate
) -> CourtSchedule:
    db_schedule = CourtSchedule(court_id=court_id, **schedule.model_dump())
    db.add(db_schedule)
    db.commit()
    db.refresh(db_schedule)
    return db_schedule


def get_schedules(db: Session, court_id: int) -> List[CourtSchedule]:
    return (
        db.query(CourtSchedule)
        .filter(CourtSchedule.court_id == court_id)
        .order_by(CourtSchedule.created_at.desc(), CourtSchedule.id.desc())
        .all()
    )


def get_schedule_for_date(
    db: Session, court_id: int, target_date: date
) -> Optional[CourtSchedule]:
    """La configuración más reciente que cubre la fecha, si existe."""
    return (
        db.query(CourtSchedule)
        .filter(
            CourtSchedule.court_id == court_id,
            CourtSchedule.date_from <= target_date,
            CourtSchedule.date_to >= target_date,
        )
        .order_by(CourtSchedule.created_at.desc(), CourtSchedule.id.desc())
        .first()
    )
