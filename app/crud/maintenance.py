from datetime import date, time
from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.maintenance_block import MaintenanceBlock


def get_block(db: Session, block_id: int) -> Optional[MaintenanceBlock]:
    return db.query(MaintenanceBlock).filter(MaintenanceBlock.id == block_id).first()


def get_blocks(db: Session, court_id: int, block_date: date) -> List[MaintenanceBlock]:
    return (
        db.query(MaintenanceBlock)
        .filter(
            MaintenanceBlock.court_id == court_id,
            MaintenanceBlock.block_date == block_date,
        )
        .order_by(MaintenanceBlock.start_time.asc())
        .all()
    )


def get_block_by_span(
    db: Session, court_id: int, block_date: date, start_time: time, end_time: time
) -> Optional[MaintenanceBlock]:
    return (
        db.query(MaintenanceBlock)
        .filter(
            MaintenanceBlock.court_id == court_id,
            MaintenanceBlock.block_date == block_date,
            MaintenanceBlock.start_time == start_time,
            MaintenanceBlock.end_time == end_time,
        )
        .first()
    )


def delete_blocks_by_span(
    db: Session, court_id: int, block_date: date, start_time: time, end_time: time
) -> int:
    deleted_count = (
        db.query(MaintenanceBlock)
        .filter(
            MaintenanceBlock.court_id == court_id,
            MaintenanceBlock.block_date == block_date,
            MaintenanceBlock.start_time == start_time,
            MaintenanceBlock.end_time == end_time,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted_count


def delete_block(db: Session, block: MaintenanceBlock) -> None:
    db.delete(block)
    db.commit()
