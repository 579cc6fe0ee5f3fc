from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.schemas.maintenance import (
    MaintenanceBlockClear,
    MaintenanceBlockCreate,
    MaintenanceBlockResponse,
)
from app.services import maintenance_service
from app.services.auth import get_current_owner
from app.models.user import User

router = APIRouter()


@router.get("/", response_model=List[MaintenanceBlockResponse])
def read_maintenance_blocks(
    court_id: int,
    block_date: date = Query(...),
    db: Session = Depends(get_db),
):
    return maintenance_service.list_maintenance(db, court_id, block_date)


@router.post(
    "/", response_model=MaintenanceBlockResponse, status_code=status.HTTP_201_CREATED
)
def set_maintenance(
    block: MaintenanceBlockCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    """Bloquea un rango horario de la cancha. Falla si algún turno del rango ya está reservado."""
    return maintenance_service.set_maintenance(
        db,
        court_id=block.court_id,
        block_date=block.block_date,
        start_time=block.start_time,
        end_time=block.end_time,
        owner_id=current_user.id,
        reason=block.reason,
    )


@router.post("/clear")
def clear_maintenance(
    block: MaintenanceBlockClear,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    deleted = maintenance_service.clear_maintenance(
        db,
        court_id=block.court_id,
        block_date=block.block_date,
        start_time=block.start_time,
        end_time=block.end_time,
        owner_id=current_user.id,
    )
    return {"deleted": deleted}


@router.delete("/{block_id}")
def delete_maintenance_block(
    block_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_owner),
):
    maintenance_service.clear_maintenance_by_id(db, block_id, owner_id=current_user.id)
    return {"message": "Maintenance block removed"}
