# academy/routers/positions.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from academy import auth, models, schemas
from academy.db import get_db
from academy.services.store import commit
from typing import List
import uuid

router = APIRouter(
    prefix="/positions",
    tags=["Positions"]
)

def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Position name is required.")
    return name

def _get_position(db: Session, position_id: uuid.UUID) -> models.Position:
    position = db.get(models.Position, position_id)
    if not position:
        raise HTTPException(status_code=404, detail="Position not found")
    return position

# --- List positions in display order ---
@router.get("", response_model=List[schemas.PositionOut])
def list_positions(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    return db.query(models.Position).order_by(models.Position.sort_order, models.Position.name).all()

# --- Create position (admin or coach only) ---
@router.post("", response_model=schemas.PositionOut, status_code=201)
def create_position(
    payload: schemas.PositionCreate,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    new_position = models.Position(
        name=_clean_name(payload.name),
        sort_order=payload.sort_order if payload.sort_order is not None else 0
    )
    db.add(new_position)
    commit(db, "position create")
    db.refresh(new_position)
    return new_position

# --- Update position (admin or coach only) ---
@router.put("/{position_id}", response_model=schemas.PositionOut)
def update_position(
    position_id: uuid.UUID,
    payload: schemas.PositionCreate,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    position = _get_position(db, position_id)
    position.name = _clean_name(payload.name)
    position.sort_order = payload.sort_order if payload.sort_order is not None else 0
    commit(db, "position update")
    db.refresh(position)
    return position

# --- Delete position (admin or coach only) ---
@router.delete("/{position_id}")
def delete_position(
    position_id: uuid.UUID,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    position = _get_position(db, position_id)
    db.delete(position)
    commit(db, "position delete")
    return {"message": f"Position {position_id} deleted successfully"}
