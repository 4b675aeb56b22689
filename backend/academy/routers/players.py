# academy/routers/players.py

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from academy import auth, models, schemas
from academy.db import get_db
from academy.services import attendance as attendance_service
from academy.services import players as player_service
from academy.services.store import commit
from dataclasses import asdict
from datetime import date
from typing import List, Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/players",
    tags=["Players"]
)

def _get_player(db: Session, player_id: uuid.UUID) -> models.Player:
    player = db.get(models.Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail=f"Player {player_id} not found")
    return player

# --- List players with search and filters ---
@router.get("", response_model=List[schemas.PlayerOut])
def list_players(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db),
    q: Optional[str] = None,
    team: Optional[str] = Query(None, description="Comma-separated team ids; 'none' for unassigned"),
    position: Optional[str] = Query(None, description="Comma-separated position names")
):
    flt = player_service.PlayerFilter.from_query(q=q, team=team, position=position)
    players = player_service.filter_players(player_service.players_for_listing(db), flt)
    return [player_service.player_to_dict(p, current_user.can_edit) for p in players]

# --- Player profile with 30-day attendance ---
@router.get("/{player_id}", response_model=schemas.PlayerDetail)
def get_player(
    player_id: uuid.UUID,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    player = _get_player(db, player_id)
    data = player_service.player_to_dict(player, current_user.can_edit)
    data["age"] = player_service.age_on(player.dob, date.today())
    data["attendance_summary"] = asdict(attendance_service.player_attendance_summary(db, player.id))
    return data

# --- Create player (admin or coach only) ---
@router.post("", response_model=schemas.PlayerOut, status_code=201)
def create_player(
    payload: schemas.PlayerCreate,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    data = player_service.clean_player_payload(db, payload.model_dump(), creating=True)
    new_player = models.Player(**data)

    db.add(new_player)
    commit(db, "player create")
    db.refresh(new_player)
    logger.info("Player created. player=%s by=%s", new_player.id, current_user.id)
    return player_service.player_to_dict(new_player, True)

# --- Update player (admin or coach only) ---
@router.put("/{player_id}", response_model=schemas.PlayerOut)
def update_player(
    player_id: uuid.UUID,
    payload: schemas.PlayerCreate,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    player = _get_player(db, player_id)
    data = player_service.clean_player_payload(db, payload.model_dump(), creating=False)
    for name, value in data.items():
        setattr(player, name, value)

    commit(db, "player update")
    db.refresh(player)
    return player_service.player_to_dict(player, True)

# --- Delete player and their attendance (admin or coach only) ---
@router.delete("/{player_id}")
def delete_player(
    player_id: uuid.UUID,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    player = _get_player(db, player_id)
    db.delete(player)
    commit(db, "player delete")
    logger.info("Player deleted. player=%s by=%s", player_id, current_user.id)
    return {"message": f"Player {player_id} deleted successfully"}
