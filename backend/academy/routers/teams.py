# academy/routers/teams.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from academy import auth, models, schemas
from academy.db import get_db
from academy.services import teams as team_service
from academy.services.store import commit
from typing import List
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/teams",
    tags=["Teams"]
)

def _get_team(db: Session, team_id: uuid.UUID) -> models.Team:
    team = db.get(models.Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail=f"Team {team_id} not found")
    return team

def _team_out(team: models.Team, player_count: int) -> dict:
    return {
        "id": team.id,
        "name": team.name,
        "main_coach_id": team.main_coach_id,
        "coach_ids": team.coach_ids or [],
        "volunteer_ids": team.volunteer_ids or [],
        "notes": team.notes,
        "created_at": team.created_at,
        "main_coach": team.main_coach,
        "player_count": player_count
    }

# --- List teams (any signed-in user) ---
@router.get("", response_model=List[schemas.TeamOut])
def list_teams(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    counts = team_service.player_counts(db)
    teams = db.query(models.Team).order_by(models.Team.created_at.desc(), models.Team.name).all()
    return [_team_out(t, counts.get(t.id, 0)) for t in teams]

# --- Team detail with staff and roster ---
@router.get("/{team_id}", response_model=schemas.TeamDetail)
def get_team(
    team_id: uuid.UUID,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    team = _get_team(db, team_id)
    players = db.query(models.Player).filter(
        models.Player.team_id == team.id
    ).order_by(models.Player.first_name, models.Player.last_name).all()

    data = _team_out(team, len(players))
    data["coaches"] = team_service.staff_members(db, team.coach_ids or [])
    data["volunteers"] = team_service.staff_members(db, team.volunteer_ids or [])
    data["players"] = players
    return data

# --- Create a new team (admin or coach only) ---
@router.post("", response_model=schemas.TeamOut, status_code=201)
def create_team(
    payload: schemas.TeamCreate,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    name, main_coach_id, coach_ids, volunteer_ids = team_service.clean_staff(
        db, payload.name, payload.main_coach_id, payload.coach_ids, payload.volunteer_ids
    )
    new_team = models.Team(
        name=name,
        main_coach_id=main_coach_id,
        coach_ids=coach_ids,
        volunteer_ids=volunteer_ids,
        notes=(payload.notes or "").strip() or None
    )

    db.add(new_team)
    commit(db, "team create")
    db.refresh(new_team)
    return _team_out(new_team, 0)

# --- Update a team (admin or coach only) ---
@router.put("/{team_id}", response_model=schemas.TeamOut)
def update_team(
    team_id: uuid.UUID,
    payload: schemas.TeamCreate,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    team = _get_team(db, team_id)
    name, main_coach_id, coach_ids, volunteer_ids = team_service.clean_staff(
        db, payload.name, payload.main_coach_id, payload.coach_ids, payload.volunteer_ids
    )
    team.name = name
    team.main_coach_id = main_coach_id
    team.coach_ids = coach_ids
    team.volunteer_ids = volunteer_ids
    team.notes = (payload.notes or "").strip() or None

    commit(db, "team update")
    db.refresh(team)
    return _team_out(team, team_service.player_counts(db).get(team.id, 0))

# --- Delete a team (admin only) ---
@router.delete("/{team_id}")
def delete_team(
    team_id: uuid.UUID,
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    team = _get_team(db, team_id)
    # Players become unassigned; attendance rows keep their team snapshot.
    for player in team.players:
        player.team_id = None
    db.delete(team)
    commit(db, "team delete")
    logger.info("Team deleted. team=%s by=%s", team_id, current_user.id)
    return {"message": f"Team {team_id} deleted successfully"}
