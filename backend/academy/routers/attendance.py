# academy/routers/attendance.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from academy import auth, schemas
from academy.db import get_db
from academy.services import attendance as attendance_service
from dataclasses import asdict
from datetime import date
from typing import Dict, List, Optional
import uuid

router = APIRouter(
    prefix="/attendance",
    tags=["Attendance"]
)

# --- Recent records (any signed-in user) ---
@router.get("", response_model=schemas.AttendanceList)
def list_attendance(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db),
    q: str = Query(""),
    team_id: Optional[uuid.UUID] = None,
    day: Optional[date] = Query(None, alias="date"),
    limit: int = Query(attendance_service.RECENT_LIMIT, ge=1, le=500)
):
    rows = attendance_service.recent_attendance(db, limit=limit)
    flt = attendance_service.AttendanceFilter(q=q, team_id=team_id, day=day)
    filtered = attendance_service.filter_attendance(rows, flt)
    return {
        "records": filtered,
        "unique_dates": attendance_service.unique_dates(filtered)
    }

# --- Calendar heat-map counts ---
@router.get("/summary", response_model=Dict[str, List[schemas.DateSubmission]])
def submission_summary(
    start: date,
    end: date,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    summary = attendance_service.submission_summary(db, start, end)
    return {
        day: [asdict(group) for group in groups]
        for day, groups in summary.items()
    }

# --- Ranked player/team statistics ---
@router.get("/analytics", response_model=schemas.AnalyticsOut)
def attendance_analytics(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    team_id: Optional[uuid.UUID] = None
):
    players, teams = attendance_service.analytics(db, date_from, date_to, team_id)
    return {
        "player_stats": [asdict(s) for s in players],
        "team_stats": [asdict(s) for s in teams]
    }

# --- One day's roster with points ---
@router.get("/day/{day}", response_model=schemas.AttendanceDay)
def get_day(
    day: date,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db),
    team_id: Optional[uuid.UUID] = None
):
    return {
        "date": day,
        "can_edit": current_user.can_edit,
        "entries": attendance_service.load_day(db, day, team_id)
    }

# --- Replace a day's records (admin or coach only) ---
@router.put("/day/{day}", response_model=List[schemas.AttendanceOut])
def save_day(
    day: date,
    payload: schemas.AttendanceSave,
    current_user=Depends(auth.require_editor),
    db: Session = Depends(get_db)
):
    return attendance_service.save_attendance_for_date(db, day, payload.records, current_user)
