# file: academy/services/attendance.py
"""Attendance editing, aggregation and statistics.

Provided utilities:
    - :func:`save_attendance_for_date` – replace every record of one date
      with the edited set (one record per player per date).
    - :func:`submission_summary` – per-date submission counts grouped by team
      for a calendar range.
    - :func:`analytics` – ranked player and team statistics over a filtered
      record set.
    - :func:`player_attendance_summary` – a player's trailing 30-day snapshot.

Aggregation runs in Python over rows fetched in an explicit order, so
results do not depend on how the database happens to return them.
"""

from __future__ import annotations

import logging
import math
import re
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from academy import models
from academy.services.errors import PermissionDenied, StoreError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_POINTS = 1
SUMMARY_WINDOW_DAYS = 30
RECENT_LIMIT = 100
# Largest value a 32-bit Integer column holds.
MAX_POINTS = 2 ** 31 - 1

NO_TEAM_LABEL = "No team"
UNKNOWN_TEAM_LABEL = "Unknown"
NO_TEAM_BUCKET_ID = "no-team"
NO_TEAM_BUCKET_NAME = "No Team"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


__all__ = [
    "clamp_points",
    "team_label",
    "attendance_pct",
    "unique_dates",
    "save_attendance_for_date",
    "load_day",
    "group_submissions",
    "submission_summary",
    "player_stats",
    "team_stats",
    "analytics",
    "summarize_window",
    "player_attendance_summary",
    "AttendanceFilter",
    "filter_attendance",
    "recent_attendance",
]


@dataclass
class DateSubmission:
    team_id: Optional[uuid.UUID]
    team_name: str
    count: int


@dataclass
class AnalyticsRecord:
    player_id: uuid.UUID
    points: int
    first_name: str = ""
    last_name: str = ""
    team_id: Optional[uuid.UUID] = None
    team_name: Optional[str] = None


@dataclass
class PlayerStats:
    player_id: uuid.UUID
    first_name: str
    last_name: str
    team_name: Optional[str]
    total_points: int = 0
    attendance_count: int = 0


@dataclass
class TeamStats:
    team_id: str
    team_name: str
    total_points: int = 0
    player_count: int = 0


@dataclass
class PlayerAttendanceSummary:
    last_30_days_total_sessions: int
    last_30_days_attended_sessions: int
    last_30_days_attendance_pct: int
    last_attendance_date: Optional[date]


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------

def clamp_points(value: Any) -> int:
    """Coerce a raw points value to a non-negative integer.

    Integers and floats are truncated and kept within ``[0, MAX_POINTS]``.
    Strings are read up to the first non-digit (``"12abc"`` is 12); anything
    unreadable is 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return min(MAX_POINTS, max(0, value))
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return min(MAX_POINTS, max(0, int(value)))
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if not match:
            return 0
        return min(MAX_POINTS, max(0, int(match.group(1))))
    return 0


def save_attendance_for_date(
    db: Session,
    day: Optional[date],
    entries: Mapping[uuid.UUID, Any],
    acting_user: models.User,
) -> List[models.Attendance]:
    """Replace all attendance records of ``day`` with ``entries``.

    Args:
        db: Open session; committed on success, rolled back on failure.
        day: Session date.
        entries: Player id to raw points for every player who should have a
            record on ``day``. Players left out lose their record.
        acting_user: Stamped as ``updated_by_user_id`` on every row.

    Returns:
        List[Attendance]: The rows now stored for ``day``, in input order.

    Raises:
        PermissionDenied: ``acting_user`` is not an admin or coach.
        ValidationError: Missing date or unknown player ids. Nothing is written.
        StoreError: Delete or insert rejected; the previous rows are kept.
    """
    if acting_user is None or not acting_user.can_edit:
        raise PermissionDenied("Only admins and coaches can edit attendance")
    if day is None:
        raise ValidationError("Date is required")

    player_ids = list(entries.keys())
    players: Dict[uuid.UUID, models.Player] = {}
    if player_ids:
        rows = db.query(models.Player).filter(models.Player.id.in_(player_ids)).all()
        players = {p.id: p for p in rows}
    missing = [str(pid) for pid in player_ids if pid not in players]
    if missing:
        raise ValidationError(f"Unknown player ids: {', '.join(missing)}")

    records = [
        models.Attendance(
            date=day,
            player_id=pid,
            team_id=players[pid].team_id,
            points=clamp_points(raw),
            updated_by_user_id=acting_user.id,
            seq=index,
        )
        for index, (pid, raw) in enumerate(entries.items())
    ]

    try:
        db.query(models.Attendance).filter(models.Attendance.date == day).delete(
            synchronize_session=False
        )
        db.add_all(records)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Saving attendance failed. date=%s players=%d", day, len(records))
        raise StoreError(str(getattr(exc, "orig", None) or exc)) from exc

    logger.info(
        "Attendance saved. date=%s players=%d user=%s", day, len(records), acting_user.id
    )
    return records


# ---------------------------------------------------------------------------
# Read helpers
# ---------------------------------------------------------------------------

def _team_names(db: Session) -> Dict[uuid.UUID, str]:
    return {t.id: t.name for t in db.query(models.Team.id, models.Team.name).all()}


def team_label(team_id: Optional[uuid.UUID], team_names: Mapping[uuid.UUID, str]) -> str:
    if team_id is None:
        return NO_TEAM_LABEL
    return team_names.get(team_id, UNKNOWN_TEAM_LABEL)


def load_day(
    db: Session, day: date, team_id: Optional[uuid.UUID] = None
) -> List[Dict[str, Any]]:
    """Entries for one date: every stored record plus defaults for new rows.

    Stored records are always listed, whatever ``team_id`` is, because a
    save replaces the whole date. ``team_id`` only narrows which players
    without a record are added at :data:`DEFAULT_POINTS`. Entries are sorted
    by name.
    """
    team_names = _team_names(db)
    stored = (
        db.query(models.Attendance, models.Player)
        .join(models.Player, models.Player.id == models.Attendance.player_id)
        .filter(models.Attendance.date == day)
        .all()
    )

    entries = [
        {
            "player_id": player.id,
            "first_name": player.first_name,
            "last_name": player.last_name,
            "team_id": record.team_id,
            "team_name": team_label(record.team_id, team_names),
            "points": record.points,
            "exists": True,
        }
        for record, player in stored
    ]

    seen = {player.id for _, player in stored}
    query = db.query(models.Player)
    if team_id is not None:
        query = query.filter(models.Player.team_id == team_id)
    for player in query.all():
        if player.id in seen:
            continue
        entries.append({
            "player_id": player.id,
            "first_name": player.first_name,
            "last_name": player.last_name,
            "team_id": player.team_id,
            "team_name": team_label(player.team_id, team_names),
            "points": DEFAULT_POINTS,
            "exists": False,
        })

    entries.sort(key=lambda e: (e["first_name"], e["last_name"]))
    return entries


# ---------------------------------------------------------------------------
# Calendar summary
# ---------------------------------------------------------------------------

def group_submissions(
    rows: Iterable[Tuple[date, Optional[uuid.UUID]]],
    team_names: Mapping[uuid.UUID, str],
) -> Dict[str, List[DateSubmission]]:
    """Count rows per date and team.

    Teams are listed in the order they are first seen for each date. Dates
    without rows do not appear.
    """
    by_date: "OrderedDict[str, OrderedDict[Optional[uuid.UUID], int]]" = OrderedDict()
    for day, team_id in rows:
        counts = by_date.setdefault(day.isoformat(), OrderedDict())
        counts[team_id] = counts.get(team_id, 0) + 1

    return {
        day: [
            DateSubmission(team_id=tid, team_name=team_label(tid, team_names), count=count)
            for tid, count in counts.items()
        ]
        for day, counts in by_date.items()
    }


def submission_summary(db: Session, start: date, end: date) -> Dict[str, List[DateSubmission]]:
    """Per-date, per-team record counts for ``[start, end]`` inclusive."""
    if start > end:
        raise ValidationError("start must not be after end")
    try:
        rows = (
            db.query(models.Attendance.date, models.Attendance.team_id)
            .filter(models.Attendance.date >= start, models.Attendance.date <= end)
            .order_by(models.Attendance.date, models.Attendance.seq)
            .all()
        )
        team_names = _team_names(db)
    except SQLAlchemyError:
        logger.exception("Loading submission summary failed. start=%s end=%s", start, end)
        return {}
    return group_submissions(rows, team_names)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

def player_stats(records: Sequence[AnalyticsRecord]) -> List[PlayerStats]:
    """Sum points and count records per player, highest total first.

    Equal totals keep the order in which players first appear.
    """
    by_player: "OrderedDict[uuid.UUID, PlayerStats]" = OrderedDict()
    for record in records:
        stats = by_player.get(record.player_id)
        if stats is None:
            stats = PlayerStats(
                player_id=record.player_id,
                first_name=record.first_name or "",
                last_name=record.last_name or "",
                team_name=record.team_name,
            )
            by_player[record.player_id] = stats
        stats.total_points += record.points
        stats.attendance_count += 1
    return sorted(by_player.values(), key=lambda s: s.total_points, reverse=True)


def team_stats(records: Sequence[AnalyticsRecord]) -> List[TeamStats]:
    """Sum points and count distinct players per team, highest total first.

    Records without a team fall into a single ``"no-team"`` bucket.
    """
    by_team: "OrderedDict[str, TeamStats]" = OrderedDict()
    members: Dict[str, set] = {}
    for record in records:
        if record.team_id is None:
            key, name = NO_TEAM_BUCKET_ID, NO_TEAM_BUCKET_NAME
        else:
            key, name = str(record.team_id), record.team_name or UNKNOWN_TEAM_LABEL
        stats = by_team.get(key)
        if stats is None:
            stats = TeamStats(team_id=key, team_name=name)
            by_team[key] = stats
            members[key] = set()
        stats.total_points += record.points
        members[key].add(record.player_id)

    for key, stats in by_team.items():
        stats.player_count = len(members[key])
    return sorted(by_team.values(), key=lambda s: s.total_points, reverse=True)


def analytics(
    db: Session,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    team_id: Optional[uuid.UUID] = None,
) -> Tuple[List[PlayerStats], List[TeamStats]]:
    """Player and team statistics over the records matching the filters.

    All bounds are inclusive and optional. A failed read yields empty lists.
    """
    query = (
        db.query(
            models.Attendance.player_id,
            models.Attendance.points,
            models.Attendance.team_id,
            models.Player.first_name,
            models.Player.last_name,
        )
        .outerjoin(models.Player, models.Player.id == models.Attendance.player_id)
    )
    if date_from is not None:
        query = query.filter(models.Attendance.date >= date_from)
    if date_to is not None:
        query = query.filter(models.Attendance.date <= date_to)
    if team_id is not None:
        query = query.filter(models.Attendance.team_id == team_id)
    query = query.order_by(models.Attendance.date, models.Attendance.seq)

    try:
        rows = query.all()
        team_names = _team_names(db)
    except SQLAlchemyError:
        logger.exception(
            "Loading analytics failed. from=%s to=%s team=%s", date_from, date_to, team_id
        )
        return [], []

    records = [
        AnalyticsRecord(
            player_id=row.player_id,
            points=row.points,
            first_name=row.first_name or "",
            last_name=row.last_name or "",
            team_id=row.team_id,
            team_name=team_names.get(row.team_id) if row.team_id is not None else None,
        )
        for row in rows
    ]
    return player_stats(records), team_stats(records)


# ---------------------------------------------------------------------------
# Player summary
# ---------------------------------------------------------------------------

def attendance_pct(attended: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half rounds up.
    return int(math.floor(attended * 100 / total + 0.5))


def summarize_window(
    rows: Iterable[Tuple[date, int]],
    today: date,
    last_attendance_date: Optional[date] = None,
    days: int = SUMMARY_WINDOW_DAYS,
) -> PlayerAttendanceSummary:
    start = today - timedelta(days=days)
    in_window = [points for day, points in rows if start <= day <= today]
    attended = sum(1 for points in in_window if points > 0)
    return PlayerAttendanceSummary(
        last_30_days_total_sessions=len(in_window),
        last_30_days_attended_sessions=attended,
        last_30_days_attendance_pct=attendance_pct(attended, len(in_window)),
        last_attendance_date=last_attendance_date,
    )


def player_attendance_summary(
    db: Session, player_id: uuid.UUID, now: Optional[datetime] = None
) -> PlayerAttendanceSummary:
    """Trailing 30-day snapshot plus the latest attendance date of all time."""
    today = (now or datetime.now()).date()
    start = today - timedelta(days=SUMMARY_WINDOW_DAYS)
    try:
        window = (
            db.query(models.Attendance.date, models.Attendance.points)
            .filter(
                models.Attendance.player_id == player_id,
                models.Attendance.date >= start,
                models.Attendance.date <= today,
            )
            .all()
        )
        latest = (
            db.query(models.Attendance.date)
            .filter(models.Attendance.player_id == player_id)
            .order_by(models.Attendance.date.desc())
            .limit(1)
            .first()
        )
    except SQLAlchemyError:
        logger.exception("Loading attendance summary failed. player=%s", player_id)
        return summarize_window([], today)
    return summarize_window(
        [(row.date, row.points) for row in window],
        today,
        last_attendance_date=latest.date if latest else None,
    )


# ---------------------------------------------------------------------------
# Recent list
# ---------------------------------------------------------------------------

@dataclass
class AttendanceFilter:
    q: str = ""
    team_id: Optional[uuid.UUID] = None
    day: Optional[date] = None


def filter_attendance(
    rows: Iterable[Mapping[str, Any]], flt: AttendanceFilter
) -> List[Mapping[str, Any]]:
    needle = flt.q.strip().lower()
    result = []
    for row in rows:
        if needle:
            name = f"{row.get('first_name') or ''} {row.get('last_name') or ''}".lower()
            if needle not in name:
                continue
        if flt.team_id is not None and row.get("team_id") != flt.team_id:
            continue
        if flt.day is not None and row.get("date") != flt.day:
            continue
        result.append(row)
    return result


def unique_dates(rows: Iterable[Mapping[str, Any]]) -> List[date]:
    return sorted({row["date"] for row in rows}, reverse=True)


def recent_attendance(db: Session, limit: int = RECENT_LIMIT) -> List[Dict[str, Any]]:
    """Latest records, newest date first, with player and team names."""
    team_names = _team_names(db)
    rows = (
        db.query(models.Attendance, models.Player.first_name, models.Player.last_name)
        .outerjoin(models.Player, models.Player.id == models.Attendance.player_id)
        .order_by(models.Attendance.date.desc(), models.Attendance.seq)
        .limit(limit)
        .all()
    )
    return [
        {
            "id": record.id,
            "date": record.date,
            "player_id": record.player_id,
            "team_id": record.team_id,
            "points": record.points,
            "updated_by_user_id": record.updated_by_user_id,
            "created_at": record.created_at,
            "first_name": first_name,
            "last_name": last_name,
            "team_name": team_label(record.team_id, team_names),
        }
        for record, first_name, last_name in rows
    ]
