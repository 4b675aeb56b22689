# file: academy/services/players.py
"""Player directory helpers: list filtering, validation and field visibility.

Filtering works on explicit :class:`PlayerFilter` state so the same rules
apply whether the filter came from query parameters or anywhere else.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from academy import models
from academy.services.errors import ValidationError

NO_TEAM_FILTER = "none"

SENSITIVE_FIELDS: Tuple[str, ...] = (
    "guardian_name",
    "guardian_relationship",
    "guardian_phone",
    "guardian_email",
    "emergency_contact_name",
    "emergency_contact_relationship",
    "emergency_contact_phone",
    "medical_notes",
    "injury_status",
    "medication_notes",
    "photo_consent",
    "medical_consent",
    "transport_consent",
)

PUBLIC_FIELDS: Tuple[str, ...] = (
    "id",
    "first_name",
    "last_name",
    "preferred_name",
    "dob",
    "positions",
    "team_id",
    "profile_image_url",
    "contact_number",
    "dominant_foot",
    "jersey_number",
    "strengths",
    "development_focus",
    "coach_summary",
    "notes",
    "created_at",
    "updated_at",
)

PHONE_FIELDS = ("contact_number", "guardian_phone", "emergency_contact_phone")


def _split(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(part for part in (p.strip() for p in value.split(",")) if part)


@dataclass(frozen=True)
class PlayerFilter:
    q: str = ""
    teams: Tuple[str, ...] = ()
    positions: Tuple[str, ...] = ()

    @classmethod
    def from_query(
        cls, q: Optional[str] = None, team: Optional[str] = None, position: Optional[str] = None
    ) -> "PlayerFilter":
        """Build a filter from comma-separated query parameter values."""
        return cls(q=(q or "").strip(), teams=_split(team), positions=_split(position))



def matches(player: Any, flt: PlayerFilter) -> bool:
    if flt.q:
        name = f"{player.first_name} {player.last_name}".lower()
        if flt.q.lower() not in name:
            return False
    if flt.teams:
        team_id = str(player.team_id) if player.team_id else None
        if team_id is None:
            if NO_TEAM_FILTER not in flt.teams:
                return False
        elif team_id not in flt.teams:
            return False
    if flt.positions:
        if not any(pos in flt.positions for pos in (player.positions or [])):
            return False
    return True


def filter_players(players: Iterable[Any], flt: PlayerFilter) -> List[Any]:
    return [p for p in players if matches(p, flt)]


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """Keep digits only, preserving a leading ``+``. Blank input becomes ``None``."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    digits = re.sub(r"\D", "", value)
    if not digits:
        return None
    return f"+{digits}" if value.startswith("+") else digits


def age_on(dob: date, today: date) -> int:
    years = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        years -= 1
    return years


def player_to_dict(
    player: models.Player, can_view_sensitive: bool, team_name: Optional[str] = None
) -> Dict[str, Any]:
    """Serialize a player, blanking sensitive fields for view-only roles."""
    data = {name: getattr(player, name) for name in PUBLIC_FIELDS}
    data["positions"] = list(player.positions or [])
    data["team_name"] = team_name if team_name is not None else (
        player.team.name if player.team else None
    )
    for name in SENSITIVE_FIELDS:
        data[name] = getattr(player, name) if can_view_sensitive else None
    data["sensitive_redacted"] = not can_view_sensitive
    return data


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def clean_player_payload(
    db: Session, payload: Dict[str, Any], creating: bool
) -> Dict[str, Any]:
    """Validate and normalize a player create/update payload.

    Raises:
        ValidationError: With every failing field listed in the message.
    """
    errors: Dict[str, str] = {}
    data = dict(payload)

    for name, value in list(data.items()):
        if isinstance(value, str):
            data[name] = _clean_text(value)
    for name in PHONE_FIELDS:
        data[name] = normalize_phone(data.get(name))

    if not data.get("first_name"):
        errors["first_name"] = "First name is required"
    if not data.get("last_name"):
        errors["last_name"] = "Last name is required"
    if not data.get("dob"):
        errors["dob"] = "Date of birth is required"
    if creating:
        if not data.get("guardian_name"):
            errors["guardian_name"] = "Guardian name is required"
        if not data.get("guardian_phone"):
            errors["guardian_phone"] = "Guardian phone is required"

    team_id = data.get("team_id")
    if team_id is not None and db.get(models.Team, team_id) is None:
        errors["team_id"] = "Team not found"

    known_positions = {name for (name,) in db.query(models.Position.name).all()}
    positions = list(dict.fromkeys(data.get("positions") or []))
    if known_positions:
        unknown = [p for p in positions if p not in known_positions]
        if unknown:
            errors["positions"] = f"Unknown positions: {', '.join(unknown)}"
        elif not positions:
            errors["positions"] = "At least one position is required"
    data["positions"] = positions

    if errors:
        raise ValidationError("; ".join(f"{k}: {v}" for k, v in errors.items()))
    return data


def players_for_listing(db: Session) -> Sequence[models.Player]:
    return db.query(models.Player).order_by(models.Player.created_at.desc()).all()
