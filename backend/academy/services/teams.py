# file: academy/services/teams.py
"""Team staffing helpers.

Support-team ids are stored as strings in JSON columns so they round-trip
the same way on every backend.
"""

from __future__ import annotations

import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from academy import models
from academy.services.errors import ValidationError

COACH_ROLES = ("coach", "admin")
VOLUNTEER_ROLES = ("volunteer",)


def clean_staff(
    db: Session,
    name: Optional[str],
    main_coach_id: Optional[uuid.UUID],
    coach_ids: Iterable[uuid.UUID],
    volunteer_ids: Iterable[uuid.UUID],
) -> Tuple[str, uuid.UUID, List[str], List[str]]:
    """Validate a team's name and staff assignments.

    Coaches are kept only if they hold a coach or admin role and are not the
    main coach; volunteers only if they hold the volunteer role. Unknown ids
    are dropped.

    Raises:
        ValidationError: Blank name, missing main coach, or a main coach who
            is not a coach or admin.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Team name is required.")
    if main_coach_id is None:
        raise ValidationError("Main coach is required.")

    roles: Dict[uuid.UUID, str] = {u.id: u.role for u in db.query(models.User.id, models.User.role).all()}
    if roles.get(main_coach_id) not in COACH_ROLES:
        raise ValidationError("Main coach must be a coach or admin.")

    coaches = [
        str(cid) for cid in dict.fromkeys(coach_ids)
        if cid != main_coach_id and roles.get(cid) in COACH_ROLES
    ]
    volunteers = [
        str(vid) for vid in dict.fromkeys(volunteer_ids)
        if roles.get(vid) in VOLUNTEER_ROLES
    ]
    return name, main_coach_id, coaches, volunteers


def player_counts(db: Session) -> Dict[uuid.UUID, int]:
    counts: Dict[uuid.UUID, int] = {}
    for (team_id,) in db.query(models.Player.team_id).filter(models.Player.team_id.isnot(None)).all():
        counts[team_id] = counts.get(team_id, 0) + 1
    return counts


def staff_members(db: Session, ids: Iterable[str]) -> List[models.User]:
    """Users for the given string ids, in the given order, skipping missing ones."""
    wanted = []
    for value in ids:
        try:
            wanted.append(uuid.UUID(str(value)))
        except ValueError:
            continue
    if not wanted:
        return []
    found = {u.id: u for u in db.query(models.User).filter(models.User.id.in_(wanted)).all()}
    return [found[i] for i in wanted if i in found]
