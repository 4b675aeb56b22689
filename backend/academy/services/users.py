# file: academy/services/users.py
"""Staff account helpers."""

from __future__ import annotations

import logging
import re
import secrets
import string
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from academy import models
from academy.services.errors import NotFound, StoreError, ValidationError

logger = logging.getLogger(__name__)

_CONTACT_NUMBER = re.compile(r"^\+?\d+$")


def clean_contact_number(value: Optional[str]) -> Optional[str]:
    """Return the trimmed number, ``None`` when blank.

    Raises:
        ValidationError: The number contains anything but digits and a
            leading ``+``.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not _CONTACT_NUMBER.match(value):
        raise ValidationError("Contact number can only contain digits.")
    return value


def generate_temporary_password(length: int = 12) -> str:
    alphabet = string.ascii_letters + string.digits
    # Suffix guarantees upper, digit and symbol classes.
    return "".join(secrets.choice(alphabet) for _ in range(length)) + "A1!"


def delete_user(db: Session, user_id: uuid.UUID, acting_admin: models.User) -> None:
    """Delete a staff account without orphaning references to it.

    Attendance rows last written by the user are reassigned to
    ``acting_admin`` and the user is removed from every team's main coach,
    coaches and volunteers before the row is deleted, all in one transaction.

    Raises:
        ValidationError: Attempt to delete one's own account.
        NotFound: No such user.
        StoreError: The store rejected one of the writes.
    """
    if user_id == acting_admin.id:
        raise ValidationError("You cannot delete your own account.")
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFound("User not found")

    try:
        reassigned = (
            db.query(models.Attendance)
            .filter(models.Attendance.updated_by_user_id == user_id)
            .update({models.Attendance.updated_by_user_id: acting_admin.id}, synchronize_session=False)
        )

        for team in db.query(models.Team).all():
            if team.main_coach_id == user_id:
                team.main_coach_id = None
            coach_ids = [cid for cid in team.coach_ids or [] if cid != str(user_id)]
            if coach_ids != (team.coach_ids or []):
                team.coach_ids = coach_ids
            volunteer_ids = [vid for vid in team.volunteer_ids or [] if vid != str(user_id)]
            if volunteer_ids != (team.volunteer_ids or []):
                team.volunteer_ids = volunteer_ids

        db.delete(user)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Deleting user failed. user=%s", user_id)
        raise StoreError(str(getattr(exc, "orig", None) or exc)) from exc

    logger.info(
        "User deleted. user=%s by=%s reassigned_attendance=%d", user_id, acting_admin.id, reassigned
    )
