# file: academy/services/store.py

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from academy.services.errors import StoreError

logger = logging.getLogger(__name__)


def commit(db: Session, action: str) -> None:
    """Commit the session, turning store failures into :class:`StoreError`.

    The session is rolled back before the error propagates, so no part of
    the failed unit of work stays visible.
    """
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Store rejected %s", action)
        raise StoreError(str(getattr(exc, "orig", None) or exc)) from exc
