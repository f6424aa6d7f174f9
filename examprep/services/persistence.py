"""
Unit of Work
Single-commit helper shared by the services
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from examprep.errors import PersistenceFailure
from examprep.extensions import db

logger = logging.getLogger(__name__)


def commit_unit(action):
    """
    Commit the pending session as one unit.

    On failure the whole unit is rolled back and reported as
    PersistenceFailure; callers never see a partially written batch.
    """
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to %s", action)
        raise PersistenceFailure(f"Failed to {action}")
