"""
User Directory: create-or-fetch by username and lookup by id.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .db import release, serialized
from .errors import InfrastructureError, ValidationError
from .models import User
from .utils import coerce_id

logger = logging.getLogger(__name__)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def _fetch_existing(db: Session, username: str) -> User:
    db.rollback()
    try:
        existing = get_user_by_username(db, username)
        release(db)
    except SQLAlchemyError as exc:
        db.rollback()
        raise InfrastructureError(str(exc)) from exc
    if existing is None:
        raise InfrastructureError(f"User '{username}' collided on insert but could not be found.")
    logger.debug("Username %r already registered as user %s", username, existing.id)
    return existing


# PUBLIC_INTERFACE
@serialized
def register_or_fetch(db: Session, username: str) -> Tuple[User, bool]:
    """
    Registers username, or returns the user already holding it.

    Returns the user and whether it was created by this call. The insert is
    attempted first and the unique constraint decides; only that failure is
    turned into a lookup.
    """
    if not username:
        raise ValidationError("Username is required.")

    user = User(username=username)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        return _fetch_existing(db, username), False
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Failed to register user %r: %s", username, exc)
        raise InfrastructureError(str(exc)) from exc

    try:
        db.refresh(user)
        release(db)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Failed to load registered user %r: %s", username, exc)
        raise InfrastructureError(str(exc)) from exc
    logger.info("Registered user %s (%r)", user.id, username)
    return user, True


# PUBLIC_INTERFACE
@serialized
def fetch_by_id(db: Session, user_id) -> Optional[User]:
    """Returns the user with this id, or None. Malformed ids match nothing."""
    ident = coerce_id(user_id)
    if ident is None:
        return None
    try:
        user = db.query(User).filter(User.id == ident).first()
        release(db)
    except SQLAlchemyError as exc:
        db.rollback()
        raise InfrastructureError(str(exc)) from exc
    return user
