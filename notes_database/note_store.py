"""
Note Store: notes scoped to their owning user.

Ownership and liveness are checked inside the same UPDATE that mutates the
row, so there is no separate existence lookup to race against. A user_id of
None stands for a caller whose id could not be read; it owns no notes.
"""
import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import release, serialized
from .errors import InfrastructureError, NotFoundOrForbidden, ValidationError
from .models import Note
from .utils import coerce_id, next_note_id, to_storage_time, utcnow

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("title", "content", "is_hidden")


def _storage_failure(db: Session, action: str, exc: SQLAlchemyError) -> InfrastructureError:
    db.rollback()
    logger.warning("Failed to %s: %s", action, exc)
    return InfrastructureError(str(exc))


# PUBLIC_INTERFACE
@serialized
def list_visible(db: Session, user_id: Optional[int]) -> List[Note]:
    """All live notes owned by user_id, in id order."""
    if user_id is None:
        return []
    try:
        notes = (
            db.query(Note)
            .filter(Note.user_id == user_id, Note.deleted_at.is_(None))
            .order_by(Note.id.asc())
            .all()
        )
        release(db)
    except SQLAlchemyError as exc:
        raise _storage_failure(db, f"list notes for user {user_id}", exc) from exc
    return notes


# PUBLIC_INTERFACE
@serialized
def create(
    db: Session,
    user_id: Optional[int],
    title: Optional[str],
    content: Optional[str],
    id: Optional[int] = None,
    is_hidden: Optional[bool] = None,
    created_at: Optional[datetime] = None,
) -> Note:
    """
    Inserts a note owned by user_id and returns it with defaults applied.

    id defaults to next_note_id(), is_hidden to False and created_at to now.
    updated_at always starts equal to created_at. A duplicate id is reported
    as an InfrastructureError like any other insert failure.
    """
    if not title or not content:
        raise ValidationError("Title and content are required.")

    created = to_storage_time(created_at) if created_at is not None else utcnow()
    note = Note(
        id=id if id is not None else next_note_id(),
        title=title,
        content=content,
        is_hidden=bool(is_hidden) if is_hidden is not None else False,
        created_at=created,
        updated_at=created,
        user_id=user_id,
    )
    db.add(note)
    try:
        db.commit()
        db.refresh(note)
        release(db)
    except SQLAlchemyError as exc:
        raise _storage_failure(db, f"create note {note.id} for user {user_id}", exc) from exc
    logger.info("Created note %s for user %s", note.id, user_id)
    return note


# PUBLIC_INTERFACE
@serialized
def update(db: Session, user_id: Optional[int], note_id, patch: Mapping[str, Any]) -> None:
    """
    Applies the supplied subset of title, content and is_hidden to a live
    note owned by user_id, and stamps updated_at.

    Raises ValidationError when the patch names none of those fields, and
    NotFoundOrForbidden when no live note with that id belongs to user_id.
    """
    values = {field: patch[field] for field in PATCHABLE_FIELDS if field in patch}
    if not values:
        raise ValidationError("At least one field (title, content, is_hidden) must be provided.")

    ident = coerce_id(note_id)
    if ident is None or user_id is None:
        raise NotFoundOrForbidden("Note not found or you do not have permission to edit it.")

    values["updated_at"] = utcnow()
    try:
        changed = (
            db.query(Note)
            .filter(Note.id == ident, Note.user_id == user_id, Note.deleted_at.is_(None))
            .update(values, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(db, f"update note {ident} for user {user_id}", exc) from exc

    if changed == 0:
        raise NotFoundOrForbidden("Note not found or you do not have permission to edit it.")
    logger.info("Updated note %s for user %s (%s)", ident, user_id, ", ".join(sorted(values)))


# PUBLIC_INTERFACE
@serialized
def soft_delete(db: Session, user_id: Optional[int], note_id) -> None:
    """
    Stamps deleted_at on a note owned by user_id.

    Already-deleted notes are matched too: deleting again refreshes the stamp
    and succeeds.
    """
    ident = coerce_id(note_id)
    if ident is None or user_id is None:
        raise NotFoundOrForbidden("Note not found or you do not have permission to delete it.")

    try:
        changed = (
            db.query(Note)
            .filter(Note.id == ident, Note.user_id == user_id)
            .update({"deleted_at": utcnow()}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(db, f"delete note {ident} for user {user_id}", exc) from exc

    if changed == 0:
        raise NotFoundOrForbidden("Note not found or you do not have permission to delete it.")
    logger.info("Soft-deleted note %s for user %s", ident, user_id)
