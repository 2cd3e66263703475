from sqlalchemy import BigInteger, Boolean, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# SQLite only aliases the rowid for a column declared exactly INTEGER.
NoteId = BigInteger().with_variant(Integer(), "sqlite")

# PUBLIC_INTERFACE
class User(Base):
    """
    SQLAlchemy model for a registered user of the notes service.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)

# PUBLIC_INTERFACE
class Note(Base):
    """
    SQLAlchemy model for a note.

    A null deleted_at means the note is live. user_id is not a foreign key:
    ownership is recorded, never checked against users.
    """
    __tablename__ = "notes"

    id = Column(NoteId, primary_key=True, autoincrement=False)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    is_hidden = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    user_id = Column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_notes_user_visible", "user_id", "deleted_at"),
    )
