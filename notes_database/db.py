import os
import threading
from functools import wraps

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///./notes.db"

# PUBLIC_INTERFACE
def get_database_url():
    """
    Retrieves the database URL from the environment variable DATABASE_URL.
    Falls back to a SQLite file in the working directory.
    """
    load_dotenv()
    return os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL

def engine_options(url):
    """Keyword arguments that give the engine exactly one shared connection."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"pool_size": 1, "max_overflow": 0}

DATABASE_URL = get_database_url()

engine = create_engine(DATABASE_URL, future=True, echo=False, **engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_storage_lock = threading.RLock()

# PUBLIC_INTERFACE
def storage_lock():
    """The process-wide lock guarding the shared connection."""
    return _storage_lock

# PUBLIC_INTERFACE
def serialized(func):
    """
    Runs the wrapped storage operation while holding the process-wide lock,
    so operations against the shared connection execute one at a time.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        with _storage_lock:
            return func(*args, **kwargs)
    return wrapper

def release(db):
    """
    Ends the session's transaction while keeping the rows it loaded usable.

    Sessions share one connection, so a transaction left open would be rolled
    back by whichever session closes next.
    """
    db.expunge_all()
    db.rollback()
