"""
Database initialization script.

Run `python -m notes_database.init_db` to create the users and notes tables.
The API also calls init_db() on startup.
"""
import logging

from .db import engine
from .models import Base

logger = logging.getLogger(__name__)

# PUBLIC_INTERFACE
def init_db():
    """Creates all tables if they do not exist."""
    Base.metadata.create_all(bind=engine)
    logger.debug("Database tables ensured")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    logger.info("Database tables created successfully.")
