"""Database module for the search index.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from videoindex.db.engine import create_db_engine, get_engine
from videoindex.db.models import Amendment, Base, Participant, SearchVideo
from videoindex.db.session import get_db, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "transaction",
    # Base
    "Base",
    # Enums
    "Amendment",
    "Participant",
    # Models
    "SearchVideo",
]
