"""Business logic services for the Open House backend."""

from openhouse.services.database import DatabaseManager, get_db_session

__all__ = [
    "DatabaseManager",
    "get_db_session",
]
