"""
Database module - SQL store and MongoDB connections.
"""
from career_connect.db.database import Base, get_db_session, init_db, test_database_connection
from career_connect.db.mongodb import get_mongo_db, test_mongo_connection

__all__ = [
    "Base",
    "get_db_session",
    "init_db",
    "test_database_connection",
    "get_mongo_db",
    "test_mongo_connection"
]
