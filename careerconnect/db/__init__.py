"""
Database module - MongoDB connection, query helpers and live snapshots.
"""
from careerconnect.db.mongodb import get_mongo_db, test_mongo_connection

__all__ = [
    "get_mongo_db",
    "test_mongo_connection"
]
