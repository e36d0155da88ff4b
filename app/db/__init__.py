"""
Database module - MongoDB connection.
"""
from app.db.mongodb import create_mongo_client, get_database, test_mongo_connection

__all__ = [
    "create_mongo_client",
    "get_database",
    "test_mongo_connection"
]
