"""
MongoDB Connection Utility

MongoDB stores:
- universities: catalog entries (soft deleted through isActive)
- applications: student submissions with status history and review notes
- users: staff accounts (admin, reviewer, admission_officer)

The client is created once when the app starts, kept on app.state and
closed on shutdown. Handlers receive the database through get_database().
"""
import logging

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from app.core.config import Settings

logger = logging.getLogger(__name__)


# Collection name constants (avoid typos)
COLLECTIONS = {
    "universities": "universities",
    "applications": "applications",
    "users": "users"
}


def create_mongo_client(settings: Settings) -> MongoClient:
    """Create a MongoClient (connection pooling handled internally by pymongo)"""
    return MongoClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
        socketTimeoutMS=settings.mongodb_socket_timeout_ms
    )


def get_database(request: Request) -> Database:
    """
    Dependency for FastAPI route injection.
    Usage:
        @router.get("/things")
        def list_things(db: Database = Depends(get_database)):
            ...
    """
    return request.app.state.mongo_db


def get_collection(db: Database, name: str) -> Collection:
    """Get a specific collection by its key in COLLECTIONS."""
    return db[COLLECTIONS[name]]


def test_mongo_connection(client: MongoClient) -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


def init_mongo_indexes(db: Database):
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    universities = db[COLLECTIONS["universities"]]
    universities.create_index([("country", ASCENDING), ("degreeLevel", ASCENDING)])
    universities.create_index("tuitionFee")
    universities.create_index("minGPA")
    universities.create_index("minIELTS")

    applications = db[COLLECTIONS["applications"]]
    applications.create_index("email")
    applications.create_index("universityId")
    applications.create_index("status")
    applications.create_index([("createdAt", DESCENDING)])
    applications.create_index("isEligible")

    # One account per email
    db[COLLECTIONS["users"]].create_index("email", unique=True)

    logger.info("MongoDB indexes created successfully")
