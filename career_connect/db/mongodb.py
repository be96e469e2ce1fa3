"""
MongoDB Connection Utility

MongoDB stores role-specific profile documents:
- student fields (school, major, skills, ...)
- job giver fields (company_name, industry, ...)
- mentor fields (expertise, hourly_rate, ...)

WHY MongoDB for these?
- Schema-flexible: each role carries different fields
- Document-oriented: a profile is self-contained
- Only read-side joins need it (company name on interview requests)
"""
import logging

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from career_connect.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=3000)
    return _client


def get_mongo_db() -> Database:
    """Get the profile documents database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.error("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "role_profiles": "role_profiles",
}


def init_mongo_indexes():
    """
    Create indexes for profile lookups.
    Call this once during app startup.
    """
    db = get_mongo_db()

    # One profile document per participant
    db[COLLECTIONS["role_profiles"]].create_index([("user_id", ASCENDING)], unique=True)
    db[COLLECTIONS["role_profiles"]].create_index("role")

    logger.info("MongoDB indexes created successfully")
