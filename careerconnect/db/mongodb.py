"""
MongoDB Connection Utility

MongoDB is the only persistence layer:
- Users and role profiles (students, companies, institutions)
- Faculties, courses and admissions
- Jobs, job applications and course applications
- Notifications, admin activities, settings and backups

Uploaded files go to GridFS (bucket from settings) when Cloudinary
is not available.
"""
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from careerconnect.core.config import get_settings
from careerconnect.core.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, tz_aware=False)
    return _client


def use_mongo_client(client: MongoClient) -> None:
    """Swap the global client (tests hand in a mongomock client)."""
    global _client, _db
    _client = client
    _db = None


def get_mongo_db() -> Database:
    """Get the careerconnect database"""
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
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("mongodb_ping_failed", error=str(e))
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "students": "students",
    "companies": "companies",
    "institutions": "institutions",
    "faculties": "faculties",
    "courses": "courses",
    "admissions": "admissions",
    "applications": "applications",
    "jobs": "jobs",
    "job_applications": "job_applications",
    "documents": "documents",
    "notifications": "notifications",
    "activities": "activities",
    "system_settings": "system_settings",
    "backups": "backups",
}


# Composite indexes the services hint on. Queries fall back to an
# unsorted scan plus an in-process sort when one of these is missing.
INDEXES = {
    "jobs_by_company": ("jobs", [("company_id", ASCENDING), ("created_at", DESCENDING)]),
    "jobs_by_status": ("jobs", [("status", ASCENDING), ("created_at", DESCENDING)]),
    "job_applications_by_company": ("job_applications", [("company_id", ASCENDING), ("applied_at", DESCENDING)]),
    "job_applications_by_student": ("job_applications", [("student_id", ASCENDING), ("applied_at", DESCENDING)]),
    "applications_by_student": ("applications", [("student_id", ASCENDING), ("applied_at", DESCENDING)]),
    "applications_by_institution": ("applications", [("institution_id", ASCENDING), ("created_at", DESCENDING)]),
    "applications_by_institution_status": (
        "applications",
        [("institution_id", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)],
    ),
    "documents_by_student": ("documents", [("student_id", ASCENDING), ("uploaded_at", DESCENDING)]),
    "notifications_by_user": ("notifications", [("user_id", ASCENDING), ("created_at", DESCENDING)]),
    "notifications_by_user_type": (
        "notifications",
        [("user_id", ASCENDING), ("type", ASCENDING), ("created_at", DESCENDING)],
    ),
    "notifications_by_recipient": ("notifications", [("recipient", ASCENDING), ("created_at", DESCENDING)]),
    "activities_by_date": ("activities", [("created_at", DESCENDING)]),
}


def index_spec(name: str) -> list:
    """Key list for a named index, as passed to cursor.hint()."""
    return INDEXES[name][1]


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()

    db[COLLECTIONS["users"]].create_index("email", unique=True)
    db[COLLECTIONS["users"]].create_index("role")
    db[COLLECTIONS["companies"]].create_index("status")
    db[COLLECTIONS["courses"]].create_index([("institution_id", ASCENDING), ("faculty_id", ASCENDING)])

    for collection, keys in INDEXES.values():
        db[collection].create_index(keys)

    logger.info("mongodb_indexes_created", count=len(INDEXES) + 4)
