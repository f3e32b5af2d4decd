"""
MongoDB handle for StartupVault.

`db` is None when no DATABASE_URL is configured; request handlers reach the
database through `get_db` so tests can swap in another handle.
"""

import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient

from config import settings
from errors import InternalFault

logger = logging.getLogger(__name__)

client = None
db = None

if settings.DATABASE_URL:
    client = MongoClient(settings.DATABASE_URL)
    db = client[settings.DATABASE_NAME]


def get_db():
    if db is None:
        raise InternalFault("Database not configured")
    return db


def ensure_indexes(database) -> None:
    users = database["user"]
    deals = database["deal"]
    claims = database["claim"]

    users.create_index("email", unique=True)
    users.create_index("verification_token")

    deals.create_index([("category", ASCENDING), ("created_at", DESCENDING)])
    deals.create_index([("access_level", ASCENDING), ("expires_at", ASCENDING)])

    # One claim per user per deal, enforced by storage
    claims.create_index([("user_id", ASCENDING), ("deal_id", ASCENDING)], unique=True)
    claims.create_index("code", unique=True)
    claims.create_index([("user_id", ASCENDING), ("status", ASCENDING)])
    claims.create_index([("deal_id", ASCENDING), ("status", ASCENDING)])
    logger.info("Indexes ensured on %s", database.name)


def object_id(value):
    """Parse a string id, returning None when it is not a valid ObjectId."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
