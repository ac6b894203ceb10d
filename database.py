"""
Database access for the NourishNet API.

With DATABASE_URL set the app talks to a real MongoDB through pymongo.
Without it everything lives in an in-process mongomock client, so state
resets whenever the process restarts.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Optional, Union

import mongomock
from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "nourishnet")

COLLECTIONS = [
    "user",
    "fooditem",
    "claim",
    "conversation",
    "chatmessage",
    "chatrequest",
    "communitypost",
    "report",
]


def _connect():
    if DATABASE_URL:
        logger.info("Connecting to MongoDB database %s", DATABASE_NAME)
        client = MongoClient(DATABASE_URL, tz_aware=True)
    else:
        logger.info("DATABASE_URL not set, using in-memory store")
        client = mongomock.MongoClient(tz_aware=True)
    return client, client[DATABASE_NAME]


client, db = _connect()


def ensure_indexes():
    # a claim owns at most one conversation; direct chats carry no claim_id
    db["conversation"].create_index([("claim_id", ASCENDING)], unique=True, sparse=True)
    db["claim"].create_index([("food_item_id", ASCENDING), ("status", ASCENDING)])
    db["claim"].create_index([("delivery_partner_id", ASCENDING)])
    db["fooditem"].create_index([("status", ASCENDING), ("posted_at", DESCENDING)])
    db["chatmessage"].create_index([("conversation_id", ASCENDING), ("timestamp", ASCENDING)])


def reset_database():
    """Drop every collection and rebuild the indexes. Used by tests and /seed."""
    for name in COLLECTIONS:
        db.drop_collection(name)
    ensure_indexes()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_object_id(value) -> Optional[ObjectId]:
    """Coerce a string id; invalid ids give None so lookups just miss."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def find_by_id(collection_name: str, id_value) -> Optional[dict]:
    oid = to_object_id(id_value)
    if oid is None:
        return None
    return db[collection_name].find_one({"_id": oid})


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document, stamping created_at/updated_at. Returns the new id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(exclude_none=True)
    else:
        data_dict = {k: v for k, v in data.items() if v is not None}
    now = utcnow()
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort=None):
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


ensure_indexes()
