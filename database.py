"""
Database Helper Functions

MongoDB helper functions used by the catalog and credential modules.
Every pymongo failure is re-raised as StorageError.
"""

from pymongo import MongoClient, ASCENDING
from pymongo.errors import PyMongoError
from bson import ObjectId
from datetime import datetime, timezone
from typing import Union, Optional, Dict, Any, List
from pydantic import BaseModel
from loguru import logger

import config
from errors import StorageError

_client = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    _client = MongoClient(config.DATABASE_URL)
    db = _client[config.DATABASE_NAME]

# Creation order, with the id as tiebreak for rows sharing a timestamp
CREATION_ORDER = [("created_at", ASCENDING), ("_id", ASCENDING)]


def _ensure_db():
    if db is None:
        raise StorageError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def _key(_id: Any) -> Any:
    # Generated ids are ObjectIds; fixed-key rows keep their plain string id
    if isinstance(_id, str) and ObjectId.is_valid(_id):
        return ObjectId(_id)
    return _id


def _fail(action: str, collection_name: str, exc: Exception) -> StorageError:
    logger.error("Failed to {} in {}: {}", action, collection_name, exc)
    return StorageError(f"Failed to {action} in {collection_name}", detail=str(exc))


# CRUD helpers

def create_document(collection_name: str, data: Union[BaseModel, dict], _id: Optional[str] = None) -> dict:
    _ensure_db()
    payload = _to_dict(data)
    now = datetime.now(timezone.utc)
    payload['created_at'] = now
    payload['updated_at'] = now
    payload['_id'] = _id if _id is not None else ObjectId()
    try:
        db[collection_name].insert_one(payload)
    except PyMongoError as e:
        raise _fail("insert document", collection_name, e)
    return serialize_doc(payload)


def create_documents(collection_name: str, rows: List[Union[BaseModel, dict]]) -> List[dict]:
    _ensure_db()
    if not rows:
        return []
    now = datetime.now(timezone.utc)
    payloads = []
    for row in rows:
        payload = _to_dict(row)
        payload['created_at'] = now
        payload['updated_at'] = now
        payload['_id'] = ObjectId()
        payloads.append(payload)
    try:
        db[collection_name].insert_many(payloads, ordered=True)
    except PyMongoError as e:
        raise _fail("insert documents", collection_name, e)
    return [serialize_doc(p) for p in payloads]


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort: Optional[list] = None) -> List[dict]:
    _ensure_db()
    try:
        cursor = db[collection_name].find(filter_dict or {})
        cursor = cursor.sort(sort or CREATION_ORDER)
        if limit:
            cursor = cursor.limit(int(limit))
        return [serialize_doc(doc) for doc in cursor]
    except PyMongoError as e:
        raise _fail("read documents", collection_name, e)


def get_document_by_id(collection_name: str, _id: str) -> Optional[dict]:
    _ensure_db()
    try:
        doc = db[collection_name].find_one({"_id": _key(_id)})
    except PyMongoError as e:
        raise _fail("read document", collection_name, e)
    return serialize_doc(doc) if doc else None


def count_documents(collection_name: str, filter_dict: Optional[dict] = None) -> int:
    _ensure_db()
    try:
        return db[collection_name].count_documents(filter_dict or {})
    except PyMongoError as e:
        raise _fail("count documents", collection_name, e)


def update_document(collection_name: str, _id: str, update_data: Union[BaseModel, Dict[str, Any]]) -> Optional[dict]:
    """Apply a partial update and return the stored row, or None when no row matched."""
    _ensure_db()
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = datetime.now(timezone.utc)
    try:
        result = db[collection_name].update_one({"_id": _key(_id)}, update)
    except PyMongoError as e:
        raise _fail("update document", collection_name, e)
    if result.matched_count == 0:
        return None
    return get_document_by_id(collection_name, _id)


def delete_document(collection_name: str, _id: str) -> bool:
    _ensure_db()
    try:
        result = db[collection_name].delete_one({"_id": _key(_id)})
    except PyMongoError as e:
        raise _fail("delete document", collection_name, e)
    return result.deleted_count > 0


def delete_documents(collection_name: str, filter_dict: dict) -> int:
    _ensure_db()
    try:
        result = db[collection_name].delete_many(filter_dict)
    except PyMongoError as e:
        raise _fail("delete documents", collection_name, e)
    return result.deleted_count


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])  # convert ObjectId to string
    return d
