"""
MongoDB Service Helpers - shared by the collection services.

- ObjectId -> str conversion for JSON serialization
- UTC timestamps at MongoDB's millisecond precision
- explicit joined lookups (the "populate" step) across collections
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo.collection import Collection


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def _serialize_value(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document (including nested ids) to a JSON-serializable dict."""
    if doc is None:
        return None
    return _serialize_value(doc)


def serialize_docs(docs: Iterable[dict]) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


# ============================================================
# TIMESTAMPS
# ============================================================

def utcnow() -> datetime:
    """Naive UTC now, truncated to milliseconds like BSON dates."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored dates are naive UTC; convert aware datetimes before comparing."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def naive_utc_fields(doc: dict, *fields: str) -> dict:
    for name in fields:
        if isinstance(doc.get(name), datetime):
            doc[name] = to_naive_utc(doc[name])
    return doc


# ============================================================
# JOINED LOOKUPS
# ============================================================

def lookup_by_ids(collection: Collection, ids: Iterable[ObjectId],
                  projection: Optional[dict] = None) -> Dict[ObjectId, dict]:
    """Fetch documents for a set of ids in one query, keyed by _id."""
    unique_ids = list({i for i in ids if isinstance(i, ObjectId)})
    if not unique_ids:
        return {}
    cursor = collection.find({"_id": {"$in": unique_ids}}, projection)
    return {doc["_id"]: doc for doc in cursor}


def attach_reference(docs: List[dict], field: str, target: str,
                     collection: Collection, projection: Optional[dict] = None) -> List[dict]:
    """
    Resolve docs[i][field] (an ObjectId) into docs[i][target].

    Missing references resolve to None.
    """
    found = lookup_by_ids(collection, (doc.get(field) for doc in docs), projection)
    for doc in docs:
        doc[target] = found.get(doc.get(field))
    return docs
