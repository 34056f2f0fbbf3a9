"""
Document helpers shared by every service.

- String ids (documents keyed by user id reuse the user's id)
- Timestamp normalisation for values written by different clients
- `_id` -> `id` serialisation for API responses
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from bson import ObjectId

EPOCH = datetime(1970, 1, 1)


def new_id() -> str:
    return str(ObjectId())


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what pymongo hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Normalise a stored timestamp to a naive UTC datetime.

    Accepts datetimes (aware or naive), ISO-8601 strings and epoch
    seconds. Anything else, including unparseable strings, gives None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_datetime(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def serialize_doc(doc: Optional[dict], date_fields: Iterable[str] = ()) -> Optional[dict]:
    """Convert a MongoDB document to an API dict (`_id` becomes `id`)."""
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    for field in date_fields:
        if field in doc:
            doc[field] = to_datetime(doc[field])
    return doc


def serialize_docs(docs: Iterable[dict], date_fields: Iterable[str] = ()) -> list:
    date_fields = tuple(date_fields)
    return [serialize_doc(doc, date_fields) for doc in docs]
