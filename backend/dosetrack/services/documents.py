"""
Encoding helpers between models and MongoDB documents.

Doses are stored as decimal strings so no binary float rounding touches
them; calendar dates are stored as ISO strings, which sort and compare
correctly as text.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from bson import ObjectId


def parse_object_id(value: str) -> Optional[ObjectId]:
    """ObjectId for a path/query id, or None if it is not a valid id."""
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def dose_to_db(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def date_to_db(value: Optional[date]) -> Optional[str]:
    return None if value is None else value.isoformat()


def from_db(doc: dict) -> dict:
    """Stringify the document id in place and return the document."""
    doc["_id"] = str(doc["_id"])
    return doc
