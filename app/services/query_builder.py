"""
Query/Filter Layer

Translates HTTP query parameters into MongoDB filter, sort and
pagination arguments, and builds the pagination metadata returned by
list endpoints. Values are only type-coerced: nonsensical ranges just
produce empty results.
"""

import math
import re
from datetime import datetime
from typing import List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING

from app.core.errors import ValidationFailed

MAX_PAGE_SIZE = 100

# Soft delete: every university read goes through this predicate
ACTIVE_FILTER = {"isActive": {"$ne": False}}

# Matches nothing; used when a filter id is not a valid ObjectId
_NO_MATCH_ID = ObjectId("000000000000000000000000")


def active_only(query: Optional[dict] = None) -> dict:
    """Combine a query with the soft-delete predicate."""
    combined = dict(query or {})
    combined.update(ACTIVE_FILTER)
    return combined


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Return an ObjectId, or None when the string is not a valid id."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def object_id_filter(value: str) -> ObjectId:
    """ObjectId for use inside a filter; invalid ids match no document."""
    return parse_object_id(value) or _NO_MATCH_ID


def normalize_page(page: Optional[int], limit: Optional[int], default_limit: int) -> Tuple[int, int]:
    page = page if page and page > 0 else 1
    if limit is None:
        limit = default_limit
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit


def skip_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def pagination_meta(total: int, page: int, limit: int, count: int) -> dict:
    """Metadata that list endpoints add next to `data`."""
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "count": count,
        "total": total,
        "totalPages": total_pages,
        "currentPage": page,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1
    }


def parse_sort(sort: Optional[str], order: Optional[str] = None,
               default: str = "name") -> List[Tuple[str, int]]:
    """
    Build a pymongo sort spec.

    Accepts either a field plus an explicit order ("name", "desc") or
    a single "-field" string meaning descending.
    """
    field = (sort or default).strip() or default
    direction = ASCENDING
    if field.startswith("-"):
        field = field[1:]
        direction = DESCENDING
    elif field.startswith("+"):
        field = field[1:]
    if order is not None and order.lower() == "desc":
        direction = DESCENDING
    sort_spec = [(field, direction)]
    # stable paging when many documents share the sort key
    if field != "_id":
        sort_spec.append(("_id", direction))
    return sort_spec


def _range(low: Optional[float], high: Optional[float]) -> dict:
    condition = {}
    if low is not None:
        condition["$gte"] = low
    if high is not None:
        condition["$lte"] = high
    return condition


def build_university_query(
    country: Optional[str] = None,
    degree: Optional[str] = None,
    min_fee: Optional[float] = 0,
    max_fee: Optional[float] = 50000,
    min_gpa: Optional[float] = None,
    max_gpa: Optional[float] = 4.0,
    min_ielts: Optional[float] = None,
    max_ielts: Optional[float] = 9,
    search: Optional[str] = None,
) -> dict:
    """
    Filter for GET /universities.

    GPA and IELTS ranges apply to the university's own minimums.
    The soft-delete predicate is always included.
    """
    query = {}

    fee_range = _range(min_fee, max_fee)
    if fee_range:
        query["tuitionFee"] = fee_range

    if country and country != "All":
        query["country"] = country
    if degree and degree != "All":
        query["degreeLevel"] = degree

    gpa_range = _range(min_gpa, max_gpa)
    if gpa_range:
        query["minGPA"] = gpa_range
    ielts_range = _range(min_ielts, max_ielts)
    if ielts_range:
        query["minIELTS"] = ielts_range

    if search and search.strip():
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        query["$or"] = [
            {"name": pattern},
            {"description": pattern},
            {"programs": pattern}
        ]

    return active_only(query)


def build_application_query(
    status: Optional[str] = None,
    university_id: Optional[str] = None,
    email: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> dict:
    """Filter for GET /applications."""
    query = {}

    if status and status != "All":
        query["status"] = status
    if university_id:
        query["universityId"] = object_id_filter(university_id)
    if email:
        query["email"] = email.strip().lower()

    created = _range(start_date, end_date)
    if created:
        query["createdAt"] = created

    return query


def require_object_id(value: str, label: str = "id") -> ObjectId:
    """ObjectId for a path parameter; malformed ids are a validation error."""
    oid = parse_object_id(value)
    if oid is None:
        raise ValidationFailed(f"Invalid {label}", errors=[f"{label}: '{value}' is not a valid id"])
    return oid
