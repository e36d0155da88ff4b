"""
JSON envelope for successful responses.

    {"status": "success", "message"?: str, "data"?: ..., <pagination>?}
"""

from typing import Any, Optional

from app.services.mongo_service import serialize_doc, serialize_docs
from app.services.query_builder import pagination_meta


def _serialize(data: Any) -> Any:
    if isinstance(data, list):
        return serialize_docs(data)
    if isinstance(data, dict):
        return serialize_doc(data)
    return data


def success(data: Any = None, message: Optional[str] = None, **extra) -> dict:
    body = {"status": "success"}
    if message is not None:
        body["message"] = message
    body.update(extra)
    if data is not None:
        body["data"] = _serialize(data)
    return body


def paginated(docs: list, total: int, page: int, limit: int) -> dict:
    """List envelope with count/total/totalPages/currentPage/hasNextPage/hasPrevPage."""
    body = {"status": "success"}
    body.update(pagination_meta(total, page, limit, len(docs)))
    body["data"] = serialize_docs(docs)
    return body
