"""Response envelope and pagination payloads shared by every blueprint."""
from __future__ import annotations

from typing import Any, Iterable, List, Optional

from flask import jsonify


def api_response(data: Any = None, message: str = "Success", status: int = 200):
    body = {"success": True, "message": message, "data": data, "errors": None}
    return jsonify(body), status


def api_error(message: str, errors: Optional[List[str]] = None, status: int = 400):
    body = {"success": False, "message": message, "data": None, "errors": errors or [message]}
    return jsonify(body), status


def paginated_payload(pagination, items: Iterable[dict]) -> dict:
    """Wrap a Flask-SQLAlchemy pagination object and its serialized rows.

    ``pages`` is ``ceil(total / per_page)``, so 23 rows at 10 per page report 3
    pages, with page 3 having a previous page and no next page.
    """
    return {
        "items": list(items),
        "pageNumber": pagination.page,
        "pageSize": pagination.per_page,
        "totalRecords": pagination.total,
        "totalPages": pagination.pages,
        "hasNextPage": pagination.has_next,
        "hasPreviousPage": pagination.has_prev,
    }
