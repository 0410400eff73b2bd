"""Grievance lifecycle: filing, owner edits, deletion, official status transitions, and reads."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from flask import current_app
from sqlalchemy import delete, func, or_, update

from extensions import db
from models import (
    DEFAULT_PRIORITY,
    DEPARTMENTS,
    GRIEVANCE_STATUSES,
    STATUS_PENDING,
    STATUS_SOLVED,
    Grievance,
    GrievanceUpvote,
    is_valid_department,
    is_valid_status,
)
from utils.authorization import (
    DENIAL_MESSAGES,
    REASON_ALREADY_SOLVED,
    REASON_NOT_PENDING,
    Operation,
    enforce,
)
from utils.errors import InputValidationError, NotFoundError, StateConflictError
from utils.responses import paginated_payload
from utils.upvotes import has_upvoted, upvoted_ids

SORT_RECENT = "recent"
SORT_UPVOTES = "upvotes"
SORT_OLDEST = "oldest"
SORT_OPTIONS: tuple[str, ...] = (SORT_RECENT, SORT_UPVOTES, SORT_OLDEST)


def _department_error() -> InputValidationError:
    return InputValidationError(f"Invalid department. Valid departments: {', '.join(DEPARTMENTS)}")


def _status_error() -> InputValidationError:
    return InputValidationError(f"Invalid status. Valid statuses: {', '.join(GRIEVANCE_STATUSES)}")


def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


def _grievance_or_404(grievance_id: str) -> Grievance:
    grievance = db.session.get(Grievance, str(grievance_id))
    if grievance is None:
        raise NotFoundError("Grievance not found.")
    return grievance


def serialize(grievance: Grievance, viewer_id: str) -> dict:
    return grievance.to_payload(has_upvoted=has_upvoted(grievance.id, viewer_id))


def _page(query, viewer_id: str, page: int, page_size: int) -> dict:
    max_page_size = int(current_app.config.get("MAX_PAGE_SIZE", 100))
    pagination = query.paginate(page=page, per_page=page_size, max_per_page=max_page_size, error_out=False)
    upvoted = upvoted_ids([g.id for g in pagination.items], viewer_id)
    return paginated_payload(pagination, (g.to_payload(has_upvoted=g.id in upvoted) for g in pagination.items))


def create_grievance(actor, data: Dict) -> Grievance:
    enforce(actor, Operation.CREATE)
    department = _clean(data.get("department"))
    if not is_valid_department(department):
        raise _department_error()

    grievance = Grievance(
        user_id=actor.id,
        name=_clean(data.get("name")),
        street=_clean(data.get("street")),
        locality=_clean(data.get("locality")),
        city=_clean(data.get("city")),
        state=_clean(data.get("state")),
        department=department,
        description=_clean(data.get("description")),
        phone_number=_clean(data.get("phone_number")),
        image_url=_clean(data.get("image_url")),
        image_public_id=_clean(data.get("image_public_id")),
        status=STATUS_PENDING,
        priority=DEFAULT_PRIORITY,
        upvotes=0,
    )
    db.session.add(grievance)
    db.session.commit()
    current_app.logger.info(
        "Grievance filed",
        extra={"grievance_id": grievance.id, "user_id": actor.id, "department": department},
    )
    return grievance


def get_grievance(grievance_id: str, actor) -> Grievance:
    enforce(actor, Operation.READ)
    return _grievance_or_404(grievance_id)


def list_grievances(
    actor,
    page: int = 1,
    page_size: int = 10,
    department: Optional[str] = None,
    status: Optional[str] = None,
    locality: Optional[str] = None,
    sort_by: str = SORT_RECENT,
) -> dict:
    enforce(actor, Operation.READ)
    query = Grievance.query
    if department and department.strip():
        query = query.filter(func.lower(Grievance.department) == department.strip().lower())
    if status and status.strip():
        query = query.filter(func.lower(Grievance.status) == status.strip().lower())
    if locality and locality.strip():
        query = query.filter(Grievance.locality.icontains(locality.strip(), autoescape=True))

    sort_key = (sort_by or SORT_RECENT).strip().lower()
    if sort_key not in SORT_OPTIONS:
        sort_key = SORT_RECENT
    if sort_key == SORT_UPVOTES:
        query = query.order_by(Grievance.upvotes.desc(), Grievance.created_at.desc(), Grievance.id)
    elif sort_key == SORT_OLDEST:
        query = query.order_by(Grievance.created_at.asc(), Grievance.id)
    else:
        query = query.order_by(Grievance.created_at.desc(), Grievance.id)
    return _page(query, actor.id, page, page_size)


def list_my_grievances(actor, page: int = 1, page_size: int = 10) -> dict:
    enforce(actor, Operation.READ)
    query = Grievance.query.filter_by(user_id=actor.id).order_by(Grievance.created_at.desc(), Grievance.id)
    return _page(query, actor.id, page, page_size)


def search_grievances(actor, search_query: Optional[str], page: int = 1, page_size: int = 10) -> dict:
    enforce(actor, Operation.SEARCH)
    term = (search_query or "").strip()
    if not term:
        return list_grievances(actor, page=page, page_size=page_size)
    query = Grievance.query.filter(
        or_(
            Grievance.description.icontains(term, autoescape=True),
            Grievance.locality.icontains(term, autoescape=True),
            Grievance.department.icontains(term, autoescape=True),
        )
    ).order_by(Grievance.created_at.desc(), Grievance.id)
    return _page(query, actor.id, page, page_size)


def list_by_department(actor, department: str, page: int = 1, page_size: int = 10) -> dict:
    if not is_valid_department(department):
        raise _department_error()
    return list_grievances(actor, page=page, page_size=page_size, department=department)


def list_by_status(actor, status: str, page: int = 1, page_size: int = 10) -> dict:
    if not is_valid_status(status):
        raise _status_error()
    return list_grievances(actor, page=page, page_size=page_size, status=status)


def list_solved(actor, page: int = 1, page_size: int = 10) -> dict:
    return list_grievances(actor, page=page, page_size=page_size, status=STATUS_SOLVED)


def update_grievance(grievance_id: str, actor, data: Dict) -> Grievance:
    """Owner-only partial update; blank or absent fields are left untouched."""
    grievance = _grievance_or_404(grievance_id)
    enforce(actor, Operation.EDIT, owner_id=grievance.user_id, status=grievance.status)

    department = _clean(data.get("department"))
    if department and not is_valid_department(department):
        raise _department_error()

    values = {}
    for field in grievance.editable_fields:
        value = _clean(data.get(field))
        if value:
            values[field] = value
    applied = sorted(values)
    values["updated_at"] = datetime.utcnow()

    # Guarded on status so a resolution committed after the check above still wins.
    result = db.session.execute(
        update(Grievance)
        .where(Grievance.id == grievance.id, Grievance.status != STATUS_SOLVED)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise StateConflictError(DENIAL_MESSAGES[(Operation.EDIT, REASON_ALREADY_SOLVED)])
    db.session.commit()

    grievance = db.session.get(Grievance, grievance.id, populate_existing=True)
    current_app.logger.info(
        "Grievance updated",
        extra={"grievance_id": grievance.id, "user_id": actor.id, "fields": applied},
    )
    return grievance


def delete_grievance(grievance_id: str, actor) -> None:
    grievance = _grievance_or_404(grievance_id)
    enforce(actor, Operation.DELETE, owner_id=grievance.user_id, status=grievance.status)

    result = db.session.execute(
        delete(Grievance)
        .where(Grievance.id == grievance.id, Grievance.status == STATUS_PENDING)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise StateConflictError(DENIAL_MESSAGES[(Operation.DELETE, REASON_NOT_PENDING)])
    # SQLite leaves the FK cascade unenforced.
    db.session.execute(delete(GrievanceUpvote).where(GrievanceUpvote.grievance_id == grievance.id))
    db.session.expunge(grievance)
    db.session.commit()
    current_app.logger.info("Grievance deleted", extra={"grievance_id": grievance_id, "user_id": actor.id})


def change_status(
    grievance_id: str,
    actor,
    new_status: str,
    solved_image_url: Optional[str] = None,
    solved_image_public_id: Optional[str] = None,
) -> Grievance:
    """Move a grievance strictly forward through pending -> in-process -> solved.

    The write is a conditional UPDATE on the status that was read, so a
    concurrent transition by another official turns this one into a conflict
    instead of silently overwriting it.
    """
    enforce(actor, Operation.CHANGE_STATUS)
    new_status = _clean(new_status).lower()
    if not is_valid_status(new_status):
        raise _status_error()

    grievance = _grievance_or_404(grievance_id)
    current_status = grievance.status
    if current_status == STATUS_SOLVED:
        raise StateConflictError("Cannot change status of a solved grievance.")
    if GRIEVANCE_STATUSES.index(new_status) <= GRIEVANCE_STATUSES.index(current_status):
        raise StateConflictError(f"Cannot change status from '{current_status}' to '{new_status}'.")

    now = datetime.utcnow()
    values = {"status": new_status, "updated_at": now}
    if new_status == STATUS_SOLVED:
        values["solved_on"] = now
        image_url = _clean(solved_image_url)
        if image_url:
            values["solved_image_url"] = image_url
            values["solved_image_public_id"] = _clean(solved_image_public_id) or None

    result = db.session.execute(
        update(Grievance)
        .where(Grievance.id == grievance.id, Grievance.status == current_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise StateConflictError("Grievance status was changed concurrently. Please reload and retry.")
    db.session.commit()

    grievance = db.session.get(Grievance, grievance.id, populate_existing=True)
    current_app.logger.info(
        "Grievance status changed",
        extra={
            "grievance_id": grievance.id,
            "user_id": actor.id,
            "from_status": current_status,
            "to_status": new_status,
        },
    )
    return grievance
