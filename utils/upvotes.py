"""Upvote ledger: one row per (grievance, user), mirrored by ``Grievance.upvotes``.

A toggle writes the ledger row and the counter in one transaction, and the
counter moves by a SQL-side increment so concurrent toggles by different
users serialize on the grievance row. The unique constraint on
(grievance_id, user_id) catches a concurrent double toggle by the same user;
the losing transaction rolls back and re-reads the ledger.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Set, Tuple

from flask import current_app
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Grievance, GrievanceUpvote
from utils.errors import NotFoundError, StateConflictError


def has_upvoted(grievance_id: str, user_id: str) -> bool:
    return (
        db.session.query(GrievanceUpvote.id)
        .filter_by(grievance_id=str(grievance_id), user_id=str(user_id))
        .first()
        is not None
    )


def upvoted_ids(grievance_ids: Iterable[str], user_id: str) -> Set[str]:
    """Which of ``grievance_ids`` the user currently upvotes, in one query."""
    ids = [str(gid) for gid in grievance_ids]
    if not ids:
        return set()
    rows = (
        db.session.query(GrievanceUpvote.grievance_id)
        .filter(GrievanceUpvote.user_id == str(user_id), GrievanceUpvote.grievance_id.in_(ids))
        .all()
    )
    return {row[0] for row in rows}


def _apply_toggle(grievance_id: str, user_id: str) -> bool:
    """Flip the ledger row and counter inside the current transaction; return the new state."""
    removed = db.session.execute(
        delete(GrievanceUpvote).where(
            GrievanceUpvote.grievance_id == grievance_id,
            GrievanceUpvote.user_id == user_id,
        )
    ).rowcount
    if removed:
        delta, upvoted = -1, False
    else:
        db.session.add(GrievanceUpvote(grievance_id=grievance_id, user_id=user_id))
        db.session.flush()
        delta, upvoted = 1, True

    db.session.execute(
        update(Grievance)
        .where(Grievance.id == grievance_id)
        .values(upvotes=Grievance.upvotes + delta, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return upvoted


def toggle_upvote(grievance_id: str, user_id: str) -> Tuple[Grievance, bool]:
    """Add the user's upvote if absent, remove it if present.

    Returns the refreshed grievance and whether the user now upvotes it.
    """
    grievance_id, user_id = str(grievance_id), str(user_id)
    if db.session.get(Grievance, grievance_id) is None:
        raise NotFoundError("Grievance not found.")

    max_attempts = max(1, int(current_app.config.get("UPVOTE_MAX_ATTEMPTS", 3)))
    for attempt in range(1, max_attempts + 1):
        try:
            upvoted = _apply_toggle(grievance_id, user_id)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.warning(
                "Concurrent upvote toggle detected; retrying",
                extra={"grievance_id": grievance_id, "user_id": user_id, "attempt": attempt},
            )
            continue

        grievance = db.session.get(Grievance, grievance_id, populate_existing=True)
        if grievance is None:
            raise NotFoundError("Grievance not found.")
        current_app.logger.info(
            "Upvote toggled",
            extra={"grievance_id": grievance_id, "user_id": user_id, "upvoted": upvoted, "upvotes": grievance.upvotes},
        )
        return grievance, upvoted

    raise StateConflictError("Upvote could not be recorded due to concurrent updates. Please retry.")
