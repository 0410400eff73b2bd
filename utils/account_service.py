"""Profile maintenance and soft deactivation of accounts."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import current_app

from extensions import db
from models import User
from utils.errors import NotFoundError, StateConflictError


def _user_or_404(user_id: str) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def get_profile(user_id: str) -> User:
    return _user_or_404(user_id)


def update_profile(
    user_id: str,
    name: Optional[str] = None,
    phone_number: Optional[str] = None,
    address: Optional[str] = None,
) -> User:
    """Apply only the non-blank fields; email and role never change here."""
    user = _user_or_404(user_id)
    changes = {"name": name, "phone_number": phone_number, "address": address}
    applied = []
    for field, value in changes.items():
        if value is None or not str(value).strip():
            continue
        setattr(user, field, str(value).strip())
        applied.append(field)
    user.updated_at = datetime.utcnow()
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Profile updated", extra={"user_id": user.id, "fields": applied})
    return user


def deactivate_account(user_id: str) -> User:
    user = _user_or_404(user_id)
    if not user.is_active:
        raise StateConflictError("Account is already deactivated.")
    user.is_active = False
    user.updated_at = datetime.utcnow()
    db.session.commit()
    current_app.logger.info("Account deactivated", extra={"user_id": user.id})
    return user


def reactivate_account(user_id: str) -> User:
    user = _user_or_404(user_id)
    if user.is_active:
        raise StateConflictError("Account is already active.")
    user.is_active = True
    user.updated_at = datetime.utcnow()
    db.session.commit()
    current_app.logger.info("Account reactivated", extra={"user_id": user.id})
    return user
