"""Register, login, logout, and password change on top of the revocation ledger."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import USER_ROLES, User
from utils.errors import AuthenticationError, InputValidationError, NotFoundError, StateConflictError
from utils.security import normalize_email, password_meets_policy
from utils.session_revocation import (
    blacklist_token,
    bump_token_version,
    is_blacklisted,
    is_current_version,
    prune_expired_tokens,
)
from utils.tokens import TokenError, decode_token, issue_token, token_expiry


def register_user(
    name: str,
    email: str,
    password: str,
    phone_number: str,
    address: str,
    role: str,
) -> Tuple[User, str]:
    email = normalize_email(email)
    if role not in USER_ROLES:
        raise InputValidationError(f"Invalid sign-in type. Valid types: {', '.join(USER_ROLES)}")
    password_ok, reason = password_meets_policy(password or "")
    if not password_ok:
        raise InputValidationError(reason)
    if User.query.filter(db.func.lower(User.email) == email).first():
        raise StateConflictError("Email already registered. Please login or use a different email.")

    now = datetime.utcnow()
    user = User(
        name=name.strip(),
        email=email,
        phone_number=phone_number.strip(),
        address=address.strip(),
        role=role,
        is_active=True,
        token_version=0,
        last_login_at=now,
    )
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise StateConflictError("Email already registered. Please login or use a different email.") from exc

    current_app.logger.info("User registered", extra={"user_id": user.id, "role": user.role})
    return user, issue_token(user)


def authenticate(email: str, password: str) -> Tuple[User, str]:
    user = User.query.filter(db.func.lower(User.email) == normalize_email(email)).first()
    if not user:
        raise AuthenticationError("Invalid email or password.")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated. Please contact support.")
    if not user.check_password(password or ""):
        current_app.logger.warning("Login failed", extra={"user_id": user.id})
        raise AuthenticationError("Invalid email or password.")

    user.last_login_at = datetime.utcnow()
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("User logged in", extra={"user_id": user.id})
    return user, issue_token(user)


def resolve_bearer(token: str) -> Tuple[Optional[User], Dict[str, Any]]:
    """Return the user a credential authenticates, after every revocation check."""
    try:
        claims = decode_token(token)
    except TokenError as exc:
        raise AuthenticationError(str(exc)) from exc
    if is_blacklisted(token):
        raise AuthenticationError("Token has been revoked.")
    user = db.session.get(User, claims["sub"])
    if user is None:
        raise AuthenticationError("Invalid token.")
    if not is_current_version(user, claims["ver"]):
        raise AuthenticationError("Token is no longer valid. Please login again.")
    return user, claims


def logout(user: User, token: str, claims: Dict[str, Any]) -> None:
    inserted = blacklist_token(token, user.id, token_expiry(claims))
    current_app.logger.info("User logged out", extra={"user_id": user.id, "newly_blacklisted": inserted})
    if current_app.config.get("BLACKLIST_PRUNE_ON_LOGOUT", True):
        prune_expired_tokens()


def change_password(user_id: str, current_password: str, new_password: str) -> str:
    """Replace the password hash and revoke every outstanding session; return a fresh token."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    if not user.check_password(current_password or ""):
        raise AuthenticationError("Current password is incorrect.")
    password_ok, reason = password_meets_policy(new_password or "")
    if not password_ok:
        raise InputValidationError(reason)

    user.set_password(new_password)
    db.session.add(user)
    version = bump_token_version(user)
    db.session.commit()
    current_app.logger.info("Password changed", extra={"user_id": user.id, "token_version": version})
    return issue_token(user)
