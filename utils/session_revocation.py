"""Two orthogonal revocation mechanisms: per-user token versions and a per-token blacklist.

Bumping ``User.token_version`` invalidates every credential issued before the
bump in one write. Blacklisting records a single credential until its natural
expiry. Expired blacklist rows are inert (the signer rejects expired tokens
anyway) and can be pruned at any time without affecting live sessions.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from flask import current_app
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import BlacklistedToken, User


def is_current_version(user: User, token_version: int) -> bool:
    return user is not None and int(user.token_version or 0) == int(token_version)


def bump_token_version(user: User) -> int:
    """Atomically increment the stored version; the caller commits."""
    db.session.execute(
        update(User)
        .where(User.id == user.id)
        .values(token_version=User.token_version + 1, updated_at=datetime.utcnow())
    )
    db.session.flush()
    db.session.refresh(user, attribute_names=["token_version", "updated_at"])
    return user.token_version


def blacklist_token(token: str, user_id: str, expires_at: datetime) -> bool:
    """Record a revoked credential. Returns False when it was already blacklisted."""
    if BlacklistedToken.query.filter_by(token=token).first():
        return False
    entry = BlacklistedToken(token=token, user_id=str(user_id), expires_at=expires_at)
    db.session.add(entry)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent logout with the same token inserted first.
        db.session.rollback()
        return False
    return True


def is_blacklisted(token: str, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return (
        db.session.query(BlacklistedToken.id)
        .filter(BlacklistedToken.token == token, BlacklistedToken.expires_at >= now)
        .first()
        is not None
    )


def prune_expired_tokens(now: Optional[datetime] = None) -> int:
    """Delete blacklist rows strictly past their natural expiry."""
    now = now or datetime.utcnow()
    result = db.session.execute(delete(BlacklistedToken).where(BlacklistedToken.expires_at < now))
    db.session.commit()
    removed = result.rowcount or 0
    if removed:
        current_app.logger.info("Pruned expired blacklisted tokens", extra={"removed": removed})
    return removed


def run_prune_cycle(app) -> int:
    with app.app_context():
        return prune_expired_tokens()
