"""Bearer credential signing and verification."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from flask import current_app
from jose import ExpiredSignatureError, JWTError, jwt


class TokenError(Exception):
    """Raised when a bearer credential cannot be trusted."""


def _settings() -> Dict[str, Any]:
    config = current_app.config
    return {
        "key": config["JWT_SECRET_KEY"],
        "algorithm": config.get("JWT_ALGORITHM", "HS256"),
        "issuer": config.get("JWT_ISSUER"),
        "audience": config.get("JWT_AUDIENCE"),
        "expiry_minutes": int(config.get("JWT_EXPIRY_MINUTES", 1440)),
    }


def issue_token(user) -> str:
    """Sign a credential embedding the user's id, role, and current token version."""
    settings = _settings()
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "ver": int(user.token_version or 0),
        "jti": uuid.uuid4().hex,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings["expiry_minutes"]),
    }
    if settings["issuer"]:
        claims["iss"] = settings["issuer"]
    if settings["audience"]:
        claims["aud"] = settings["audience"]
    return jwt.encode(claims, settings["key"], algorithm=settings["algorithm"])


def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature, expiry, issuer and audience; return the claims."""
    settings = _settings()
    try:
        claims = jwt.decode(
            token,
            settings["key"],
            algorithms=[settings["algorithm"]],
            audience=settings["audience"],
            issuer=settings["issuer"],
        )
    except ExpiredSignatureError as exc:
        raise TokenError("Token has expired.") from exc
    except JWTError as exc:
        raise TokenError("Invalid token.") from exc

    if not claims.get("sub") or "ver" not in claims:
        raise TokenError("Invalid token.")
    try:
        claims["ver"] = int(claims["ver"])
    except (TypeError, ValueError) as exc:
        raise TokenError("Invalid token.") from exc
    return claims


def token_expiry(claims: Dict[str, Any]) -> datetime:
    """Natural expiry of a decoded credential as a naive UTC datetime."""
    return datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc).replace(tzinfo=None)
