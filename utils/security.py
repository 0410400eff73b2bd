"""Security helpers for credential policy and bearer header parsing."""
from typing import Optional


def password_meets_policy(password: str) -> tuple[bool, str | None]:
    """Enforce the account password baseline."""
    if len(password) < 8:
        return False, "Password must be at least 8 characters."
    if len(password) > 100:
        return False, "Password cannot exceed 100 characters."
    return True, None


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def bearer_token_from_header(header_value: Optional[str]) -> Optional[str]:
    """Return the credential from an ``Authorization: Bearer <token>`` header."""
    if not header_value:
        return None
    scheme, _, token = header_value.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
