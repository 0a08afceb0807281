"""
Signed session tokens for the admin portal.

Every cookie value that confers privilege (the admin session and the
impersonation session) is an HS256 JWT signed with SESSION_SECRET. The
cookie carrier stores and clears them; the dependencies in admin.py and
context.py are the only places they are read.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from bodywork.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ADMIN_TOKEN_TYPE = "admin_session"
IMPERSONATION_TOKEN_TYPE = "impersonation"


class SessionTokenError(Exception):
    """Token is malformed, tampered with, or of the wrong type."""


class SessionTokenExpired(SessionTokenError):
    """Token signature is valid but it is past its expiry."""


@dataclass(frozen=True)
class AdminSessionClaims:
    admin_id: str
    email: str
    role: str


@dataclass(frozen=True)
class ImpersonationClaims:
    session_id: str
    practitioner_id: str
    admin_id: str
    issued_at: datetime
    expires_at: datetime


def _secret() -> str:
    if not settings.SESSION_SECRET:
        raise SessionTokenError("SESSION_SECRET is not configured")
    return settings.SESSION_SECRET


def _encode(claims: dict, token_type: str, max_age_seconds: int, now: Optional[datetime]) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        **claims,
        "typ": token_type,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=max_age_seconds),
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def _decode(token: str, token_type: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat", "typ"]},
        )
    except ExpiredSignatureError as e:
        raise SessionTokenExpired(f"{token_type} token expired") from e
    except InvalidTokenError as e:
        raise SessionTokenError(f"invalid {token_type} token: {e}") from e

    if payload.get("typ") != token_type:
        raise SessionTokenError(f"expected {token_type} token, got {payload.get('typ')!r}")

    return payload


def issue_admin_token(
    admin_id: str,
    email: str,
    role: str,
    now: Optional[datetime] = None
) -> str:
    """Sign an admin session token valid for ADMIN_SESSION_MAX_AGE_SECONDS."""
    return _encode(
        {"sub": str(admin_id), "email": email, "role": role},
        ADMIN_TOKEN_TYPE,
        settings.ADMIN_SESSION_MAX_AGE_SECONDS,
        now,
    )


def read_admin_token(token: str) -> AdminSessionClaims:
    """
    Verify an admin session token.

    Raises:
        SessionTokenError: invalid, expired, or not an admin token
    """
    payload = _decode(token, ADMIN_TOKEN_TYPE)

    admin_id = payload.get("sub")
    if not admin_id:
        raise SessionTokenError("admin token missing 'sub' claim")

    return AdminSessionClaims(
        admin_id=str(admin_id),
        email=str(payload.get("email") or ""),
        role=str(payload.get("role") or "admin"),
    )


def issue_impersonation_token(
    session_id: str,
    practitioner_id: str,
    admin_id: str,
    now: Optional[datetime] = None
) -> str:
    """Sign an impersonation token bounded by IMPERSONATION_TTL_SECONDS."""
    return _encode(
        {"sid": str(session_id), "pid": str(practitioner_id), "aid": str(admin_id)},
        IMPERSONATION_TOKEN_TYPE,
        settings.IMPERSONATION_TTL_SECONDS,
        now,
    )


def read_impersonation_token(token: str) -> ImpersonationClaims:
    """
    Verify an impersonation token.

    Raises:
        SessionTokenExpired: the session outlived IMPERSONATION_TTL_SECONDS
        SessionTokenError: invalid or not an impersonation token
    """
    payload = _decode(token, IMPERSONATION_TOKEN_TYPE)

    session_id = payload.get("sid")
    practitioner_id = payload.get("pid")
    admin_id = payload.get("aid")
    if not session_id or not practitioner_id or not admin_id:
        raise SessionTokenError("impersonation token missing sid/pid/aid claims")

    return ImpersonationClaims(
        session_id=str(session_id),
        practitioner_id=str(practitioner_id),
        admin_id=str(admin_id),
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def peek_impersonation_session_id(token: str) -> Optional[str]:
    """
    Session id from an impersonation token, accepting expired tokens.

    Ending a session must still close the row after the TTL has lapsed, so
    expiry is ignored here; the signature is still checked.
    """
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
    except (InvalidTokenError, SessionTokenError) as e:
        logger.warning(f"Ignoring unreadable impersonation token: {e}")
        return None

    if payload.get("typ") != IMPERSONATION_TOKEN_TYPE or not payload.get("sid"):
        return None
    return str(payload["sid"])
