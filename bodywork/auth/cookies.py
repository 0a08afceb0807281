"""
Cookie carrier for admin and impersonation sessions.

Cookie names are private to this module. Routes hand it a Response to
write to or a cookie mapping to read from; nothing else in the codebase
knows which cookie carries what.
"""

from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import quote, unquote

from fastapi import Response

from bodywork.config import settings

ADMIN_SESSION_COOKIE = "admin_session"
IMPERSONATION_SESSION_COOKIE = "impersonation_session_id"
IMPERSONATED_PRACTITIONER_COOKIE = "impersonating_practitioner_id"
ADMIN_RETURN_URL_COOKIE = "admin_return_url"

IMPERSONATION_COOKIES = (
    IMPERSONATION_SESSION_COOKIE,
    IMPERSONATED_PRACTITIONER_COOKIE,
    ADMIN_RETURN_URL_COOKIE,
)


@dataclass(frozen=True)
class ImpersonationCookies:
    """Raw impersonation cookie values, before any verification."""
    session_token: Optional[str]
    practitioner_id: Optional[str]
    admin_return_url: Optional[str]

    @property
    def present(self) -> bool:
        """Both identifying cookies are set (the return URL is cosmetic)."""
        return bool(self.session_token) and bool(self.practitioner_id)


def _set(response: Response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure(),
    )


def _clear(response: Response, name: str) -> None:
    response.delete_cookie(
        key=name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure(),
    )


def read_admin_session(cookies: Mapping[str, str]) -> Optional[str]:
    return cookies.get(ADMIN_SESSION_COOKIE) or None


def set_admin_session(response: Response, token: str) -> None:
    _set(response, ADMIN_SESSION_COOKIE, token, settings.ADMIN_SESSION_MAX_AGE_SECONDS)


def clear_admin_session(response: Response) -> None:
    _clear(response, ADMIN_SESSION_COOKIE)


def read_impersonation(cookies: Mapping[str, str]) -> ImpersonationCookies:
    return ImpersonationCookies(
        session_token=cookies.get(IMPERSONATION_SESSION_COOKIE) or None,
        practitioner_id=cookies.get(IMPERSONATED_PRACTITIONER_COOKIE) or None,
        admin_return_url=unquote(cookies.get(ADMIN_RETURN_URL_COOKIE, "")) or None,
    )


def set_impersonation(
    response: Response,
    session_token: str,
    practitioner_id: str,
    admin_return_url: str
) -> None:
    """Write all three impersonation cookies with the session TTL."""
    max_age = settings.IMPERSONATION_TTL_SECONDS
    _set(response, IMPERSONATION_SESSION_COOKIE, session_token, max_age)
    _set(response, IMPERSONATED_PRACTITIONER_COOKIE, practitioner_id, max_age)
    # Percent-encoded so the path survives cookie quoting
    _set(response, ADMIN_RETURN_URL_COOKIE, quote(admin_return_url, safe=""), max_age)


def clear_impersonation(response: Response) -> None:
    """Expire all three impersonation cookies."""
    for name in IMPERSONATION_COOKIES:
        _clear(response, name)
