"""
Supabase Auth token verification for practitioner (non-admin) requests.

Uses Supabase's JWT Signing Keys system with ECC (P-256) public key
verification. The effective-identity resolver calls into this module when
no impersonation is active.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from jwt import PyJWKClient, decode
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError, PyJWKClientError

from bodywork.config import settings

logger = logging.getLogger(__name__)

# Fetches and caches Supabase's public keys (cache_keys=True by default)
_jwks_client: PyJWKClient | None = None


@dataclass
class AuthenticatedUser:
    """
    A practitioner authenticated through Supabase Auth.

    Attributes:
        user_id: The user's UUID from the JWT token's 'sub' claim
        email: The 'email' claim, if present
        access_token: The raw JWT (used to build RLS-scoped Supabase clients)
    """
    user_id: str
    email: Optional[str]
    access_token: str


def get_jwks_client() -> PyJWKClient:
    """
    Get or create the JWKS client instance.

    Raises:
        ValueError: If SUPABASE_URL is not configured
    """
    global _jwks_client

    if _jwks_client is None:
        jwks_url = settings.SUPABASE_JWKS_URL
        if not jwks_url:
            raise ValueError(
                "SUPABASE_URL is not configured. "
                "Cannot construct JWKS URL for JWT verification."
            )

        logger.info(f"Initializing JWKS client with URL: {jwks_url}")
        _jwks_client = PyJWKClient(
            jwks_url,
            cache_keys=True,
            max_cached_keys=16,
        )

    return _jwks_client


def extract_access_token(
    authorization: Optional[str],
    cookies: Mapping[str, str]
) -> Optional[str]:
    """
    Pull the Supabase access token from the request.

    The Authorization header ("Bearer <token>") wins; the web client's auth
    cookie is the fallback. A malformed header yields None rather than
    falling through to the cookie.
    """
    if authorization:
        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            logger.warning("Invalid Authorization header format")
            return None
        return parts[1]

    token = cookies.get(settings.SUPABASE_AUTH_COOKIE)
    return token or None


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    Raises:
        InvalidTokenError: signature, expiry, audience, or issuer check failed
        PyJWKClientError: the signing key could not be fetched
    """
    jwks_client = get_jwks_client()
    signing_key = jwks_client.get_signing_key_from_jwt(token)

    # Supabase issuer includes the /auth/v1 path
    issuer = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1"

    return decode(
        token,
        signing_key.key,
        algorithms=["ES256"],
        audience="authenticated",
        issuer=issuer,
        options={
            "verify_signature": True,
            "verify_exp": True,
            "verify_aud": True,
            "verify_iss": True,
        }
    )


def authenticate_user(token: Optional[str]) -> Optional[AuthenticatedUser]:
    """
    Verify the token and build an AuthenticatedUser.

    Returns None for a missing, expired, or otherwise invalid token. Never
    raises: an authentication failure means "no identity" to callers.
    """
    if not token:
        return None

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        logger.info("Access token has expired")
        return None
    except PyJWKClientError as e:
        logger.error(f"JWKS client error: {str(e)}")
        return None
    except InvalidTokenError as e:
        logger.warning(f"Invalid access token: {str(e)}")
        return None
    except Exception as e:
        logger.error(f"Unexpected error during token verification: {str(e)}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        logger.error("Token payload missing 'sub' claim")
        return None

    email = payload.get("email")
    return AuthenticatedUser(
        user_id=str(user_id),
        email=str(email) if email is not None else None,
        access_token=token,
    )
