"""Authentication helpers.

Tokens are issued by the account service; this module only verifies them and
turns the request into a voter identity.
"""
from typing import Optional

import jwt
from fastapi import HTTPException, Request

from agora.core import config
from agora.core.rate_limit import get_client_ip


def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT access token."""
    return jwt.decode(token, config.settings.SECRET_KEY, algorithms=[config.settings.ALGORITHM])


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_optional_user_id(request: Request) -> Optional[int]:
    """
    Return the authenticated user id, or None for anonymous requests.

    A request without a token is anonymous; a request with a bad token is
    rejected rather than silently downgraded to anonymous.
    """
    token = _bearer_token(request)
    if token is None:
        return None

    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token")


def require_user_id(request: Request) -> int:
    """Dependency for endpoints that need a logged-in user."""
    user_id = get_optional_user_id(request)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id


def get_user_agent(request: Request) -> str:
    """User-Agent header, 'unknown' when the client sends none."""
    return request.headers.get("User-Agent") or "unknown"


def get_request_ip(request: Request) -> str:
    """Client IP used for the anonymous device fingerprint."""
    return get_client_ip(request) or "unknown"
