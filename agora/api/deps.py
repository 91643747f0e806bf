"""Shared API dependencies."""
from typing import Optional

from fastapi import Depends, Request

from agora.db import get_db
from agora.core.security import (
    get_optional_user_id,
    get_request_ip,
    get_user_agent,
    require_user_id,
)
from agora.services.vote import AnonymousIdentity, AuthenticatedIdentity, Identity


def get_voter_identity(
    request: Request,
    user_id: Optional[int] = Depends(get_optional_user_id),
) -> Identity:
    """Logged-in users vote as themselves; everyone else by device fingerprint."""
    if user_id is not None:
        return AuthenticatedIdentity(user_id=user_id)
    return AnonymousIdentity(
        ip_address=get_request_ip(request),
        user_agent=get_user_agent(request),
    )


__all__ = [
    "get_db",
    "get_optional_user_id",
    "get_voter_identity",
    "require_user_id",
]
