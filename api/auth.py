"""
Authentication for the list import endpoints.

Bearer tokens are Supabase access tokens; they are validated against Supabase Auth and the caller's
user id becomes the owner of any list the request creates.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request
from supabase import Client, create_client

from api.deps import get_supabase_anon_key
from revius_backend.db.supabase import get_supabase_url

logger = logging.getLogger(__name__)


def get_bearer_token(request: Request) -> str | None:
    """
    Extract Bearer token from Authorization header.

    Returns None if no token is present.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


@lru_cache
def _auth_client() -> Client:
    return create_client(get_supabase_url(), get_supabase_anon_key())


def user_from_token(token: str) -> dict[str, Any] | None:
    try:
        user_response = _auth_client().auth.get_user(token)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to validate token: %s", exc)
        return None

    user = getattr(user_response, "user", None)
    if user is None:
        return None
    return {"id": str(user.id), "email": user.email, "role": user.role}


async def get_current_user(request: Request) -> dict | None:
    """Current user for the request, or None without a valid token."""
    token = get_bearer_token(request)
    if not token:
        return None
    return user_from_token(token)


async def require_user(request: Request) -> dict:
    """
    Dependency that requires a valid authenticated user.

    Raises 401 if no token or invalid token.
    """
    user = await get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Please provide a valid access token.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


CurrentUser = Annotated[dict, Depends(require_user)]
