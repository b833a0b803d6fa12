"""Bearer-token authentication for the review API."""

from __future__ import annotations

import secrets

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from review_api.services.config import get_settings

_bearer = HTTPBearer(auto_error=False)


async def require_api_key(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str:
    """Validate the bearer token against REVIEWER_API_KEY.

    If REVIEWER_API_KEY is empty (dev mode), authentication is skipped.
    """
    api_key = get_settings().api_key

    if not api_key:
        return "anonymous"

    if not credentials or not secrets.compare_digest(credentials.credentials, api_key):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials
