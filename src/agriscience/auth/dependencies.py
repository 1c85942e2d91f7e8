"""FastAPI auth dependencies.

Learn: Used as Depends() in route handlers to extract and validate the
caller's identity from the Authorization header. The identity lives for
one request only.

Two distinct failures:
1. No bearer token at all → 401 "Access token required"
2. Token present but invalid/expired → 403 "Invalid token"
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException

from agriscience.auth.jwt import TokenError, verify_token
from agriscience.dependencies import get_storage
from agriscience.errors import ForbiddenError, UnauthorizedError
from agriscience.schemas.user import User
from agriscience.storage.base import Storage

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated caller of the current request."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"CurrentIdentity(user_id={self.user_id!r})"


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    authorization: Optional[str] = Header(None),
) -> CurrentIdentity:
    """Extract current identity (required)."""
    token = _bearer_token(authorization)
    if token is None:
        raise UnauthorizedError("Access token required")

    try:
        payload = verify_token(token)
    except TokenError as e:
        logger.info("auth.token_rejected", reason=str(e))
        raise ForbiddenError("Invalid token")

    return CurrentIdentity(user_id=payload["sub"])


async def get_current_user_record(
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> User:
    """Load the full user record for the caller (404 if it no longer exists)."""
    user = await storage.get_user(identity.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
