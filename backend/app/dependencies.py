"""
OpsLedger Backend — Request Dependencies
==========================================

What:  FastAPI dependencies that authenticate the caller from the
       `Authorization: Bearer <access token>` header and enforce roles.
How:   The token is verified with the access secret, then the user row is
       loaded so deleted accounts and role changes take effect immediately
       rather than when the token expires.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import AuthenticationError, PermissionDeniedError
from app.middleware.request_id import request_id_var
from app.models.user import User
from app.services.security import ACCESS, decode_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Resolve the authenticated user or raise AuthenticationError (401)."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError(context={"reason": "missing"})

    payload = decode_token(ACCESS, credentials.credentials)
    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise AuthenticationError(context={"reason": "bad_subject"})

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("[%s] Token for unknown user %s", request_id_var.get(""), user_id)
        raise AuthenticationError(context={"reason": "unknown_user"})
    return user


def require_admin(action: str):
    """
    Dependency factory: the caller must be an Admin.

    `action` completes the 403 message, e.g. "create employees" gives
    "This user is not allowed to create employees."
    """
    async def checker(user: User = Depends(get_current_user)) -> User:
        if not user.is_admin:
            raise PermissionDeniedError(
                message=f"This user is not allowed to {action}.",
                context={"user_id": str(user.id), "role": user.role.value},
            )
        return user
    return checker
