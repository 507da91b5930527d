"""
OpsLedger Backend — Password Hashing & Token Signing
======================================================

What:  bcrypt password hashing and PyJWT encode/decode for the three token
       kinds (access, refresh, password reset).
Why:   Keeping the cryptography in one module means the auth service and
       the request dependencies agree on claims, secrets and lifetimes.
How:   Each token kind has its own secret (see config.py). Tokens carry
       `sub` (user id), `role`, `type`, `iat` and `exp`; decoding checks the
       signature, expiry and `type` claim and raises AuthenticationError.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt as pyjwt

from app.config import settings
from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"
RESET = "reset"

_SECRETS = {
    ACCESS: lambda: settings.access_token_secret,
    REFRESH: lambda: settings.refresh_token_secret,
    RESET: lambda: settings.reset_token_secret,
}


# ── Passwords ─────────────────────────────────────────────────────────────
def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Malformed stored hash
        logger.warning("Stored password hash could not be parsed")
        return False


# ── Tokens ────────────────────────────────────────────────────────────────
def create_token(
    kind: str,
    user_id: uuid.UUID,
    lifetime: timedelta,
    extra: Optional[Dict[str, Any]] = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "type": kind,
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid.uuid4().hex,
    }
    if extra:
        payload.update(extra)
    return pyjwt.encode(payload, _SECRETS[kind](), algorithm=settings.jwt_algorithm)


def decode_token(kind: str, token: str) -> Dict[str, Any]:
    """
    Verify and decode a token of the given kind.

    Raises:
        AuthenticationError: bad signature, expired, or wrong token type.
    """
    try:
        payload = pyjwt.decode(token, _SECRETS[kind](), algorithms=[settings.jwt_algorithm])
    except pyjwt.ExpiredSignatureError:
        raise AuthenticationError(context={"reason": "expired", "kind": kind})
    except pyjwt.InvalidTokenError:
        raise AuthenticationError(context={"reason": "invalid", "kind": kind})
    if payload.get("type") != kind or "sub" not in payload:
        raise AuthenticationError(context={"reason": "wrong_type", "kind": kind})
    return payload


def create_access_token(user_id: uuid.UUID, role: str) -> str:
    return create_token(
        ACCESS,
        user_id,
        timedelta(minutes=settings.access_token_ttl_minutes),
        extra={"role": role},
    )


def refresh_token_lifetime(remember_me: bool) -> timedelta:
    if remember_me:
        return timedelta(days=settings.remember_me_ttl_days)
    return timedelta(days=settings.refresh_token_ttl_days)


def create_refresh_token(user_id: uuid.UUID, remember_me: bool = False) -> str:
    return create_token(
        REFRESH,
        user_id,
        refresh_token_lifetime(remember_me),
        extra={"remember_me": remember_me},
    )


def create_reset_token(user_id: uuid.UUID) -> str:
    return create_token(RESET, user_id, timedelta(minutes=settings.reset_token_ttl_minutes))
