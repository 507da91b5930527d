"""
OpsLedger Backend — Authentication Service
============================================

What:  Registration, login, access-token refresh and the password reset
       flow.
Who:   Called by routes/auth.py.

Token flow:
    register / login → access token (body, 15 min) + refresh token
                       (HTTP-only cookie, 1 day or 7 days with remember_me)
    refresh          → new access token from the cookie
    reset-password   → reset token stored with a 15 min expiry and emailed
                       as {CLIENT_URL}/{user_id}/reset-password/{token}/

Bootstrap:
    The very first account registered becomes an Admin. Every later
    self-registration is a Guest; Admins promote users via PATCH /api/users.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.enums import Role
from app.models.user import PasswordResetToken, User
from app.schemas.user import LoginRequest, RegisterRequest
from app.services.file_service import ImageUpload, file_service
from app.services.security import (
    REFRESH,
    RESET,
    create_access_token,
    create_refresh_token,
    create_reset_token,
    decode_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

INVALID_RESET_LINK = "Link is invalid or has expired."


@dataclass(frozen=True)
class IssuedTokens:
    user: User
    access_token: str
    refresh_token: str
    remember_me: bool = False


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


class AuthService:

    def _issue(self, user: User, remember_me: bool = False) -> IssuedTokens:
        return IssuedTokens(
            user=user,
            access_token=create_access_token(user.id, user.role.value),
            refresh_token=create_refresh_token(user.id, remember_me),
            remember_me=remember_me,
        )

    async def register(
        self,
        db: AsyncSession,
        data: RegisterRequest,
        image: Optional[ImageUpload] = None,
    ) -> IssuedTokens:
        """
        Create an account and sign it in.

        Raises:
            ConflictError: the email is already registered (409)
            ValidationError: the image was rejected (400)
        """
        email = data.email.lower()
        if await find_user_by_email(db, email):
            raise ConflictError("User", context={"email": email})

        user_count = (await db.execute(select(func.count(User.id)))).scalar_one()
        role = Role.ADMIN if user_count == 0 else Role.GUEST

        image_url = await file_service.store_image(image) if image else None
        user = User(
            email=email,
            first_name=data.first_name,
            last_name=data.last_name,
            password=hash_password(data.password),
            image=image_url,
            role=role,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await file_service.delete_image(image_url)
            raise ConflictError("User", context={"email": email})

        logger.info("User registered: %s (role=%s)", user.id, role.value)
        return self._issue(user)

    async def login(self, db: AsyncSession, data: LoginRequest) -> IssuedTokens:
        user = await find_user_by_email(db, data.email)
        if user is None or not verify_password(data.password, user.password):
            raise AuthenticationError(message="Invalid email or password.")
        logger.info("User logged in: %s (remember_me=%s)", user.id, data.remember_me)
        return self._issue(user, remember_me=data.remember_me)

    async def refresh(self, db: AsyncSession, refresh_token: Optional[str]) -> Tuple[User, str]:
        """
        Exchange the refresh cookie for a new access token.

        Every failure (no cookie, bad signature, expired, deleted user)
        surfaces as the same 403.
        """
        failure = PermissionDeniedError(message="Failed to refresh token.")
        if not refresh_token:
            raise failure
        try:
            payload = decode_token(REFRESH, refresh_token)
            user_id = uuid.UUID(payload["sub"])
        except (AuthenticationError, ValueError):
            raise failure

        user = await db.get(User, user_id)
        if user is None:
            raise failure
        return user, create_access_token(user.id, user.role.value)

    async def request_password_reset(self, db: AsyncSession, email: str) -> Tuple[User, str]:
        """
        Store a fresh reset token for the account.

        Returns:
            (user, token) so the route can schedule the email.
        """
        user = await find_user_by_email(db, email)
        if user is None:
            raise NotFoundError("User")

        token = create_reset_token(user.id)
        db.add(
            PasswordResetToken(
                user_id=user.id,
                token=token,
                expires_at=datetime.now(timezone.utc)
                + timedelta(minutes=settings.reset_token_ttl_minutes),
            )
        )
        await db.flush()
        logger.info("Password reset requested for user %s", user.id)
        return user, token

    async def reset_password(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        token: str,
        new_password: str,
    ) -> User:
        """
        Consume a reset link.

        Raises:
            ValidationError: unknown user, unknown token or expired link (400)
        """
        invalid = ValidationError(message=INVALID_RESET_LINK, field="token")

        user = await db.get(User, user_id)
        if user is None:
            raise invalid

        result = await db.execute(
            select(PasswordResetToken).where(
                PasswordResetToken.user_id == user_id,
                PasswordResetToken.token == token,
            )
        )
        stored = result.scalar_one_or_none()
        if stored is None or _as_utc(stored.expires_at) <= datetime.now(timezone.utc):
            raise invalid
        try:
            payload = decode_token(RESET, token)
        except AuthenticationError:
            raise invalid
        if payload["sub"] != str(user_id):
            raise invalid

        user.password = hash_password(new_password)
        await db.execute(delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id))
        await db.flush()
        logger.info("Password reset completed for user %s", user_id)
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
