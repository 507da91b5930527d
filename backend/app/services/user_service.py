"""
OpsLedger Backend — User Service
==================================

What:  Listing, reading, updating and deleting accounts.

Authorization rules (checked here, not in routes, because they depend on
both the caller and the target):
    - a user may change or delete their own account
    - an Admin may change or delete any Guest account
    - an Admin account can only be changed by itself
    - only Admins may change roles
    - the last Admin can neither give up the role nor delete the account
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from app.models.enums import Role
from app.models.user import User
from app.schemas.user import UserUpdate
from app.services.auth_service import find_user_by_email
from app.services.file_service import ImageUpload, file_service
from app.services.security import hash_password

logger = logging.getLogger(__name__)


class UserService:

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at, User.email))
        return list(result.scalars().all())

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))
        return user

    def _check_can_modify(self, actor: User, target: User, verb: str) -> None:
        if actor.id == target.id:
            return
        if not actor.is_admin:
            raise PermissionDeniedError(message=f"This user is not allowed to {verb} other users.")
        if target.is_admin:
            raise PermissionDeniedError(message=f"Cannot {verb} an admin user.")

    async def _ensure_other_admin(self, db: AsyncSession, user: User, verb: str) -> None:
        if not user.is_admin:
            return
        result = await db.execute(
            select(func.count()).select_from(User).where(User.role == Role.ADMIN, User.id != user.id)
        )
        if result.scalar_one() == 0:
            raise PermissionDeniedError(message=f"Cannot {verb} the last admin user.")

    async def update_user(
        self,
        db: AsyncSession,
        actor: User,
        user_id: uuid.UUID,
        data: UserUpdate,
        image: Optional[ImageUpload] = None,
    ) -> User:
        user = await self.get_user(db, user_id)
        self._check_can_modify(actor, user, "update")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "role" in changes and changes["role"] != user.role and not actor.is_admin:
            raise PermissionDeniedError(message="This user is not allowed to change roles.")
        if "role" in changes and changes["role"] != Role.ADMIN:
            await self._ensure_other_admin(db, user, "demote")

        if "email" in changes:
            email = changes.pop("email").lower()
            existing = await find_user_by_email(db, email)
            if existing is not None and existing.id != user.id:
                raise ConflictError("User", context={"email": email})
            user.email = email

        if "password" in changes:
            user.password = hash_password(changes.pop("password"))

        for field, value in changes.items():
            setattr(user, field, value)

        if image is not None:
            old_image = user.image
            user.image = await file_service.store_image(image)
            await file_service.delete_image(old_image)

        await db.flush()
        logger.info("User %s updated by %s: %s", user.id, actor.id, sorted(data.model_fields_set))
        return user

    async def delete_user(self, db: AsyncSession, actor: User, user_id: uuid.UUID) -> None:
        user = await self.get_user(db, user_id)
        self._check_can_modify(actor, user, "delete")
        await self._ensure_other_admin(db, user, "delete")
        image = user.image
        await db.delete(user)
        await db.flush()
        await file_service.delete_image(image)
        logger.info("User %s deleted by %s", user_id, actor.id)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
