"""
OpsLedger Backend — User & Password Reset Token Models
========================================================

What:  ORM models for application accounts (`users`) and the single-use
       password reset tokens issued to them (`password_reset_tokens`).
Why:   Users are the only hard-deleted records: removing an account frees
       its email so the address can register again.

Table Design Rationale:
    - email: unique index; lookups are always by lowercased email
    - password: bcrypt hash, never serialized (see schemas/user.py)
    - image: URL path of the uploaded profile image, if any
    - reset tokens cascade with their user
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, utcnow
from app.models.enums import Role, sql_enum_values


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="role", values_callable=sql_enum_values),
        nullable=False,
        default=Role.GUEST,
    )

    reset_tokens: Mapped[List["PasswordResetToken"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"


class PasswordResetToken(Base):
    """
    One outstanding reset link.

    Lifecycle:
        1. Created by POST /api/auth/reset-password
        2. Consumed (and all of the user's tokens deleted) by
           POST /api/auth/{user_id}/reset-password/{token}
        3. Ignored once expires_at has passed
    """

    __tablename__ = "password_reset_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(512), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped[User] = relationship(back_populates="reset_tokens")
