"""OpsLedger Backend — Expense Category Service."""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models.expense import ExpenseCategory
from app.schemas.expense import ExpenseCategoryCreate, ExpenseCategoryUpdate

logger = logging.getLogger(__name__)


class ExpenseCategoryService:

    async def list_categories(self, db: AsyncSession) -> List[ExpenseCategory]:
        result = await db.execute(
            select(ExpenseCategory)
            .where(ExpenseCategory.deleted_at.is_(None))
            .order_by(ExpenseCategory.name)
        )
        return list(result.scalars().all())

    async def get_category(self, db: AsyncSession, category_id: uuid.UUID) -> ExpenseCategory:
        result = await db.execute(
            select(ExpenseCategory).where(
                ExpenseCategory.id == category_id,
                ExpenseCategory.deleted_at.is_(None),
            )
        )
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError("Expense category", str(category_id))
        return category

    async def find_by_name(self, db: AsyncSession, name: str) -> Optional[ExpenseCategory]:
        """Case-insensitive lookup among live categories."""
        result = await db.execute(
            select(ExpenseCategory).where(
                func.lower(ExpenseCategory.name) == name.strip().lower(),
                ExpenseCategory.deleted_at.is_(None),
            )
        )
        return result.scalars().first()

    async def _ensure_unique_name(
        self,
        db: AsyncSession,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        existing = await self.find_by_name(db, name)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("Expense category", context={"name": name})

    async def create_category(self, db: AsyncSession, data: ExpenseCategoryCreate) -> ExpenseCategory:
        await self._ensure_unique_name(db, data.name)
        category = ExpenseCategory(name=data.name, description=data.description)
        db.add(category)
        await db.flush()
        logger.info("Expense category created: %s (%s)", category.id, category.name)
        return category

    async def update_category(
        self,
        db: AsyncSession,
        category_id: uuid.UUID,
        data: ExpenseCategoryUpdate,
    ) -> ExpenseCategory:
        category = await self.get_category(db, category_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            await self._ensure_unique_name(db, changes["name"], exclude_id=category.id)
        for field, value in changes.items():
            setattr(category, field, value)
        await db.flush()
        await db.refresh(category)
        logger.info("Expense category %s updated: %s", category.id, sorted(changes))
        return category

    async def delete_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        category = await self.get_category(db, category_id)
        category.deleted_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Expense category %s deleted", category_id)


# ── Singleton Instance ────────────────────────────────────────────────────
expense_category_service = ExpenseCategoryService()
