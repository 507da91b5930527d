"""
OpsLedger Backend — Expense Service
=====================================

What:  Monthly planned/actual expense bookkeeping and the variance report.
Who:   Called by routes/expenses.py.

Booking rules:
    - one live expense per (year, month, category), 409 otherwise
    - the category is referenced by name, case-insensitively (404 if absent)
    - the "Direct" category's planned amount is the labor cost of every
      project running during that month
    - a missing planned amount falls back to the actual one and vice versa
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import Month
from app.models.expense import Expense, ExpenseCategory
from app.schemas.expense import ExpenseCreate, ExpenseUpdate
from app.services.expense_category_service import expense_category_service
from app.services.project_service import project_service
from app.services.reporting import (
    ExpenseRecord,
    ExpenseReport,
    build_expense_report,
    direct_labor_cost,
    last_day_of_month,
)

logger = logging.getLogger(__name__)

DIRECT_CATEGORY = "direct"


def _live_expenses() -> Select:
    return (
        select(Expense)
        .join(ExpenseCategory, Expense.expense_category_id == ExpenseCategory.id)
        .where(Expense.deleted_at.is_(None), ExpenseCategory.deleted_at.is_(None))
        .options(selectinload(Expense.expense_category))
    )


def month_window(year: int, start: Optional[date], end: Optional[date]) -> tuple:
    """
    Month numbers of `year` covered by [start, end].

    Missing bounds mean the start/end of the year; bounds in other years are
    clamped to the year.
    """
    if start is not None and end is not None and end < start:
        raise ValidationError(message="End date must be after start date.", field="end_date")

    if start is None or start.year < year:
        start_month = 1
    elif start.year > year:
        raise ValidationError(message="Start date is after the requested year.", field="start_date")
    else:
        start_month = start.month

    if end is None or end.year > year:
        end_month = 12
    elif end.year < year:
        raise ValidationError(message="End date is before the requested year.", field="end_date")
    else:
        end_month = end.month

    return start_month, end_month


class ExpenseService:

    # ── Queries ───────────────────────────────────────────────────────────
    async def list_expenses(self, db: AsyncSession, year: Optional[int] = None) -> List[Expense]:
        query = _live_expenses()
        if year is not None:
            query = query.where(Expense.year == year)
        result = await db.execute(query.order_by(Expense.year.desc(), Expense.created_at.desc()))
        return list(result.scalars().all())

    async def get_expense(self, db: AsyncSession, expense_id: uuid.UUID) -> Expense:
        result = await db.execute(
            _live_expenses()
            .where(Expense.id == expense_id)
            .execution_options(populate_existing=True)
        )
        expense = result.scalar_one_or_none()
        if expense is None:
            raise NotFoundError("Expense", str(expense_id))
        return expense

    # ── Helpers ───────────────────────────────────────────────────────────
    async def _category(self, db: AsyncSession, name: str) -> ExpenseCategory:
        category = await expense_category_service.find_by_name(db, name)
        if category is None:
            raise NotFoundError("Expense category", name)
        return category

    async def _ensure_free_slot(
        self,
        db: AsyncSession,
        year: int,
        month: Month,
        category: ExpenseCategory,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Expense.id).where(
            Expense.year == year,
            Expense.month == month,
            Expense.expense_category_id == category.id,
            Expense.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.where(Expense.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError(
                "Expense",
                context={"year": year, "month": month.value, "category": category.name},
            )

    async def planned_direct_expense(self, db: AsyncSession, year: int, month: Month) -> float:
        """Labor cost of all projects running during the month."""
        first = date(year, month.number, 1)
        last = last_day_of_month(year, month.number)
        records = await project_service.active_project_records(db, first, last)
        return direct_labor_cost(records, year, month.number)

    # ── Mutations ─────────────────────────────────────────────────────────
    async def create_expense(self, db: AsyncSession, data: ExpenseCreate) -> Expense:
        category = await self._category(db, data.expense_category)
        await self._ensure_free_slot(db, data.year, data.month, category)

        planned = data.planned_expense
        actual = data.actual_expense
        if category.name.lower() == DIRECT_CATEGORY:
            planned = await self.planned_direct_expense(db, data.year, data.month)
        if planned is None and actual is None:
            raise ValidationError(
                message="Planned or actual expense is required.",
                field="planned_expense",
            )

        expense = Expense(
            year=data.year,
            month=data.month,
            planned_expense=planned if planned is not None else actual,
            actual_expense=actual if actual is not None else planned,
            expense_category_id=category.id,
        )
        db.add(expense)
        await db.flush()
        logger.info(
            "Expense created: %s (%s %d, %s)",
            expense.id, data.month.value, data.year, category.name,
        )
        return await self.get_expense(db, expense.id)

    async def update_expense(
        self,
        db: AsyncSession,
        expense_id: uuid.UUID,
        data: ExpenseUpdate,
    ) -> Expense:
        expense = await self.get_expense(db, expense_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        category = expense.expense_category
        if "expense_category" in changes:
            category = await self._category(db, changes.pop("expense_category"))
        year = changes.get("year", expense.year)
        month = changes.get("month", expense.month)

        moved = (
            category.id != expense.expense_category_id
            or year != expense.year
            or month != expense.month
        )
        if moved:
            await self._ensure_free_slot(db, year, month, category, exclude_id=expense.id)
        if category.name.lower() == DIRECT_CATEGORY:
            changes["planned_expense"] = await self.planned_direct_expense(db, year, Month(month))

        for field, value in changes.items():
            setattr(expense, field, value)
        expense.expense_category_id = category.id
        expense.expense_category = category

        await db.flush()
        logger.info("Expense %s updated: %s", expense.id, sorted(data.model_fields_set))
        return await self.get_expense(db, expense.id)

    async def delete_expense(self, db: AsyncSession, expense_id: uuid.UUID) -> None:
        expense = await self.get_expense(db, expense_id)
        expense.deleted_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Expense %s deleted", expense_id)

    # ── Reporting ─────────────────────────────────────────────────────────
    async def expense_report(
        self,
        db: AsyncSession,
        year: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ExpenseReport:
        start_month, end_month = month_window(year, start_date, end_date)
        expenses = await self.list_expenses(db, year=year)
        records = [
            ExpenseRecord(
                category=e.expense_category.name,
                year=e.year,
                month=e.month,
                planned_expense=e.planned_expense,
                actual_expense=e.actual_expense,
            )
            for e in expenses
        ]
        return build_expense_report(records, year, start_month, end_month)


# ── Singleton Instance ────────────────────────────────────────────────────
expense_service = ExpenseService()
