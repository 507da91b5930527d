"""
OpsLedger Backend — Expense Category & Expense Models
=======================================================

What:  ORM models for `expense_categories` and `expenses`.
Why:   Monthly planned-vs-actual bookkeeping; one expense row per
       (year, month, category). Uniqueness is checked in the service layer
       so a soft-deleted row never blocks re-creating the same slot.
"""

import uuid
from typing import List

from sqlalchemy import Enum, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, SoftDeleteMixin, TimestampMixin
from app.models.enums import Month, sql_enum_values


class ExpenseCategory(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "expense_categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    expenses: Mapped[List["Expense"]] = relationship(back_populates="expense_category")

    def __repr__(self) -> str:
        return f"<ExpenseCategory(id={self.id}, name='{self.name}')>"


class Expense(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "expenses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[Month] = mapped_column(
        Enum(Month, name="month", values_callable=sql_enum_values),
        nullable=False,
    )
    planned_expense: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    actual_expense: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    expense_category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("expense_categories.id"),
        nullable=False,
    )

    expense_category: Mapped[ExpenseCategory] = relationship(back_populates="expenses")

    __table_args__ = (
        Index("idx_expenses_year_month_category", "year", "month", "expense_category_id"),
    )

    @property
    def variance(self) -> float:
        return self.actual_expense - self.planned_expense
