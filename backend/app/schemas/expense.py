"""
OpsLedger Backend — Expense & Expense Category Schemas
========================================================

What:  Request/response models for /api/expense-categories and /api/expenses.
       Expenses reference their category by name on input (matched
       case-insensitively) and embed the category on output.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.enums import Month
from app.schemas.common import BusinessYear, NonEmptyText, ResourceName


# ── Categories ────────────────────────────────────────────────────────────
class ExpenseCategoryCreate(BaseModel):
    name: ResourceName
    description: NonEmptyText


class ExpenseCategoryUpdate(BaseModel):
    name: Optional[ResourceName] = None
    description: Optional[NonEmptyText] = None


class ExpenseCategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ExpenseCategoryListResponse(BaseModel):
    expense_categories: List[ExpenseCategoryResponse]


# ── Expenses ──────────────────────────────────────────────────────────────
class ExpenseCreate(BaseModel):
    """
    A missing planned amount falls back to the actual amount and vice versa.
    For the Direct category the planned amount is always computed from
    project labor cost.
    """
    year: BusinessYear
    month: Month
    expense_category: NonEmptyText
    planned_expense: Optional[float] = Field(default=None, gt=0)
    actual_expense: Optional[float] = Field(default=None, gt=0)


class ExpenseUpdate(BaseModel):
    year: Optional[BusinessYear] = None
    month: Optional[Month] = None
    expense_category: Optional[NonEmptyText] = None
    planned_expense: Optional[float] = Field(default=None, gt=0)
    actual_expense: Optional[float] = Field(default=None, gt=0)


class ExpenseResponse(BaseModel):
    id: uuid.UUID
    year: int
    month: Month
    planned_expense: float
    actual_expense: float
    expense_category: ExpenseCategoryResponse
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ExpenseListResponse(BaseModel):
    expenses: List[ExpenseResponse]
