"""
OpsLedger Backend — Expense Routes
====================================

What:  /api/expenses: listing, the planned-vs-actual variance report, and
       admin-only create/update/delete.

Report window:
    GET /api/expenses/info?year=2024&start_date=2024-03-01&end_date=2024-06-30
    covers March through June 2024. Without dates the whole year is used.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.user import User
from app.schemas.common import MAX_BUSINESS_YEAR, MIN_BUSINESS_YEAR, ErrorResponse
from app.schemas.expense import (
    ExpenseCreate,
    ExpenseListResponse,
    ExpenseResponse,
    ExpenseUpdate,
)
from app.schemas.report import ExpenseReportResponse
from app.services.expense_service import expense_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/expenses", tags=["Expenses"])


@router.get("", response_model=ExpenseListResponse, summary="List expenses with their category")
async def list_expenses(
    year: Optional[int] = Query(default=None, ge=MIN_BUSINESS_YEAR, le=MAX_BUSINESS_YEAR),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseListResponse:
    expenses = await expense_service.list_expenses(db, year=year)
    return ExpenseListResponse(expenses=[ExpenseResponse.model_validate(e) for e in expenses])


@router.get(
    "/info",
    response_model=ExpenseReportResponse,
    responses={400: {"description": "Invalid year or date window", "model": ErrorResponse}},
    summary="Planned vs. actual expenses per month and category",
)
async def expense_info(
    year: Optional[int] = Query(
        default=None,
        ge=MIN_BUSINESS_YEAR,
        le=MAX_BUSINESS_YEAR,
        description="Defaults to the current year",
    ),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseReportResponse:
    report = await expense_service.expense_report(
        db, year or date.today().year, start_date, end_date
    )
    return ExpenseReportResponse.model_validate(report.as_dict())


@router.get(
    "/{expense_id}",
    response_model=ExpenseResponse,
    responses={404: {"description": "Expense not found", "model": ErrorResponse}},
    summary="Get an expense",
)
async def get_expense(
    expense_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseResponse:
    return ExpenseResponse.model_validate(await expense_service.get_expense(db, expense_id))


@router.post(
    "",
    status_code=201,
    response_model=ExpenseResponse,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Unknown expense category", "model": ErrorResponse},
        409: {"description": "Expense already booked for that month", "model": ErrorResponse},
    },
    summary="Book a monthly expense",
)
async def create_expense(
    body: ExpenseCreate,
    _: User = Depends(require_admin("create expenses")),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseResponse:
    return ExpenseResponse.model_validate(await expense_service.create_expense(db, body))


@router.patch(
    "/{expense_id}",
    response_model=ExpenseResponse,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Expense or category not found", "model": ErrorResponse},
        409: {"description": "Expense already booked for that month", "model": ErrorResponse},
    },
    summary="Update an expense (partial)",
)
async def update_expense(
    expense_id: UUID,
    body: ExpenseUpdate,
    _: User = Depends(require_admin("update expenses")),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseResponse:
    expense = await expense_service.update_expense(db, expense_id, body)
    return ExpenseResponse.model_validate(expense)


@router.delete(
    "/{expense_id}",
    status_code=204,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Expense not found", "model": ErrorResponse},
    },
    summary="Delete an expense",
)
async def delete_expense(
    expense_id: UUID,
    _: User = Depends(require_admin("delete expenses")),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await expense_service.delete_expense(db, expense_id)
    return Response(status_code=204)
