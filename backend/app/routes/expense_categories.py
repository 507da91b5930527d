"""OpsLedger Backend — Expense Category Routes (/api/expense-categories)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.expense import (
    ExpenseCategoryCreate,
    ExpenseCategoryListResponse,
    ExpenseCategoryResponse,
    ExpenseCategoryUpdate,
)
from app.services.expense_category_service import expense_category_service

router = APIRouter(prefix="/api/expense-categories", tags=["Expense Categories"])


@router.get("", response_model=ExpenseCategoryListResponse, summary="List expense categories")
async def list_categories(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseCategoryListResponse:
    categories = await expense_category_service.list_categories(db)
    return ExpenseCategoryListResponse(
        expense_categories=[ExpenseCategoryResponse.model_validate(c) for c in categories]
    )


@router.get(
    "/{category_id}",
    response_model=ExpenseCategoryResponse,
    responses={404: {"description": "Category not found", "model": ErrorResponse}},
    summary="Get an expense category",
)
async def get_category(
    category_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseCategoryResponse:
    category = await expense_category_service.get_category(db, category_id)
    return ExpenseCategoryResponse.model_validate(category)


@router.post(
    "",
    status_code=201,
    response_model=ExpenseCategoryResponse,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        409: {"description": "Category name already exists", "model": ErrorResponse},
    },
    summary="Create an expense category",
)
async def create_category(
    body: ExpenseCategoryCreate,
    _: User = Depends(require_admin("create expense categories")),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseCategoryResponse:
    category = await expense_category_service.create_category(db, body)
    return ExpenseCategoryResponse.model_validate(category)


@router.patch(
    "/{category_id}",
    response_model=ExpenseCategoryResponse,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Category not found", "model": ErrorResponse},
        409: {"description": "Category name already exists", "model": ErrorResponse},
    },
    summary="Update an expense category",
)
async def update_category(
    category_id: UUID,
    body: ExpenseCategoryUpdate,
    _: User = Depends(require_admin("update expense categories")),
    db: AsyncSession = Depends(get_db_session),
) -> ExpenseCategoryResponse:
    category = await expense_category_service.update_category(db, category_id, body)
    return ExpenseCategoryResponse.model_validate(category)


@router.delete(
    "/{category_id}",
    status_code=204,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Category not found", "model": ErrorResponse},
    },
    summary="Delete an expense category",
)
async def delete_category(
    category_id: UUID,
    _: User = Depends(require_admin("delete expense categories")),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await expense_category_service.delete_category(db, category_id)
    return Response(status_code=204)
