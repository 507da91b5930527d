"""OpsLedger Backend — Invoice Routes (/api/invoices)."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.enums import InvoiceStatus, OrderDirection
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceUpdate,
)
from app.services.invoice_service import ORDERABLE_FIELDS, InvoiceFilters, invoice_service
from app.services.pagination import MAX_TAKE, validate_order_field

router = APIRouter(prefix="/api/invoices", tags=["Invoices"])


@router.get(
    "",
    response_model=InvoiceListResponse,
    responses={400: {"description": "Invalid filter or pagination", "model": ErrorResponse}},
    summary="List invoices",
)
async def list_invoices(
    client: Optional[str] = Query(default=None, description="Substring of the client name"),
    invoice_status: Optional[InvoiceStatus] = Query(default=None),
    order_by_field: Optional[str] = Query(default=None),
    order_direction: OrderDirection = Query(default=OrderDirection.ASC),
    page: Optional[int] = Query(default=None, ge=1),
    take: Optional[int] = Query(default=None, ge=1, le=MAX_TAKE),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceListResponse:
    filters = InvoiceFilters(
        client=client,
        invoice_status=invoice_status,
        order_by_field=validate_order_field(order_by_field, ORDERABLE_FIELDS),
        order_direction=order_direction,
    )
    invoices, page_info = await invoice_service.list_invoices(db, filters, page, take)
    return InvoiceListResponse(
        page_info=page_info,
        invoices=[InvoiceResponse.model_validate(i) for i in invoices],
    )


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={404: {"description": "Invoice not found", "model": ErrorResponse}},
    summary="Get an invoice",
)
async def get_invoice(
    invoice_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await invoice_service.get_invoice(db, invoice_id))


@router.post(
    "",
    status_code=201,
    response_model=InvoiceResponse,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
    },
    summary="Create an invoice",
)
async def create_invoice(
    body: InvoiceCreate,
    _: User = Depends(require_admin("create invoices")),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await invoice_service.create_invoice(db, body))


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Invoice not found", "model": ErrorResponse},
    },
    summary="Update an invoice (partial)",
)
async def update_invoice(
    invoice_id: UUID,
    body: InvoiceUpdate,
    _: User = Depends(require_admin("update invoices")),
    db: AsyncSession = Depends(get_db_session),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await invoice_service.update_invoice(db, invoice_id, body))


@router.delete(
    "/{invoice_id}",
    status_code=204,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Invoice not found", "model": ErrorResponse},
    },
    summary="Delete an invoice",
)
async def delete_invoice(
    invoice_id: UUID,
    _: User = Depends(require_admin("delete invoices")),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await invoice_service.delete_invoice(db, invoice_id)
    return Response(status_code=204)
