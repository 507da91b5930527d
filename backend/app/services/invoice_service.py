"""OpsLedger Backend — Invoice Service: filtered listing and CRUD."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.enums import InvoiceStatus, OrderDirection
from app.models.invoice import Invoice
from app.schemas.common import PageInfo
from app.schemas.invoice import InvoiceCreate, InvoiceUpdate
from app.services.pagination import paginate

logger = logging.getLogger(__name__)

ORDERABLE_FIELDS = {
    "client": Invoice.client,
    "industry": Invoice.industry,
    "total_hours_billed": Invoice.total_hours_billed,
    "amount_billed_bam": Invoice.amount_billed_bam,
    "invoice_status": Invoice.invoice_status,
}


@dataclass
class InvoiceFilters:
    client: Optional[str] = None
    invoice_status: Optional[InvoiceStatus] = None
    order_by_field: Optional[str] = None
    order_direction: OrderDirection = OrderDirection.ASC


class InvoiceService:

    def _filtered_query(self, filters: InvoiceFilters) -> Select:
        query = select(Invoice).where(Invoice.deleted_at.is_(None))
        if filters.client:
            query = query.where(Invoice.client.ilike(f"%{filters.client.strip()}%"))
        if filters.invoice_status is not None:
            query = query.where(Invoice.invoice_status == filters.invoice_status)

        if filters.order_by_field:
            column = ORDERABLE_FIELDS[filters.order_by_field]
            order = column.desc() if filters.order_direction == OrderDirection.DESC else column.asc()
            return query.order_by(order, Invoice.id)
        return query.order_by(Invoice.created_at.desc(), Invoice.id)

    async def list_invoices(
        self,
        db: AsyncSession,
        filters: InvoiceFilters,
        page: Optional[int] = None,
        take: Optional[int] = None,
    ) -> Tuple[List[Invoice], PageInfo]:
        return await paginate(db, self._filtered_query(filters), page, take)

    async def get_invoice(self, db: AsyncSession, invoice_id: uuid.UUID) -> Invoice:
        result = await db.execute(
            select(Invoice).where(Invoice.id == invoice_id, Invoice.deleted_at.is_(None))
        )
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise NotFoundError("Invoice", str(invoice_id))
        return invoice

    async def create_invoice(self, db: AsyncSession, data: InvoiceCreate) -> Invoice:
        invoice = Invoice(**data.model_dump())
        db.add(invoice)
        await db.flush()
        await db.refresh(invoice)
        logger.info("Invoice created: %s (client=%s)", invoice.id, invoice.client)
        return invoice

    async def update_invoice(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
        data: InvoiceUpdate,
    ) -> Invoice:
        invoice = await self.get_invoice(db, invoice_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(invoice, field, value)
        await db.flush()
        await db.refresh(invoice)
        logger.info("Invoice %s updated: %s", invoice.id, sorted(data.model_fields_set))
        return invoice

    async def delete_invoice(self, db: AsyncSession, invoice_id: uuid.UUID) -> None:
        invoice = await self.get_invoice(db, invoice_id)
        invoice.deleted_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Invoice %s deleted", invoice_id)


# ── Singleton Instance ────────────────────────────────────────────────────
invoice_service = InvoiceService()
