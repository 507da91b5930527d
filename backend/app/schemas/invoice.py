"""OpsLedger Backend — Invoice Schemas."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.enums import InvoiceStatus
from app.schemas.common import NonEmptyText, PageInfo


class InvoiceCreate(BaseModel):
    client: NonEmptyText
    industry: NonEmptyText
    total_hours_billed: int = Field(gt=0)
    amount_billed_bam: float = Field(gt=0)
    invoice_status: InvoiceStatus


class InvoiceUpdate(BaseModel):
    client: Optional[NonEmptyText] = None
    industry: Optional[NonEmptyText] = None
    total_hours_billed: Optional[int] = Field(default=None, gt=0)
    amount_billed_bam: Optional[float] = Field(default=None, gt=0)
    invoice_status: Optional[InvoiceStatus] = None


class InvoiceResponse(BaseModel):
    id: uuid.UUID
    client: str
    industry: str
    total_hours_billed: int
    amount_billed_bam: float
    invoice_status: InvoiceStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InvoiceListResponse(BaseModel):
    page_info: PageInfo
    invoices: List[InvoiceResponse]
