"""
OpsLedger Backend — Invoice Model
===================================

What:  ORM model for the `invoices` table; amounts are stored in the base
       currency (BAM).
"""

import uuid

from sqlalchemy import Enum, Float, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, SoftDeleteMixin, TimestampMixin
from app.models.enums import InvoiceStatus, sql_enum_values


class Invoice(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    industry: Mapped[str] = mapped_column(String(100), nullable=False)
    total_hours_billed: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_billed_bam: Mapped[float] = mapped_column(Float, nullable=False)
    invoice_status: Mapped[InvoiceStatus] = mapped_column(
        Enum(InvoiceStatus, name="invoice_status", values_callable=sql_enum_values),
        nullable=False,
        default=InvoiceStatus.NOT_SENT,
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, client='{self.client}', status='{self.invoice_status.value}')>"
