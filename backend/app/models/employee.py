"""
OpsLedger Backend — Employee Model
====================================

What:  ORM model for the `employees` table.
Why:   Employees carry the salary and employment window that drive every
       cost and utilization figure in the reporting layer.

Employment window:
    [hiring_date, termination_date) — termination_date is exclusive and NULL
    while the employee is still employed.
"""

import uuid
from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Date, Enum, Float, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, SoftDeleteMixin, TimestampMixin
from app.models.enums import Currency, Department, TechStack, sql_enum_values

if TYPE_CHECKING:
    from app.models.project import ProjectEmployee


class Employee(SoftDeleteMixin, TimestampMixin, Base):
    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, default=None)
    department: Mapped[Department] = mapped_column(
        Enum(Department, name="department", values_callable=sql_enum_values),
        nullable=False,
    )
    salary: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[Currency] = mapped_column(
        Enum(Currency, name="currency", values_callable=sql_enum_values),
        nullable=False,
        default=Currency.BAM,
    )
    tech_stack: Mapped[TechStack] = mapped_column(
        Enum(TechStack, name="tech_stack", values_callable=sql_enum_values),
        nullable=False,
    )
    hiring_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    termination_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True, default=None)
    is_employed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    projects: Mapped[List["ProjectEmployee"]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, name='{self.full_name}', department='{self.department.value}')>"
