"""
OpsLedger Backend — Employee Service
======================================

What:  Employee CRUD, the filtered/paginated listing, and the monthly
       utilization/labor-cost report.
Who:   Called by routes/employees.py.

Listing filters:
    search_term      matches first name, last name, or "first last"
    currency / department / tech_stack / is_employed   exact match
    hiring_date      standard: hired on/after;  inverted: hired before
    termination_date standard: terminated on/before;
                     inverted: still employed or terminated after
    order_by_field   first_name | last_name | department | salary | tech_stack

Employment lifecycle:
    is_employed → False sets termination_date to today. Former employees
    are never re-hired (400).
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import NotFoundError, ValidationError
from app.models.employee import Employee
from app.models.enums import (
    Currency,
    Department,
    OrderDirection,
    TechStack,
    is_valid_tech_stack,
)
from app.models.project import ProjectEmployee
from app.schemas.common import PageInfo
from app.schemas.employee import TECH_STACK_MESSAGE, EmployeeCreate, EmployeeUpdate
from app.services.file_service import ImageUpload, file_service
from app.services.pagination import paginate
from app.services.reporting import (
    Assignment,
    EmployeeRecord,
    UtilizationReport,
    build_utilization_report,
)

logger = logging.getLogger(__name__)

ORDERABLE_FIELDS = {
    "first_name": Employee.first_name,
    "last_name": Employee.last_name,
    "department": Employee.department,
    "salary": Employee.salary,
    "tech_stack": Employee.tech_stack,
}


@dataclass
class EmployeeFilters:
    search_term: Optional[str] = None
    currency: Optional[Currency] = None
    department: Optional[Department] = None
    tech_stack: Optional[TechStack] = None
    is_employed: Optional[bool] = None
    is_standard_date_filter: bool = True
    hiring_date: Optional[date] = None
    termination_date: Optional[date] = None
    order_by_field: Optional[str] = None
    order_direction: OrderDirection = OrderDirection.ASC


def _with_projects(query: Select) -> Select:
    return query.options(selectinload(Employee.projects).selectinload(ProjectEmployee.project))


def to_record(employee: Employee) -> EmployeeRecord:
    """Flatten an Employee (with loaded assignments) for the reporting layer."""
    return EmployeeRecord(
        department=employee.department,
        salary=employee.salary,
        currency=employee.currency,
        hiring_date=employee.hiring_date,
        termination_date=employee.termination_date,
        assignments=tuple(
            Assignment(
                part_time=link.part_time,
                start_date=link.project.start_date,
                end_date=link.project.end_date,
            )
            for link in employee.projects
            if link.project is not None and link.project.deleted_at is None
        ),
    )


class EmployeeService:

    def _filtered_query(self, filters: EmployeeFilters) -> Select:
        query = select(Employee).where(Employee.deleted_at.is_(None))

        term = (filters.search_term or "").strip()
        if term:
            pattern = f"%{term}%"
            conditions = [Employee.first_name.ilike(pattern), Employee.last_name.ilike(pattern)]
            parts = term.split()
            if len(parts) >= 2:
                conditions.append(
                    and_(
                        Employee.first_name.ilike(f"%{parts[0]}%"),
                        Employee.last_name.ilike(f"%{parts[1]}%"),
                    )
                )
            query = query.where(or_(*conditions))

        if filters.currency is not None:
            query = query.where(Employee.currency == filters.currency)
        if filters.department is not None:
            query = query.where(Employee.department == filters.department)
        if filters.tech_stack is not None:
            query = query.where(Employee.tech_stack == filters.tech_stack)
        if filters.is_employed is not None:
            query = query.where(Employee.is_employed.is_(filters.is_employed))

        if filters.hiring_date is not None:
            if filters.is_standard_date_filter:
                query = query.where(Employee.hiring_date >= filters.hiring_date)
            else:
                query = query.where(Employee.hiring_date < filters.hiring_date)

        if filters.termination_date is not None:
            if filters.is_standard_date_filter:
                query = query.where(Employee.termination_date <= filters.termination_date)
            else:
                query = query.where(
                    or_(
                        Employee.is_employed.is_(True),
                        Employee.termination_date > filters.termination_date,
                    )
                )

        if filters.order_by_field:
            column = ORDERABLE_FIELDS[filters.order_by_field]
            order = column.desc() if filters.order_direction == OrderDirection.DESC else column.asc()
            query = query.order_by(order, Employee.id)
        else:
            query = query.order_by(Employee.created_at.desc(), Employee.id)
        return query

    async def list_employees(
        self,
        db: AsyncSession,
        filters: EmployeeFilters,
        page: Optional[int] = None,
        take: Optional[int] = None,
    ) -> Tuple[List[Employee], PageInfo]:
        query = _with_projects(self._filtered_query(filters))
        return await paginate(db, query, page, take)

    async def get_employee(self, db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        result = await db.execute(
            _with_projects(
                select(Employee).where(
                    Employee.id == employee_id,
                    Employee.deleted_at.is_(None),
                )
            ).execution_options(populate_existing=True)
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", str(employee_id))
        return employee

    async def create_employee(
        self,
        db: AsyncSession,
        data: EmployeeCreate,
        image: Optional[ImageUpload] = None,
    ) -> Employee:
        image_url = await file_service.store_image(image) if image else None
        employee = Employee(
            first_name=data.first_name,
            last_name=data.last_name,
            image=image_url,
            department=data.department,
            salary=data.salary,
            currency=data.currency,
            tech_stack=data.tech_stack,
            hiring_date=data.hiring_date or date.today(),
        )
        db.add(employee)
        await db.flush()
        logger.info("Employee created: %s", employee.id)
        return await self.get_employee(db, employee.id)

    async def update_employee(
        self,
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        image: Optional[ImageUpload] = None,
    ) -> Employee:
        employee = await self.get_employee(db, employee_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        department = changes.get("department", employee.department)
        tech_stack = changes.get("tech_stack", employee.tech_stack)
        if not is_valid_tech_stack(department, tech_stack):
            raise ValidationError(message=TECH_STACK_MESSAGE, field="tech_stack")

        if "is_employed" in changes:
            is_employed = changes.pop("is_employed")
            if is_employed and not employee.is_employed:
                raise ValidationError(
                    message="We have no interest in rehiring former employees.",
                    field="is_employed",
                )
            if not is_employed and employee.is_employed:
                employee.is_employed = False
                employee.termination_date = date.today()

        for field, value in changes.items():
            setattr(employee, field, value)

        if image is not None:
            old_image = employee.image
            employee.image = await file_service.store_image(image)
            await file_service.delete_image(old_image)

        await db.flush()
        logger.info("Employee %s updated: %s", employee.id, sorted(data.model_fields_set))
        return await self.get_employee(db, employee.id)

    async def delete_employee(self, db: AsyncSession, employee_id: uuid.UUID) -> None:
        employee = await self.get_employee(db, employee_id)
        image = employee.image
        employee.deleted_at = datetime.now(timezone.utc)
        employee.image = None
        await db.flush()
        await file_service.delete_image(image)
        logger.info("Employee %s deleted", employee_id)

    async def utilization_report(
        self,
        db: AsyncSession,
        year: int,
        start_month: int = 1,
        end_month: int = 12,
    ) -> UtilizationReport:
        result = await db.execute(
            _with_projects(select(Employee).where(Employee.deleted_at.is_(None)))
        )
        records = [to_record(e) for e in result.scalars().all()]
        logger.debug("Building utilization report for %d over %d employees", year, len(records))
        return build_utilization_report(records, year, start_month, end_month)


# ── Singleton Instance ────────────────────────────────────────────────────
employee_service = EmployeeService()
