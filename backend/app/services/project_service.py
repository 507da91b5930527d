"""
OpsLedger Backend — Project Service
=====================================

What:  Project CRUD with assignment lists, the filtered/paginated listing,
       and the yearly portfolio report.
Who:   Called by routes/projects.py; expense_service also borrows
       `active_project_records` for the Direct expense calculation.

Rules:
    - names are unique case-insensitively among live projects (409)
    - a Completed project's actual end date is its end date
    - assignment lists reference live employees only (404 otherwise)
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.employee import Employee
from app.models.enums import OrderDirection, ProjectStatus, ProjectType, SalesChannel
from app.models.project import Project, ProjectEmployee
from app.schemas.common import PageInfo
from app.schemas.project import ProjectCreate, ProjectEmployeeIn, ProjectUpdate
from app.services.pagination import paginate
from app.services.reporting import (
    PortfolioReport,
    ProjectRecord,
    StaffingRecord,
    build_portfolio_report,
)

logger = logging.getLogger(__name__)

ORDERABLE_FIELDS = {
    "name": Project.name,
    "description": Project.description,
    "start_date": Project.start_date,
    "end_date": Project.end_date,
    "actual_end_date": Project.actual_end_date,
    "project_type": Project.project_type,
    "hourly_rate": Project.hourly_rate,
    "project_value_bam": Project.project_value_bam,
    "project_velocity": Project.project_velocity,
    "sales_channel": Project.sales_channel,
    "project_status": Project.project_status,
    "employees_count": None,
}


@dataclass
class ProjectFilters:
    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    project_type: Optional[ProjectType] = None
    sales_channel: Optional[SalesChannel] = None
    project_status: Optional[ProjectStatus] = None
    order_by_field: Optional[str] = None
    order_direction: OrderDirection = OrderDirection.ASC


def _with_employees(query: Select) -> Select:
    return query.options(selectinload(Project.employees).selectinload(ProjectEmployee.employee))


def to_record(project: Project) -> ProjectRecord:
    """Flatten a Project (with loaded assignments) for the reporting layer."""
    return ProjectRecord(
        name=project.name,
        start_date=project.start_date,
        end_date=project.end_date,
        actual_end_date=project.actual_end_date,
        project_type=project.project_type,
        sales_channel=project.sales_channel,
        project_status=project.project_status,
        hourly_rate=project.hourly_rate,
        project_value_bam=project.project_value_bam,
        project_velocity=project.project_velocity,
        staffing=tuple(
            StaffingRecord(
                salary=link.employee.salary,
                currency=link.employee.currency,
                part_time=link.part_time,
            )
            for link in project.employees
            if link.employee is not None and link.employee.deleted_at is None
        ),
    )


def _live_projects() -> Select:
    return select(Project).where(Project.deleted_at.is_(None))


class ProjectService:

    # ── Queries ───────────────────────────────────────────────────────────
    def _filtered_query(self, filters: ProjectFilters) -> Select:
        query = _live_projects()
        if filters.name:
            query = query.where(Project.name.ilike(f"%{filters.name.strip()}%"))
        if filters.start_date is not None:
            query = query.where(Project.start_date >= filters.start_date)
        if filters.end_date is not None:
            query = query.where(Project.end_date <= filters.end_date)
        if filters.project_type is not None:
            query = query.where(Project.project_type == filters.project_type)
        if filters.sales_channel is not None:
            query = query.where(Project.sales_channel == filters.sales_channel)
        if filters.project_status is not None:
            query = query.where(Project.project_status == filters.project_status)

        descending = filters.order_direction == OrderDirection.DESC
        if filters.order_by_field == "employees_count":
            count = (
                select(func.count(ProjectEmployee.id))
                .join(Employee, Employee.id == ProjectEmployee.employee_id)
                .where(
                    ProjectEmployee.project_id == Project.id,
                    Employee.deleted_at.is_(None),
                )
                .correlate(Project)
                .scalar_subquery()
            )
            query = query.order_by(count.desc() if descending else count.asc(), Project.id)
        elif filters.order_by_field:
            column = ORDERABLE_FIELDS[filters.order_by_field]
            query = query.order_by(column.desc() if descending else column.asc(), Project.id)
        else:
            query = query.order_by(Project.start_date.desc(), Project.id)
        return query

    async def list_projects(
        self,
        db: AsyncSession,
        filters: ProjectFilters,
        page: Optional[int] = None,
        take: Optional[int] = None,
    ) -> Tuple[List[Project], PageInfo]:
        return await paginate(db, _with_employees(self._filtered_query(filters)), page, take)

    async def get_project(self, db: AsyncSession, project_id: uuid.UUID) -> Project:
        result = await db.execute(
            _with_employees(_live_projects().where(Project.id == project_id))
            .execution_options(populate_existing=True)
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project", str(project_id))
        return project

    async def active_project_records(
        self,
        db: AsyncSession,
        start: date,
        end: date,
    ) -> List[ProjectRecord]:
        """Live projects whose [start_date, end_date] overlaps [start, end]."""
        result = await db.execute(
            _with_employees(
                _live_projects().where(Project.start_date <= end, Project.end_date >= start)
            )
        )
        return [to_record(p) for p in result.scalars().all()]

    # ── Validation helpers ────────────────────────────────────────────────
    async def _ensure_unique_name(
        self,
        db: AsyncSession,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = _live_projects().where(func.lower(Project.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Project.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("Project", context={"name": name})

    async def _build_assignments(
        self,
        db: AsyncSession,
        employees: Sequence[ProjectEmployeeIn],
    ) -> List[ProjectEmployee]:
        if not employees:
            return []
        ids = [e.employee_id for e in employees]
        result = await db.execute(
            select(Employee.id).where(Employee.id.in_(ids), Employee.deleted_at.is_(None))
        )
        found = set(result.scalars().all())
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise NotFoundError("Employee", missing[0], context={"missing": missing})
        return [ProjectEmployee(employee_id=e.employee_id, part_time=e.part_time) for e in employees]

    # ── Mutations ─────────────────────────────────────────────────────────
    async def create_project(self, db: AsyncSession, data: ProjectCreate) -> Project:
        await self._ensure_unique_name(db, data.name)
        values = data.model_dump(exclude={"employees"})
        if data.project_status == ProjectStatus.COMPLETED and data.actual_end_date is None:
            values["actual_end_date"] = data.end_date

        project = Project(**values)
        project.employees = await self._build_assignments(db, data.employees)
        db.add(project)
        await db.flush()
        logger.info("Project created: %s (%d employees)", project.id, len(data.employees))
        return await self.get_project(db, project.id)

    async def update_project(
        self,
        db: AsyncSession,
        project_id: uuid.UUID,
        data: ProjectUpdate,
    ) -> Project:
        project = await self.get_project(db, project_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True, exclude={"employees"}).items()
            if value is not None or field == "actual_end_date"
        }

        if "name" in changes and changes["name"].lower() != project.name.lower():
            await self._ensure_unique_name(db, changes["name"], exclude_id=project.id)

        start = changes.get("start_date", project.start_date)
        end = changes.get("end_date", project.end_date)
        # Completing a project stamps the planned end unless the real one is given.
        if (
            changes.get("project_status") == ProjectStatus.COMPLETED
            and project.project_status != ProjectStatus.COMPLETED
            and "actual_end_date" not in changes
        ):
            changes["actual_end_date"] = end
        actual_end = changes.get("actual_end_date", project.actual_end_date)
        if end < start:
            raise ValidationError(message="End date must be after start date.", field="end_date")
        if actual_end is not None and actual_end < start:
            raise ValidationError(
                message="Actual end date must be after start date.",
                field="actual_end_date",
            )

        for field, value in changes.items():
            setattr(project, field, value)

        if data.employees is not None:
            links = await self._build_assignments(db, data.employees)
            # Old rows must be gone before re-inserting the same (project, employee) pairs.
            project.employees.clear()
            await db.flush()
            project.employees.extend(links)

        await db.flush()
        logger.info("Project %s updated: %s", project.id, sorted(data.model_fields_set))
        return await self.get_project(db, project.id)

    async def delete_project(self, db: AsyncSession, project_id: uuid.UUID) -> None:
        project = await self.get_project(db, project_id)
        project.deleted_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Project %s deleted", project_id)

    # ── Reporting ─────────────────────────────────────────────────────────
    async def portfolio_report(self, db: AsyncSession, year: int) -> PortfolioReport:
        records = await self.active_project_records(db, date(year, 1, 1), date(year, 12, 31))
        return build_portfolio_report(records, year)


# ── Singleton Instance ────────────────────────────────────────────────────
project_service = ProjectService()
