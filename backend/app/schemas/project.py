"""
OpsLedger Backend — Project Schemas
=====================================

What:  Request/response models for /api/projects.

Rules enforced here:
    - name 3..15 characters
    - every date between 2000-01-01 and 2050-12-31
    - end date and actual end date not before the start date
    - no employee listed twice in one assignment list
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.enums import ProjectStatus, ProjectType, SalesChannel
from app.models.project import Project
from app.schemas.common import BusinessDate, PageInfo, ResourceName


def _check_dates(start: Optional[date], end: Optional[date], actual_end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValueError("End date must be after start date.")
    if start and actual_end and actual_end < start:
        raise ValueError("Actual end date must be after start date.")


class ProjectEmployeeIn(BaseModel):
    employee_id: uuid.UUID
    part_time: bool


def _check_unique_employees(employees: Optional[List[ProjectEmployeeIn]]):
    if employees:
        ids = [e.employee_id for e in employees]
        if len(set(ids)) != len(ids):
            raise ValueError("Some employees are duplicates.")
    return employees


class ProjectCreate(BaseModel):
    name: ResourceName
    description: str = Field(min_length=1, max_length=2000)
    start_date: BusinessDate
    end_date: BusinessDate
    actual_end_date: Optional[BusinessDate] = None
    project_type: ProjectType
    hourly_rate: float = Field(gt=0)
    project_value_bam: float = Field(gt=0)
    project_velocity: int = Field(default=0, ge=0)
    sales_channel: SalesChannel
    project_status: ProjectStatus = ProjectStatus.ACTIVE
    employees: List[ProjectEmployeeIn] = Field(default_factory=list)

    @field_validator("employees")
    @classmethod
    def check_unique_employees(cls, v):
        return _check_unique_employees(v)

    @model_validator(mode="after")
    def check_dates(self) -> "ProjectCreate":
        _check_dates(self.start_date, self.end_date, self.actual_end_date)
        return self


class ProjectUpdate(BaseModel):
    """Partial update; `employees`, when sent, replaces the whole assignment list."""
    name: Optional[ResourceName] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=2000)
    start_date: Optional[BusinessDate] = None
    end_date: Optional[BusinessDate] = None
    actual_end_date: Optional[BusinessDate] = None
    project_type: Optional[ProjectType] = None
    hourly_rate: Optional[float] = Field(default=None, gt=0)
    project_value_bam: Optional[float] = Field(default=None, gt=0)
    project_velocity: Optional[int] = Field(default=None, ge=0)
    sales_channel: Optional[SalesChannel] = None
    project_status: Optional[ProjectStatus] = None
    employees: Optional[List[ProjectEmployeeIn]] = None

    @field_validator("employees")
    @classmethod
    def check_unique_employees(cls, v):
        return _check_unique_employees(v)

    @model_validator(mode="after")
    def check_dates(self) -> "ProjectUpdate":
        _check_dates(self.start_date, self.end_date, self.actual_end_date)
        return self


class ProjectEmployeeOut(BaseModel):
    employee_id: uuid.UUID
    first_name: str
    last_name: str
    part_time: bool


class ProjectResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    start_date: date
    end_date: date
    actual_end_date: Optional[date] = None
    project_type: ProjectType
    hourly_rate: float
    project_value_bam: float
    project_velocity: int
    sales_channel: SalesChannel
    project_status: ProjectStatus
    created_at: datetime
    updated_at: datetime
    employees_count: int
    employees: List[ProjectEmployeeOut] = Field(default_factory=list)

    @classmethod
    def from_model(cls, project: Project) -> "ProjectResponse":
        """Build from a Project whose `employees` (and their employee) are loaded."""
        links = [
            link for link in project.employees
            if link.employee is not None and link.employee.deleted_at is None
        ]
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            start_date=project.start_date,
            end_date=project.end_date,
            actual_end_date=project.actual_end_date,
            project_type=project.project_type,
            hourly_rate=project.hourly_rate,
            project_value_bam=project.project_value_bam,
            project_velocity=project.project_velocity,
            sales_channel=project.sales_channel,
            project_status=project.project_status,
            created_at=project.created_at,
            updated_at=project.updated_at,
            employees_count=len(links),
            employees=[
                ProjectEmployeeOut(
                    employee_id=link.employee_id,
                    first_name=link.employee.first_name,
                    last_name=link.employee.last_name,
                    part_time=link.part_time,
                )
                for link in links
            ],
        )


class ProjectListResponse(BaseModel):
    page_info: PageInfo
    projects: List[ProjectResponse]
