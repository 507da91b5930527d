"""
OpsLedger Backend — Employee Schemas
======================================

What:  Request/response models for /api/employees.

Department / tech stack rule:
    Administration → AdminNA, Management → MgmtNA,
    Development → FullStack | Backend | Frontend, Design → UXUI.
    Create requests are checked here; partial updates are checked by the
    service against the merged record.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from app.models.employee import Employee
from app.models.enums import Currency, Department, TechStack, is_valid_tech_stack
from app.schemas.common import BusinessDate, PageInfo, PersonName

TECH_STACK_MESSAGE = "Tech stack is not valid for the selected department."


class EmployeeProjectRef(BaseModel):
    project_id: uuid.UUID
    name: str
    part_time: bool


class EmployeeResponse(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    image: Optional[str] = None
    department: Department
    salary: float
    currency: Currency
    tech_stack: TechStack
    hiring_date: date
    termination_date: Optional[date] = None
    is_employed: bool
    created_at: datetime
    updated_at: datetime
    projects: List[EmployeeProjectRef] = Field(default_factory=list)

    @classmethod
    def from_model(cls, employee: Employee) -> "EmployeeResponse":
        """Build from an Employee whose `projects` (and their project) are loaded."""
        return cls(
            id=employee.id,
            first_name=employee.first_name,
            last_name=employee.last_name,
            image=employee.image,
            department=employee.department,
            salary=employee.salary,
            currency=employee.currency,
            tech_stack=employee.tech_stack,
            hiring_date=employee.hiring_date,
            termination_date=employee.termination_date,
            is_employed=employee.is_employed,
            created_at=employee.created_at,
            updated_at=employee.updated_at,
            projects=[
                EmployeeProjectRef(
                    project_id=link.project_id,
                    name=link.project.name,
                    part_time=link.part_time,
                )
                for link in employee.projects
                if link.project is not None and link.project.deleted_at is None
            ],
        )


class EmployeeListResponse(BaseModel):
    page_info: PageInfo
    employees: List[EmployeeResponse]


class EmployeeCreate(BaseModel):
    first_name: PersonName
    last_name: PersonName
    department: Department
    salary: float = Field(gt=0)
    currency: Currency = Currency.BAM
    tech_stack: TechStack
    hiring_date: Optional[BusinessDate] = None

    @model_validator(mode="after")
    def check_tech_stack(self) -> "EmployeeCreate":
        if not is_valid_tech_stack(self.department, self.tech_stack):
            raise ValueError(TECH_STACK_MESSAGE)
        return self


class EmployeeUpdate(BaseModel):
    first_name: Optional[PersonName] = None
    last_name: Optional[PersonName] = None
    department: Optional[Department] = None
    salary: Optional[float] = Field(default=None, gt=0)
    currency: Optional[Currency] = None
    tech_stack: Optional[TechStack] = None
    hiring_date: Optional[BusinessDate] = None
    is_employed: Optional[bool] = None
