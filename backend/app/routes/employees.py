"""
OpsLedger Backend — Employee Routes
=====================================

What:  /api/employees: filtered listing, the utilization report, and
       admin-only create/update/delete.
How:   Create and update are multipart so a profile image can travel with
       the fields; the fields are validated with the same pydantic models a
       JSON body would use.

Note:  /info is declared before /{employee_id} so it is not captured as an id.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.enums import Currency, Department, OrderDirection, TechStack
from app.models.user import User
from app.routes.forms import build_model, read_image
from app.schemas.common import MAX_BUSINESS_YEAR, MIN_BUSINESS_YEAR, ErrorResponse
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeUpdate,
)
from app.schemas.report import UtilizationReportResponse
from app.services.employee_service import ORDERABLE_FIELDS, EmployeeFilters, employee_service
from app.services.pagination import MAX_TAKE, validate_order_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/employees", tags=["Employees"])


@router.get(
    "",
    response_model=EmployeeListResponse,
    responses={400: {"description": "Invalid filter or pagination", "model": ErrorResponse}},
    summary="List employees",
)
async def list_employees(
    search_term: Optional[str] = Query(default=None, description="First name, last name or 'first last'"),
    currency: Optional[Currency] = Query(default=None),
    department: Optional[Department] = Query(default=None),
    tech_stack: Optional[TechStack] = Query(default=None),
    is_employed: Optional[bool] = Query(default=None),
    is_standard_date_filter: bool = Query(
        default=True,
        description="false inverts the hiring/termination date filters",
    ),
    hiring_date: Optional[date] = Query(default=None),
    termination_date: Optional[date] = Query(default=None),
    order_by_field: Optional[str] = Query(default=None),
    order_direction: OrderDirection = Query(default=OrderDirection.ASC),
    page: Optional[int] = Query(default=None, ge=1),
    take: Optional[int] = Query(default=None, ge=1, le=MAX_TAKE),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EmployeeListResponse:
    filters = EmployeeFilters(
        search_term=search_term,
        currency=currency,
        department=department,
        tech_stack=tech_stack,
        is_employed=is_employed,
        is_standard_date_filter=is_standard_date_filter,
        hiring_date=hiring_date,
        termination_date=termination_date,
        order_by_field=validate_order_field(order_by_field, ORDERABLE_FIELDS),
        order_direction=order_direction,
    )
    employees, page_info = await employee_service.list_employees(db, filters, page, take)
    return EmployeeListResponse(
        page_info=page_info,
        employees=[EmployeeResponse.from_model(e) for e in employees],
    )


@router.get(
    "/info",
    response_model=UtilizationReportResponse,
    responses={400: {"description": "Year out of range", "model": ErrorResponse}},
    summary="Monthly utilization and labor cost for a year",
)
async def employee_info(
    year: Optional[int] = Query(
        default=None,
        ge=MIN_BUSINESS_YEAR,
        le=MAX_BUSINESS_YEAR,
        description="Defaults to the current year",
    ),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UtilizationReportResponse:
    report = await employee_service.utilization_report(db, year or date.today().year)
    return UtilizationReportResponse.model_validate(report.as_dict())


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"description": "Employee not found", "model": ErrorResponse}},
    summary="Get an employee",
)
async def get_employee(
    employee_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EmployeeResponse:
    return EmployeeResponse.from_model(await employee_service.get_employee(db, employee_id))


@router.post(
    "",
    status_code=201,
    response_model=EmployeeResponse,
    responses={
        400: {"description": "Invalid input or image", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
    },
    summary="Create an employee (multipart)",
)
async def create_employee(
    first_name: str = Form(...),
    last_name: str = Form(...),
    department: str = Form(...),
    salary: str = Form(...),
    tech_stack: str = Form(...),
    currency: Optional[str] = Form(default=None),
    hiring_date: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    _: User = Depends(require_admin("create employees")),
    db: AsyncSession = Depends(get_db_session),
) -> EmployeeResponse:
    data = build_model(
        EmployeeCreate,
        {
            "first_name": first_name,
            "last_name": last_name,
            "department": department,
            "salary": salary,
            "currency": currency,
            "tech_stack": tech_stack,
            "hiring_date": hiring_date,
        },
    )
    employee = await employee_service.create_employee(db, data, await read_image(image))
    return EmployeeResponse.from_model(employee)


@router.patch(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={
        400: {"description": "Invalid input, or re-hiring a former employee", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Employee not found", "model": ErrorResponse},
    },
    summary="Update an employee (multipart, partial)",
)
async def update_employee(
    employee_id: UUID,
    first_name: Optional[str] = Form(default=None),
    last_name: Optional[str] = Form(default=None),
    department: Optional[str] = Form(default=None),
    salary: Optional[str] = Form(default=None),
    currency: Optional[str] = Form(default=None),
    tech_stack: Optional[str] = Form(default=None),
    hiring_date: Optional[str] = Form(default=None),
    is_employed: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    _: User = Depends(require_admin("update employees")),
    db: AsyncSession = Depends(get_db_session),
) -> EmployeeResponse:
    data = build_model(
        EmployeeUpdate,
        {
            "first_name": first_name,
            "last_name": last_name,
            "department": department,
            "salary": salary,
            "currency": currency,
            "tech_stack": tech_stack,
            "hiring_date": hiring_date,
            "is_employed": is_employed,
        },
    )
    employee = await employee_service.update_employee(db, employee_id, data, await read_image(image))
    return EmployeeResponse.from_model(employee)


@router.delete(
    "/{employee_id}",
    status_code=204,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Employee not found", "model": ErrorResponse},
    },
    summary="Delete an employee",
)
async def delete_employee(
    employee_id: UUID,
    _: User = Depends(require_admin("delete employees")),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await employee_service.delete_employee(db, employee_id)
    return Response(status_code=204)
