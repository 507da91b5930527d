"""
OpsLedger Backend — Project Routes
====================================

What:  /api/projects: filtered listing, the yearly portfolio report, and
       admin-only create/update/delete. Bodies are JSON.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user, require_admin
from app.models.enums import OrderDirection, ProjectStatus, ProjectType, SalesChannel
from app.models.user import User
from app.schemas.common import MAX_BUSINESS_YEAR, MIN_BUSINESS_YEAR, ErrorResponse
from app.schemas.project import (
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdate,
)
from app.schemas.report import PortfolioReportResponse
from app.services.pagination import MAX_TAKE, validate_order_field
from app.services.project_service import ORDERABLE_FIELDS, ProjectFilters, project_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.get(
    "",
    response_model=ProjectListResponse,
    responses={400: {"description": "Invalid filter or pagination", "model": ErrorResponse}},
    summary="List projects",
)
async def list_projects(
    name: Optional[str] = Query(default=None, description="Substring of the project name"),
    start_date: Optional[date] = Query(default=None, description="Started on or after"),
    end_date: Optional[date] = Query(default=None, description="Ends on or before"),
    project_type: Optional[ProjectType] = Query(default=None),
    sales_channel: Optional[SalesChannel] = Query(default=None),
    project_status: Optional[ProjectStatus] = Query(default=None),
    order_by_field: Optional[str] = Query(default=None),
    order_direction: OrderDirection = Query(default=OrderDirection.ASC),
    page: Optional[int] = Query(default=None, ge=1),
    take: Optional[int] = Query(default=None, ge=1, le=MAX_TAKE),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProjectListResponse:
    filters = ProjectFilters(
        name=name,
        start_date=start_date,
        end_date=end_date,
        project_type=project_type,
        sales_channel=sales_channel,
        project_status=project_status,
        order_by_field=validate_order_field(order_by_field, ORDERABLE_FIELDS),
        order_direction=order_direction,
    )
    projects, page_info = await project_service.list_projects(db, filters, page, take)
    return ProjectListResponse(
        page_info=page_info,
        projects=[ProjectResponse.from_model(p) for p in projects],
    )


@router.get(
    "/info",
    response_model=PortfolioReportResponse,
    responses={400: {"description": "Year out of range", "model": ErrorResponse}},
    summary="Portfolio profitability for a year",
)
async def project_info(
    year: Optional[int] = Query(
        default=None,
        ge=MIN_BUSINESS_YEAR,
        le=MAX_BUSINESS_YEAR,
        description="Defaults to the current year",
    ),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PortfolioReportResponse:
    report = await project_service.portfolio_report(db, year or date.today().year)
    return PortfolioReportResponse.model_validate(report.as_dict())


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    responses={404: {"description": "Project not found", "model": ErrorResponse}},
    summary="Get a project",
)
async def get_project(
    project_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    return ProjectResponse.from_model(await project_service.get_project(db, project_id))


@router.post(
    "",
    status_code=201,
    response_model=ProjectResponse,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Unknown employee id", "model": ErrorResponse},
        409: {"description": "Project name already exists", "model": ErrorResponse},
    },
    summary="Create a project",
)
async def create_project(
    body: ProjectCreate,
    _: User = Depends(require_admin("create projects")),
    db: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    return ProjectResponse.from_model(await project_service.create_project(db, body))


@router.patch(
    "/{project_id}",
    response_model=ProjectResponse,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Project or employee not found", "model": ErrorResponse},
        409: {"description": "Project name already exists", "model": ErrorResponse},
    },
    summary="Update a project (partial)",
)
async def update_project(
    project_id: UUID,
    body: ProjectUpdate,
    _: User = Depends(require_admin("update projects")),
    db: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    return ProjectResponse.from_model(await project_service.update_project(db, project_id, body))


@router.delete(
    "/{project_id}",
    status_code=204,
    responses={
        403: {"description": "Admin only", "model": ErrorResponse},
        404: {"description": "Project not found", "model": ErrorResponse},
    },
    summary="Delete a project",
)
async def delete_project(
    project_id: UUID,
    _: User = Depends(require_admin("delete projects")),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await project_service.delete_project(db, project_id)
    return Response(status_code=204)
