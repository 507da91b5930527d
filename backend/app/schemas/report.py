"""
OpsLedger Backend — Report Schemas
====================================

What:  Response models for the three `/info` endpoints. They mirror the
       `as_dict()` output of the report objects in services/reporting.py.
"""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel


# ── Utilization (GET /api/employees/info) ─────────────────────────────────
class MonthlyUtilizationResponse(BaseModel):
    month: str
    total_hours_available: float
    total_hours_billed: float
    utilization: float
    development_cost: float
    design_cost: float
    other_cost: float
    total_cost: float


class UtilizationTotals(BaseModel):
    total_hours_available: float
    total_hours_billed: float
    utilization: float
    development_cost: float
    design_cost: float
    other_cost: float
    total_cost: float


class UtilizationReportResponse(BaseModel):
    year: int
    months: List[MonthlyUtilizationResponse]
    totals: UtilizationTotals


# ── Portfolio (GET /api/projects/info) ────────────────────────────────────
class ProjectFiguresResponse(BaseModel):
    name: str
    start_date: date
    end_date: date
    actual_end_date: Optional[date] = None
    hourly_rate: float
    project_velocity: int
    number_of_employees: int
    revenue: float
    cost: float
    profit: float


class PortfolioReportResponse(BaseModel):
    year: int
    total_projects: int
    total_value: float
    total_cost: float
    planned_cost: float
    gross_profit: float
    planned_revenue: float
    actual_revenue: float
    revenue_gap: float
    margin: float
    average_margin: float
    average_value: float
    average_rate: float
    average_velocity: float
    average_team_size: float
    weeks_over_deadline: float
    sales_channel_percentage: Dict[str, float]
    project_type_percentage: Dict[str, float]
    project_type_count: Dict[str, int]
    projects: List[ProjectFiguresResponse]


# ── Expense variance (GET /api/expenses/info) ─────────────────────────────
class MonthVarianceResponse(BaseModel):
    month: str
    planned_expense: float
    actual_expense: float
    variance: float


class CategoryVarianceResponse(BaseModel):
    category: str
    planned_expense: float
    actual_expense: float
    variance: float


class ExpenseReportResponse(BaseModel):
    year: int
    months: List[MonthVarianceResponse]
    categories: List[CategoryVarianceResponse]
    total_planned_expenses: float
    total_actual_expenses: float
    total_variance: float
