"""
OpsLedger Backend — Financial & Utilization Reporting
=======================================================

What:  Pure, synchronous aggregation functions behind the three `/info`
       endpoints: monthly utilization and labor cost, project portfolio
       profitability, and planned-vs-actual expense variance.
Why:   Every number on the dashboards is derived here from records the
       services have already fetched, so the arithmetic can be tested
       without a database and re-running it on the same input gives the
       same output.
How:   Services convert ORM rows into the frozen dataclasses below
       (EmployeeRecord, ProjectRecord, ExpenseRecord) and call a `build_*`
       function; the returned report objects expose `as_dict()` for the
       response schema.
Who:   employee_service, project_service, expense_service.

Conventions:
    - Amounts are converted to the base currency (BAM) before summing.
    - Employment intervals are half-open: [hiring_date, termination_date).
    - Project/assignment intervals are closed: [start_date, end_date].
    - Working days are Monday to Friday; one working day is 8 hours.
    - A full-time assignment weighs 1.0, a part-time one 0.5, and the
      combined allocation of an employee is capped at 1.0.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.models.enums import (
    Currency,
    Department,
    Month,
    ProjectStatus,
    ProjectType,
    SalesChannel,
)

# ── Constants ─────────────────────────────────────────────────────────────
CONVERSION_FACTORS: Dict[Currency, float] = {
    Currency.BAM: 1.0,
    Currency.USD: 1.78,
    Currency.EUR: 1.95,
}

HOURS_PER_WORKING_DAY = 8
FULL_TIME_WEIGHT = 1.0
PART_TIME_WEIGHT = 0.5
MAX_ALLOCATION = 1.0

_WEEKEND = (5, 6)  # date.weekday(): Saturday, Sunday


def convert_to_base_currency(amount: float, currency: Currency) -> float:
    """Scale an amount into BAM. Linear: f(a + b) == f(a) + f(b)."""
    return amount * CONVERSION_FACTORS[Currency(currency)]


def assignment_weight(part_time: bool) -> float:
    return PART_TIME_WEIGHT if part_time else FULL_TIME_WEIGHT


def capped_allocation(weights: Iterable[float]) -> float:
    """Combined allocation of concurrent assignments, never above one full day."""
    return min(MAX_ALLOCATION, sum(weights))


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First day of the month and first day of the following month."""
    first = date(year, month, 1)
    last_day = calendar.monthrange(year, month)[1]
    return first, first + timedelta(days=last_day)


def last_day_of_month(year: int, month: int) -> date:
    return month_bounds(year, month)[1] - timedelta(days=1)


def iter_working_days(start: date, end_exclusive: date):
    current = start
    while current < end_exclusive:
        if current.weekday() not in _WEEKEND:
            yield current
        current += timedelta(days=1)


def _check_month_window(start_month: int, end_month: int) -> None:
    if not 1 <= start_month <= end_month <= 12:
        raise ValueError(
            f"Invalid month window {start_month}..{end_month}; expected 1 <= start <= end <= 12"
        )


# ══════════════════════════════════════════════════════════════════════════
# Utilization & Department Labor Cost
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Assignment:
    """One project assignment of an employee, with the project's date range."""

    part_time: bool
    start_date: date
    end_date: date

    @property
    def weight(self) -> float:
        return assignment_weight(self.part_time)

    def is_active_on(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, start: date, end_exclusive: date) -> bool:
        return self.start_date < end_exclusive and self.end_date >= start


@dataclass(frozen=True)
class EmployeeRecord:
    department: Department
    salary: float
    currency: Currency
    hiring_date: date
    termination_date: Optional[date] = None
    assignments: Tuple[Assignment, ...] = ()

    @property
    def base_salary(self) -> float:
        return convert_to_base_currency(self.salary, self.currency)

    def employment_window(self, start: date, end_exclusive: date) -> Optional[Tuple[date, date]]:
        """Intersection of [hiring, termination) with [start, end_exclusive), or None."""
        lo = max(self.hiring_date, start)
        hi = end_exclusive
        if self.termination_date is not None:
            hi = min(hi, self.termination_date)
        if lo >= hi:
            return None
        return lo, hi


@dataclass(frozen=True)
class MonthlyUtilization:
    month: Month
    days_available: float = 0.0
    days_billed: float = 0.0
    development_cost: float = 0.0
    design_cost: float = 0.0
    other_cost: float = 0.0

    @property
    def hours_available(self) -> float:
        return self.days_available * HOURS_PER_WORKING_DAY

    @property
    def hours_billed(self) -> float:
        return self.days_billed * HOURS_PER_WORKING_DAY

    @property
    def total_cost(self) -> float:
        return self.development_cost + self.design_cost + self.other_cost

    @property
    def utilization(self) -> float:
        if not self.days_available:
            return 0.0
        return self.days_billed / self.days_available

    def as_dict(self) -> dict:
        return {
            "month": self.month.value,
            "total_hours_available": self.hours_available,
            "total_hours_billed": self.hours_billed,
            "utilization": self.utilization,
            "development_cost": self.development_cost,
            "design_cost": self.design_cost,
            "other_cost": self.other_cost,
            "total_cost": self.total_cost,
        }


@dataclass(frozen=True)
class UtilizationReport:
    year: int
    months: Tuple[MonthlyUtilization, ...] = field(default_factory=tuple)

    @property
    def total_hours_available(self) -> float:
        return sum(m.hours_available for m in self.months)

    @property
    def total_hours_billed(self) -> float:
        return sum(m.hours_billed for m in self.months)

    @property
    def development_cost(self) -> float:
        return sum(m.development_cost for m in self.months)

    @property
    def design_cost(self) -> float:
        return sum(m.design_cost for m in self.months)

    @property
    def other_cost(self) -> float:
        return sum(m.other_cost for m in self.months)

    @property
    def total_cost(self) -> float:
        return sum(m.total_cost for m in self.months)

    @property
    def utilization(self) -> float:
        available = self.total_hours_available
        return self.total_hours_billed / available if available else 0.0

    def as_dict(self) -> dict:
        return {
            "year": self.year,
            "months": [m.as_dict() for m in self.months],
            "totals": {
                "total_hours_available": self.total_hours_available,
                "total_hours_billed": self.total_hours_billed,
                "utilization": self.utilization,
                "development_cost": self.development_cost,
                "design_cost": self.design_cost,
                "other_cost": self.other_cost,
                "total_cost": self.total_cost,
            },
        }


def _cost_bucket(department: Department) -> str:
    if department == Department.DEVELOPMENT:
        return "development"
    if department == Department.DESIGN:
        return "design"
    return "other"


def compute_month_utilization(
    employees: Sequence[EmployeeRecord],
    year: int,
    month: int,
) -> MonthlyUtilization:
    """
    Available/billed working days and department labor cost for one month.

    For each employee whose employment window intersects the month:
        - every weekday inside the window is one available day
        - the day's billed credit is the capped allocation of the
          assignments active on that day (1 full-time or 2 part-time = 1.0,
          a single part-time = 0.5)
        - if any assignment overlaps the window, the month's base-currency
          salary times the capped allocation of those assignments is added
          to the employee's department bucket
    """
    start, end_exclusive = month_bounds(year, month)
    days_available = 0.0
    days_billed = 0.0
    costs = {"development": 0.0, "design": 0.0, "other": 0.0}

    for employee in employees:
        window = employee.employment_window(start, end_exclusive)
        if window is None:
            continue
        lo, hi = window

        for day in iter_working_days(lo, hi):
            days_available += 1
            days_billed += capped_allocation(
                a.weight for a in employee.assignments if a.is_active_on(day)
            )

        overlapping = [a for a in employee.assignments if a.overlaps(lo, hi)]
        if overlapping:
            allocation = capped_allocation(a.weight for a in overlapping)
            costs[_cost_bucket(employee.department)] += employee.base_salary * allocation

    return MonthlyUtilization(
        month=Month.from_number(month),
        days_available=days_available,
        days_billed=days_billed,
        development_cost=costs["development"],
        design_cost=costs["design"],
        other_cost=costs["other"],
    )


def build_utilization_report(
    employees: Sequence[EmployeeRecord],
    year: int,
    start_month: int = 1,
    end_month: int = 12,
) -> UtilizationReport:
    _check_month_window(start_month, end_month)
    months = tuple(
        compute_month_utilization(employees, year, month)
        for month in range(start_month, end_month + 1)
    )
    return UtilizationReport(year=year, months=months)


# ══════════════════════════════════════════════════════════════════════════
# Project Profitability
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StaffingRecord:
    """Salary of one employee assigned to a project."""

    salary: float
    currency: Currency
    part_time: bool

    @property
    def monthly_cost(self) -> float:
        return convert_to_base_currency(self.salary, self.currency) * assignment_weight(self.part_time)


@dataclass(frozen=True)
class ProjectRecord:
    name: str
    start_date: date
    end_date: date
    project_type: ProjectType
    sales_channel: SalesChannel
    project_status: ProjectStatus
    hourly_rate: float
    project_value_bam: float
    project_velocity: int = 0
    actual_end_date: Optional[date] = None
    staffing: Tuple[StaffingRecord, ...] = ()

    @property
    def cost(self) -> float:
        return sum(s.monthly_cost for s in self.staffing)

    @property
    def revenue(self) -> float:
        return self.project_value_bam

    @property
    def profit(self) -> float:
        return self.revenue - self.cost

    @property
    def weeks_over_deadline(self) -> float:
        if self.actual_end_date is None or self.actual_end_date < self.end_date:
            return 0.0
        return (self.actual_end_date - self.end_date).days / 7

    def overlaps(self, start: date, end_inclusive: date) -> bool:
        return self.start_date <= end_inclusive and self.end_date >= start

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "actual_end_date": self.actual_end_date.isoformat() if self.actual_end_date else None,
            "hourly_rate": self.hourly_rate,
            "project_velocity": self.project_velocity,
            "number_of_employees": len(self.staffing),
            "revenue": self.revenue,
            "cost": self.cost,
            "profit": self.profit,
        }


def _percentages(counts: Dict[str, int], total: int) -> Dict[str, float]:
    if not total:
        return {key: 0.0 for key in counts}
    return {key: count / total * 100 for key, count in counts.items()}


@dataclass(frozen=True)
class PortfolioReport:
    year: int
    projects: Tuple[ProjectRecord, ...] = ()

    @property
    def total_projects(self) -> int:
        return len(self.projects)

    @property
    def total_value(self) -> float:
        return sum(p.revenue for p in self.projects)

    @property
    def total_cost(self) -> float:
        return sum(p.cost for p in self.projects)

    @property
    def gross_profit(self) -> float:
        return self.total_value - self.total_cost

    @property
    def planned_revenue(self) -> float:
        return self.total_value

    @property
    def actual_revenue(self) -> float:
        return sum(p.revenue for p in self.projects if p.project_status == ProjectStatus.COMPLETED)

    @property
    def revenue_gap(self) -> float:
        return self.planned_revenue - self.actual_revenue

    @property
    def margin(self) -> float:
        """Gross profit as a percentage of labor cost."""
        cost = self.total_cost
        return self.gross_profit / cost * 100 if cost else 0.0

    def _average(self, values: Iterable[float]) -> float:
        return sum(values) / self.total_projects if self.total_projects else 0.0

    @property
    def average_margin(self) -> float:
        return self.gross_profit / self.total_projects if self.total_projects else 0.0

    @property
    def average_value(self) -> float:
        return self._average(p.revenue for p in self.projects)

    @property
    def average_rate(self) -> float:
        return self._average(p.hourly_rate for p in self.projects)

    @property
    def average_velocity(self) -> float:
        return self._average(p.project_velocity for p in self.projects)

    @property
    def average_team_size(self) -> float:
        return self._average(len(p.staffing) for p in self.projects)

    @property
    def weeks_over_deadline(self) -> float:
        return sum(p.weeks_over_deadline for p in self.projects)

    @property
    def project_type_count(self) -> Dict[str, int]:
        counts = {t.value: 0 for t in ProjectType}
        for p in self.projects:
            counts[ProjectType(p.project_type).value] += 1
        return counts

    @property
    def sales_channel_percentage(self) -> Dict[str, float]:
        counts = {c.value: 0 for c in SalesChannel}
        for p in self.projects:
            counts[SalesChannel(p.sales_channel).value] += 1
        return _percentages(counts, self.total_projects)

    @property
    def project_type_percentage(self) -> Dict[str, float]:
        return _percentages(self.project_type_count, self.total_projects)

    def as_dict(self) -> dict:
        return {
            "year": self.year,
            "total_projects": self.total_projects,
            "total_value": self.total_value,
            "total_cost": self.total_cost,
            "planned_cost": self.total_cost,
            "gross_profit": self.gross_profit,
            "planned_revenue": self.planned_revenue,
            "actual_revenue": self.actual_revenue,
            "revenue_gap": self.revenue_gap,
            "margin": self.margin,
            "average_margin": self.average_margin,
            "average_value": self.average_value,
            "average_rate": self.average_rate,
            "average_velocity": self.average_velocity,
            "average_team_size": self.average_team_size,
            "weeks_over_deadline": self.weeks_over_deadline,
            "sales_channel_percentage": self.sales_channel_percentage,
            "project_type_percentage": self.project_type_percentage,
            "project_type_count": self.project_type_count,
            "projects": [p.as_dict() for p in self.projects],
        }


def build_portfolio_report(projects: Iterable[ProjectRecord], year: int) -> PortfolioReport:
    """Portfolio figures for the projects whose date range overlaps `year`."""
    year_start, year_end = date(year, 1, 1), date(year, 12, 31)
    selected = tuple(p for p in projects if p.overlaps(year_start, year_end))
    return PortfolioReport(year=year, projects=selected)


def direct_labor_cost(projects: Iterable[ProjectRecord], year: int, month: int) -> float:
    """
    Planned "Direct" expense for a month: the labor cost of every project
    running at some point during that month.
    """
    first = date(year, month, 1)
    last = last_day_of_month(year, month)
    return sum(p.cost for p in projects if p.overlaps(first, last))


# ══════════════════════════════════════════════════════════════════════════
# Expense Variance
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ExpenseRecord:
    category: str
    year: int
    month: Month
    planned_expense: float
    actual_expense: float


@dataclass(frozen=True)
class VarianceLine:
    label: str
    planned: float = 0.0
    actual: float = 0.0

    @property
    def variance(self) -> float:
        return self.actual - self.planned

    def as_dict(self, key: str) -> dict:
        return {
            key: self.label,
            "planned_expense": self.planned,
            "actual_expense": self.actual,
            "variance": self.variance,
        }


@dataclass(frozen=True)
class ExpenseReport:
    year: int
    months: Tuple[VarianceLine, ...] = ()
    categories: Tuple[VarianceLine, ...] = ()

    @property
    def total_planned(self) -> float:
        return sum(m.planned for m in self.months)

    @property
    def total_actual(self) -> float:
        return sum(m.actual for m in self.months)

    @property
    def total_variance(self) -> float:
        return self.total_actual - self.total_planned

    def as_dict(self) -> dict:
        return {
            "year": self.year,
            "months": [m.as_dict("month") for m in self.months],
            "categories": [c.as_dict("category") for c in self.categories],
            "total_planned_expenses": self.total_planned,
            "total_actual_expenses": self.total_actual,
            "total_variance": self.total_variance,
        }


def build_expense_report(
    expenses: Iterable[ExpenseRecord],
    year: int,
    start_month: int = 1,
    end_month: int = 12,
) -> ExpenseReport:
    """
    Planned vs. actual totals per month and per category.

    Only records of `year` inside the month window count. Every month of the
    window gets a line (zero when nothing was booked); categories appear in
    name order.
    """
    _check_month_window(start_month, end_month)
    window = [Month.from_number(n) for n in range(start_month, end_month + 1)]
    selected: List[ExpenseRecord] = [
        e for e in expenses if e.year == year and Month(e.month) in window
    ]

    month_lines = []
    for month in window:
        rows = [e for e in selected if Month(e.month) == month]
        month_lines.append(
            VarianceLine(
                label=month.value,
                planned=sum(e.planned_expense for e in rows),
                actual=sum(e.actual_expense for e in rows),
            )
        )

    category_lines = []
    for name in sorted({e.category for e in selected}, key=str.lower):
        rows = [e for e in selected if e.category == name]
        category_lines.append(
            VarianceLine(
                label=name,
                planned=sum(e.planned_expense for e in rows),
                actual=sum(e.actual_expense for e in rows),
            )
        )

    return ExpenseReport(year=year, months=tuple(month_lines), categories=tuple(category_lines))
