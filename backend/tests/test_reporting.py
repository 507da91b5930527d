"""
OpsLedger Backend — Reporting Unit Tests
==========================================

What:  Tests for the pure aggregation in app/services/reporting.py.
How:   Records are built in memory; no database or HTTP involved.

Calendar facts used below:
    January 2024 starts on a Monday and has 23 weekdays.
    2024 has 262 weekdays.
"""

from datetime import date

import pytest

from app.models.enums import Currency, Department, Month, ProjectStatus, ProjectType, SalesChannel
from app.services.reporting import (
    Assignment,
    EmployeeRecord,
    ExpenseRecord,
    ProjectRecord,
    StaffingRecord,
    build_expense_report,
    build_portfolio_report,
    build_utilization_report,
    capped_allocation,
    compute_month_utilization,
    convert_to_base_currency,
    direct_labor_cost,
    iter_working_days,
    month_bounds,
)

YEAR_2024 = Assignment(part_time=False, start_date=date(2024, 1, 1), end_date=date(2024, 12, 31))
HALF_2024 = Assignment(part_time=True, start_date=date(2024, 1, 1), end_date=date(2024, 12, 31))


def developer(*assignments, salary=1000.0, currency=Currency.BAM, hired=date(2023, 1, 1), terminated=None):
    return EmployeeRecord(
        department=Department.DEVELOPMENT,
        salary=salary,
        currency=currency,
        hiring_date=hired,
        termination_date=terminated,
        assignments=tuple(assignments),
    )


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

class TestHelpers:

    def test_currency_conversion_factors(self):
        assert convert_to_base_currency(100, Currency.BAM) == pytest.approx(100)
        assert convert_to_base_currency(100, Currency.USD) == pytest.approx(178)
        assert convert_to_base_currency(100, Currency.EUR) == pytest.approx(195)

    def test_currency_conversion_is_linear(self):
        for currency in Currency:
            combined = convert_to_base_currency(300 + 450, currency)
            separate = convert_to_base_currency(300, currency) + convert_to_base_currency(450, currency)
            assert combined == pytest.approx(separate)

    def test_capped_allocation(self):
        assert capped_allocation([0.5]) == 0.5
        assert capped_allocation([0.5, 0.5]) == 1.0
        assert capped_allocation([1.0, 0.5]) == 1.0
        assert capped_allocation([]) == 0

    def test_month_bounds_handles_december_and_leap_years(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 3, 1))
        assert month_bounds(2024, 12) == (date(2024, 12, 1), date(2025, 1, 1))

    def test_working_days_skip_weekends(self):
        days = list(iter_working_days(date(2024, 1, 1), date(2024, 1, 8)))
        assert len(days) == 5
        assert all(d.weekday() < 5 for d in days)


# ══════════════════════════════════════════════════════════════════════════
# Utilization & Labor Cost
# ══════════════════════════════════════════════════════════════════════════

class TestMonthUtilization:

    def test_full_time_assignment_bills_every_weekday(self):
        month = compute_month_utilization([developer(YEAR_2024)], 2024, 1)
        assert month.month == Month.JANUARY
        assert month.hours_available == 23 * 8
        assert month.hours_billed == 23 * 8
        assert month.utilization == pytest.approx(1.0)
        assert month.development_cost == pytest.approx(1000)

    def test_single_part_time_assignment_bills_half(self):
        month = compute_month_utilization([developer(HALF_2024)], 2024, 1)
        assert month.hours_billed == pytest.approx(23 * 8 * 0.5)
        assert month.development_cost == pytest.approx(500)

    def test_two_part_time_assignments_bill_a_full_day(self):
        month = compute_month_utilization([developer(HALF_2024, HALF_2024)], 2024, 1)
        assert month.hours_billed == pytest.approx(23 * 8)
        assert month.development_cost == pytest.approx(1000)

    def test_allocation_never_exceeds_one_day(self):
        month = compute_month_utilization([developer(YEAR_2024, HALF_2024, YEAR_2024)], 2024, 1)
        assert month.hours_billed == pytest.approx(month.hours_available)
        assert month.development_cost == pytest.approx(1000)

    def test_unassigned_employee_is_available_but_costs_nothing(self):
        month = compute_month_utilization([developer()], 2024, 1)
        assert month.hours_available == 23 * 8
        assert month.hours_billed == 0
        assert month.total_cost == 0
        assert month.utilization == 0

    def test_termination_date_is_exclusive(self):
        employee = developer(YEAR_2024, hired=date(2024, 1, 1), terminated=date(2024, 1, 15))
        month = compute_month_utilization([employee], 2024, 1)
        assert month.hours_available == 10 * 8

    def test_not_yet_hired_employee_is_ignored(self):
        employee = developer(YEAR_2024, hired=date(2024, 2, 1))
        month = compute_month_utilization([employee], 2024, 1)
        assert month.hours_available == 0
        assert month.total_cost == 0

    def test_assignment_outside_month_does_not_bill(self):
        later = Assignment(part_time=False, start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
        month = compute_month_utilization([developer(later)], 2024, 1)
        assert month.hours_billed == 0
        assert month.total_cost == 0

    def test_salary_is_converted_to_base_currency(self):
        month = compute_month_utilization([developer(YEAR_2024, currency=Currency.USD)], 2024, 1)
        assert month.development_cost == pytest.approx(1780)

    def test_costs_are_bucketed_by_department(self):
        designer = EmployeeRecord(
            department=Department.DESIGN, salary=800, currency=Currency.BAM,
            hiring_date=date(2020, 1, 1), assignments=(YEAR_2024,),
        )
        manager = EmployeeRecord(
            department=Department.MANAGEMENT, salary=1200, currency=Currency.BAM,
            hiring_date=date(2020, 1, 1), assignments=(YEAR_2024,),
        )
        month = compute_month_utilization([developer(YEAR_2024), designer, manager], 2024, 1)
        assert month.development_cost == pytest.approx(1000)
        assert month.design_cost == pytest.approx(800)
        assert month.other_cost == pytest.approx(1200)
        assert month.total_cost == pytest.approx(3000)


class TestUtilizationReport:

    def test_yearly_totals_equal_sum_of_months(self):
        employees = [
            developer(YEAR_2024),
            developer(HALF_2024, currency=Currency.EUR, salary=2000),
            developer(hired=date(2024, 6, 10), terminated=date(2024, 9, 2)),
        ]
        report = build_utilization_report(employees, 2024)
        assert len(report.months) == 12
        assert report.total_hours_available == pytest.approx(sum(m.hours_available for m in report.months))
        assert report.total_hours_billed == pytest.approx(sum(m.hours_billed for m in report.months))
        assert report.total_cost == pytest.approx(sum(m.total_cost for m in report.months))

    def test_full_year_hours(self):
        report = build_utilization_report([developer(YEAR_2024)], 2024)
        assert report.total_hours_available == 262 * 8
        assert report.development_cost == pytest.approx(12 * 1000)

    def test_month_window(self):
        report = build_utilization_report([developer(YEAR_2024)], 2024, start_month=3, end_month=5)
        assert [m.month for m in report.months] == [Month.MARCH, Month.APRIL, Month.MAY]

    def test_invalid_month_window_rejected(self):
        with pytest.raises(ValueError):
            build_utilization_report([], 2024, start_month=6, end_month=2)

    def test_reaggregation_is_deterministic(self):
        employees = [developer(YEAR_2024), developer(HALF_2024, currency=Currency.USD)]
        assert build_utilization_report(employees, 2024).as_dict() == build_utilization_report(employees, 2024).as_dict()

    def test_as_dict_shape(self):
        data = build_utilization_report([developer(YEAR_2024)], 2024).as_dict()
        assert data["year"] == 2024
        assert data["months"][0]["month"] == "January"
        assert data["totals"]["total_hours_available"] == 262 * 8


# ══════════════════════════════════════════════════════════════════════════
# Project Profitability
# ══════════════════════════════════════════════════════════════════════════

def project(name, start, end, value, staffing=(), **overrides):
    fields = dict(
        name=name,
        start_date=start,
        end_date=end,
        project_type=ProjectType.FIXED,
        sales_channel=SalesChannel.ONLINE,
        project_status=ProjectStatus.ACTIVE,
        hourly_rate=50.0,
        project_value_bam=value,
        staffing=tuple(staffing),
    )
    fields.update(overrides)
    return ProjectRecord(**fields)


class TestPortfolioReport:

    def setup_method(self):
        self.alpha = project(
            "Alpha", date(2024, 1, 1), date(2024, 6, 30), 10000,
            staffing=[
                StaffingRecord(salary=1000, currency=Currency.BAM, part_time=False),
                StaffingRecord(salary=1000, currency=Currency.USD, part_time=True),
            ],
            project_status=ProjectStatus.COMPLETED,
            actual_end_date=date(2024, 7, 14),
            project_velocity=10,
        )
        self.beta = project(
            "Beta", date(2023, 6, 1), date(2025, 1, 31), 5000,
            project_type=ProjectType.ON_GOING,
            sales_channel=SalesChannel.REFERRAL,
            hourly_rate=70.0,
            project_velocity=20,
        )
        self.old = project("Old", date(2021, 1, 1), date(2022, 12, 31), 99999)

    def test_project_cost_uses_part_time_weight(self):
        assert self.alpha.cost == pytest.approx(1000 + 890)
        assert self.alpha.profit == pytest.approx(10000 - 1890)

    def test_only_projects_overlapping_the_year_count(self):
        report = build_portfolio_report([self.alpha, self.beta, self.old], 2024)
        assert report.total_projects == 2
        assert report.total_value == pytest.approx(15000)

    def test_totals_and_averages(self):
        report = build_portfolio_report([self.alpha, self.beta, self.old], 2024)
        assert report.total_cost == pytest.approx(1890)
        assert report.gross_profit == pytest.approx(13110)
        assert report.actual_revenue == pytest.approx(10000)
        assert report.revenue_gap == pytest.approx(5000)
        assert report.margin == pytest.approx(13110 / 1890 * 100)
        assert report.average_value == pytest.approx(7500)
        assert report.average_rate == pytest.approx(60)
        assert report.average_velocity == pytest.approx(15)
        assert report.average_team_size == pytest.approx(1)
        assert report.weeks_over_deadline == pytest.approx(2)

    def test_distributions_cover_every_enum_value(self):
        report = build_portfolio_report([self.alpha, self.beta], 2024)
        assert report.project_type_count == {"Fixed": 1, "OnGoing": 1}
        assert report.sales_channel_percentage == {
            "Online": pytest.approx(50),
            "InPerson": 0,
            "Referral": pytest.approx(50),
            "Other": 0,
        }
        assert sum(report.project_type_percentage.values()) == pytest.approx(100)

    def test_empty_portfolio(self):
        report = build_portfolio_report([self.old], 2024)
        assert report.total_projects == 0
        assert report.margin == 0
        assert report.average_value == 0
        assert set(report.sales_channel_percentage.values()) == {0.0}

    def test_direct_labor_cost_counts_projects_running_in_month(self):
        assert direct_labor_cost([self.alpha, self.beta, self.old], 2024, 3) == pytest.approx(1890)
        assert direct_labor_cost([self.alpha, self.beta, self.old], 2024, 8) == pytest.approx(0)


# ══════════════════════════════════════════════════════════════════════════
# Expense Variance
# ══════════════════════════════════════════════════════════════════════════

class TestExpenseReport:

    def setup_method(self):
        self.expenses = [
            ExpenseRecord("Rent", 2024, Month.JANUARY, planned_expense=1000, actual_expense=1100),
            ExpenseRecord("Rent", 2024, Month.FEBRUARY, planned_expense=1000, actual_expense=900),
            ExpenseRecord("Direct", 2024, Month.JANUARY, planned_expense=5000, actual_expense=5000),
            ExpenseRecord("Rent", 2023, Month.JANUARY, planned_expense=7000, actual_expense=7000),
        ]

    def test_per_month_and_category_lines(self):
        report = build_expense_report(self.expenses, 2024)
        january = report.months[0]
        assert january.label == "January"
        assert january.planned == pytest.approx(6000)
        assert january.actual == pytest.approx(6100)
        assert january.variance == pytest.approx(100)

        by_category = {c.label: c for c in report.categories}
        assert set(by_category) == {"Direct", "Rent"}
        assert by_category["Rent"].variance == pytest.approx(0)

    def test_totals_equal_sum_of_months(self):
        report = build_expense_report(self.expenses, 2024)
        assert report.total_planned == pytest.approx(7000)
        assert report.total_actual == pytest.approx(7000)
        assert report.total_variance == pytest.approx(sum(m.variance for m in report.months))

    def test_every_month_of_window_is_reported(self):
        report = build_expense_report(self.expenses, 2024, start_month=2, end_month=4)
        assert [m.label for m in report.months] == ["February", "March", "April"]
        assert report.total_planned == pytest.approx(1000)
        assert [c.label for c in report.categories] == ["Rent"]

    def test_as_dict_keys(self):
        data = build_expense_report(self.expenses, 2024).as_dict()
        assert data["months"][0] == {
            "month": "January",
            "planned_expense": 6000,
            "actual_expense": 6100,
            "variance": 100,
        }
        assert data["total_variance"] == pytest.approx(0)
