"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates users, password reset tokens, employees, projects, project
       assignments, expense categories, expenses and invoices.
How:   Enum columns store the enum *values* ("FullStack", "NotSent"),
       matching `values_callable=sql_enum_values` on the models.

Rollback: downgrade() drops every table and enum type (all data lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ROLE = sa.Enum("Admin", "Guest", name="role")
CURRENCY = sa.Enum("BAM", "USD", "EUR", name="currency")
DEPARTMENT = sa.Enum("Administration", "Management", "Development", "Design", name="department")
TECH_STACK = sa.Enum(
    "AdminNA", "MgmtNA", "FullStack", "Backend", "Frontend", "UXUI", name="tech_stack"
)
PROJECT_TYPE = sa.Enum("Fixed", "OnGoing", name="project_type")
SALES_CHANNEL = sa.Enum("Online", "InPerson", "Referral", "Other", name="sales_channel")
PROJECT_STATUS = sa.Enum("Active", "OnHold", "Inactive", "Completed", name="project_status")
INVOICE_STATUS = sa.Enum("Paid", "Sent", "NotSent", name="invoice_status")
MONTH = sa.Enum(
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
    name="month",
)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _soft_delete():
    return sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True)


def upgrade() -> None:
    # ── Accounts ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("image", sa.String(255), nullable=True),
        sa.Column("role", ROLE, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("token", sa.String(512), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_password_reset_tokens"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_password_reset_tokens_user_id", "password_reset_tokens", ["user_id"])

    # ── Staff & projects ──────────────────────────────────────────────────
    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("image", sa.String(255), nullable=True),
        sa.Column("department", DEPARTMENT, nullable=False),
        sa.Column("salary", sa.Float(), nullable=False),
        sa.Column("currency", CURRENCY, nullable=False),
        sa.Column("tech_stack", TECH_STACK, nullable=False),
        sa.Column("hiring_date", sa.Date(), nullable=False),
        sa.Column("termination_date", sa.Date(), nullable=True),
        sa.Column("is_employed", sa.Boolean(), nullable=False),
        *_timestamps(),
        _soft_delete(),
        sa.PrimaryKeyConstraint("id", name="pk_employees"),
    )

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("actual_end_date", sa.Date(), nullable=True),
        sa.Column("project_type", PROJECT_TYPE, nullable=False),
        sa.Column("hourly_rate", sa.Float(), nullable=False),
        sa.Column("project_value_bam", sa.Float(), nullable=False),
        sa.Column("project_velocity", sa.Integer(), nullable=False),
        sa.Column("sales_channel", SALES_CHANNEL, nullable=False),
        sa.Column("project_status", PROJECT_STATUS, nullable=False),
        *_timestamps(),
        _soft_delete(),
        sa.PrimaryKeyConstraint("id", name="pk_projects"),
    )
    op.create_index("ix_projects_name", "projects", ["name"])

    op.create_table(
        "project_employees",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("part_time", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_project_employees"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("project_id", "employee_id", name="uq_project_employee"),
    )
    op.create_index("ix_project_employees_project_id", "project_employees", ["project_id"])
    op.create_index("ix_project_employees_employee_id", "project_employees", ["employee_id"])

    # ── Bookkeeping ───────────────────────────────────────────────────────
    op.create_table(
        "expense_categories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        *_timestamps(),
        _soft_delete(),
        sa.PrimaryKeyConstraint("id", name="pk_expense_categories"),
    )
    op.create_index("ix_expense_categories_name", "expense_categories", ["name"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", MONTH, nullable=False),
        sa.Column("planned_expense", sa.Float(), nullable=False),
        sa.Column("actual_expense", sa.Float(), nullable=False),
        sa.Column("expense_category_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        _soft_delete(),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
        sa.ForeignKeyConstraint(["expense_category_id"], ["expense_categories.id"]),
    )
    op.create_index(
        "idx_expenses_year_month_category",
        "expenses",
        ["year", "month", "expense_category_id"],
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("client", sa.String(100), nullable=False),
        sa.Column("industry", sa.String(100), nullable=False),
        sa.Column("total_hours_billed", sa.Integer(), nullable=False),
        sa.Column("amount_billed_bam", sa.Float(), nullable=False),
        sa.Column("invoice_status", INVOICE_STATUS, nullable=False),
        *_timestamps(),
        _soft_delete(),
        sa.PrimaryKeyConstraint("id", name="pk_invoices"),
    )
    op.create_index("ix_invoices_client", "invoices", ["client"])


def downgrade() -> None:
    op.drop_index("ix_invoices_client", table_name="invoices")
    op.drop_table("invoices")
    op.drop_index("idx_expenses_year_month_category", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_expense_categories_name", table_name="expense_categories")
    op.drop_table("expense_categories")
    op.drop_index("ix_project_employees_employee_id", table_name="project_employees")
    op.drop_index("ix_project_employees_project_id", table_name="project_employees")
    op.drop_table("project_employees")
    op.drop_index("ix_projects_name", table_name="projects")
    op.drop_table("projects")
    op.drop_table("employees")
    op.drop_index("ix_password_reset_tokens_user_id", table_name="password_reset_tokens")
    op.drop_table("password_reset_tokens")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        MONTH, INVOICE_STATUS, PROJECT_STATUS, SALES_CHANNEL, PROJECT_TYPE,
        TECH_STACK, DEPARTMENT, CURRENCY, ROLE,
    ):
        enum_type.drop(bind, checkfirst=True)
