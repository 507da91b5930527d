# Models package init
"""
OpsLedger Backend — ORM Models
================================

Importing this package registers every mapped class on `Base.metadata`,
which both Alembic and relationship resolution depend on.
"""

from app.models.employee import Employee
from app.models.expense import Expense, ExpenseCategory
from app.models.invoice import Invoice
from app.models.project import Project, ProjectEmployee
from app.models.user import PasswordResetToken, User

__all__ = [
    "Employee",
    "Expense",
    "ExpenseCategory",
    "Invoice",
    "PasswordResetToken",
    "Project",
    "ProjectEmployee",
    "User",
]
