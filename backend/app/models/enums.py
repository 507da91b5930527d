"""
OpsLedger Backend — Domain Enumerations
=========================================

What:  Closed value sets shared by the ORM models, the Pydantic schemas and
       the reporting functions.
How:   `str` + `Enum` so values serialize to plain JSON strings and compare
       equal to the raw query-string value FastAPI hands us.
"""

import enum
from typing import Dict, FrozenSet


class Role(str, enum.Enum):
    ADMIN = "Admin"
    GUEST = "Guest"


class Currency(str, enum.Enum):
    BAM = "BAM"
    USD = "USD"
    EUR = "EUR"


class Department(str, enum.Enum):
    ADMINISTRATION = "Administration"
    MANAGEMENT = "Management"
    DEVELOPMENT = "Development"
    DESIGN = "Design"


class TechStack(str, enum.Enum):
    ADMIN_NA = "AdminNA"
    MGMT_NA = "MgmtNA"
    FULL_STACK = "FullStack"
    BACKEND = "Backend"
    FRONTEND = "Frontend"
    UX_UI = "UXUI"


class ProjectType(str, enum.Enum):
    FIXED = "Fixed"
    ON_GOING = "OnGoing"


class SalesChannel(str, enum.Enum):
    ONLINE = "Online"
    IN_PERSON = "InPerson"
    REFERRAL = "Referral"
    OTHER = "Other"


class ProjectStatus(str, enum.Enum):
    ACTIVE = "Active"
    ON_HOLD = "OnHold"
    INACTIVE = "Inactive"
    COMPLETED = "Completed"


class InvoiceStatus(str, enum.Enum):
    PAID = "Paid"
    SENT = "Sent"
    NOT_SENT = "NotSent"


class Month(str, enum.Enum):
    JANUARY = "January"
    FEBRUARY = "February"
    MARCH = "March"
    APRIL = "April"
    MAY = "May"
    JUNE = "June"
    JULY = "July"
    AUGUST = "August"
    SEPTEMBER = "September"
    OCTOBER = "October"
    NOVEMBER = "November"
    DECEMBER = "December"

    @property
    def number(self) -> int:
        """Calendar month number, 1..12."""
        return list(Month).index(self) + 1

    @classmethod
    def from_number(cls, number: int) -> "Month":
        return list(cls)[number - 1]


class OrderDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


# Department → tech stacks an employee of that department may carry.
ALLOWED_TECH_STACKS: Dict[Department, FrozenSet[TechStack]] = {
    Department.ADMINISTRATION: frozenset({TechStack.ADMIN_NA}),
    Department.MANAGEMENT: frozenset({TechStack.MGMT_NA}),
    Department.DEVELOPMENT: frozenset(
        {TechStack.FULL_STACK, TechStack.BACKEND, TechStack.FRONTEND}
    ),
    Department.DESIGN: frozenset({TechStack.UX_UI}),
}


def is_valid_tech_stack(department: Department, tech_stack: TechStack) -> bool:
    return tech_stack in ALLOWED_TECH_STACKS[department]


def sql_enum_values(enum_cls) -> list:
    """values_callable for sqlalchemy.Enum: store the value, not the member name."""
    return [member.value for member in enum_cls]
