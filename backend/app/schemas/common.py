"""
OpsLedger Backend — Shared Schemas
====================================

What:  Pydantic models and field types reused by several resources:
       pagination metadata, error and message envelopes, health status,
       and the constrained string/date types behind name and date rules.
"""

from datetime import date
from typing import Annotated, Any, Dict, Optional

from pydantic import AfterValidator, BaseModel, Field, StringConstraints

# ══════════════════════════════════════════════════════════════════════════
# Field Types
# ══════════════════════════════════════════════════════════════════════════

PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=10)]
ResourceName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=15)]
NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]

MIN_BUSINESS_YEAR = 2000
MAX_BUSINESS_YEAR = 2050


def _check_business_date(value: date) -> date:
    if not MIN_BUSINESS_YEAR <= value.year <= MAX_BUSINESS_YEAR:
        raise ValueError(
            f"Date must be between {MIN_BUSINESS_YEAR}-01-01 and {MAX_BUSINESS_YEAR}-12-31."
        )
    return value


BusinessDate = Annotated[date, AfterValidator(_check_business_date)]
BusinessYear = Annotated[int, Field(ge=MIN_BUSINESS_YEAR, le=MAX_BUSINESS_YEAR)]


def check_password_strength(value: str) -> str:
    """At least 6 characters with an uppercase letter, a digit and a symbol."""
    if len(value) < 6:
        raise ValueError("Password must be at least 6 characters long.")
    if not any(c.isupper() for c in value):
        raise ValueError("Password must contain at least one uppercase letter.")
    if not any(c.isdigit() for c in value):
        raise ValueError("Password must contain at least one number.")
    if all(c.isalnum() for c in value):
        raise ValueError("Password must contain at least one non-alphanumeric character.")
    return value


Password = Annotated[str, AfterValidator(check_password_strength)]


# ══════════════════════════════════════════════════════════════════════════
# Envelopes
# ══════════════════════════════════════════════════════════════════════════

class PageInfo(BaseModel):
    """
    Pagination metadata returned next to every paginated list.

    total is 0 when the requested page came back empty; current_page falls
    back to 1 when the requested page is past last_page.
    """
    total: int
    current_page: int
    last_page: int
    per_page: int


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "Project already exists.",
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """
    error: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Extra context for 4xx errors")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
