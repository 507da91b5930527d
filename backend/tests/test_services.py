"""
OpsLedger Backend — Service-Level Tests
=========================================

What:  Service calls without the HTTP layer: the expense month window,
       category lookups against a real AsyncSession, and reset-email
       composition.
"""

import logging
import warnings
from datetime import date

import pytest
from tenacity import RetryCallState

from app.config import settings
from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.schemas.expense import ExpenseCategoryCreate
from app.services.email_service import (
    build_reset_link,
    build_reset_message,
    email_service,
    retry_wait,
)
from app.services.expense_category_service import expense_category_service
from app.services.expense_service import month_window


class TestMonthWindow:

    def test_defaults_to_whole_year(self):
        assert month_window(2024, None, None) == (1, 12)

    def test_bounds_in_the_year(self):
        assert month_window(2024, date(2024, 3, 20), date(2024, 5, 1)) == (3, 5)

    def test_bounds_in_other_years_are_clamped(self):
        assert month_window(2024, date(2023, 6, 1), date(2025, 2, 1)) == (1, 12)

    def test_window_outside_year_rejected(self):
        with pytest.raises(ValidationError, match="after the requested year"):
            month_window(2024, date(2025, 1, 1), None)
        with pytest.raises(ValidationError, match="before the requested year"):
            month_window(2024, None, date(2023, 12, 31))


class TestExpenseCategoryService:

    async def test_find_by_name_is_case_insensitive(self, db_session):
        created = await expense_category_service.create_category(
            db_session, ExpenseCategoryCreate(name="Software", description="Licenses")
        )
        found = await expense_category_service.find_by_name(db_session, "SOFTWARE")
        assert found is not None and found.id == created.id

    async def test_deleted_category_is_invisible(self, db_session):
        created = await expense_category_service.create_category(
            db_session, ExpenseCategoryCreate(name="Software", description="Licenses")
        )
        await expense_category_service.delete_category(db_session, created.id)

        assert await expense_category_service.find_by_name(db_session, "Software") is None
        with pytest.raises(NotFoundError):
            await expense_category_service.get_category(db_session, created.id)

        # The name can be reused once the old category is gone.
        await expense_category_service.create_category(
            db_session, ExpenseCategoryCreate(name="Software", description="Again")
        )

    async def test_duplicate_name(self, db_session):
        await expense_category_service.create_category(
            db_session, ExpenseCategoryCreate(name="Software", description="Licenses")
        )
        with pytest.raises(ConflictError):
            await expense_category_service.create_category(
                db_session, ExpenseCategoryCreate(name="software", description="Dup")
            )


class TestEmailService:

    def test_reset_link_format(self):
        link = build_reset_link("abc", "tok")
        assert link == f"{settings.client_url}/abc/reset-password/tok/"

    def test_reset_message(self):
        message = build_reset_message("someone@example.com", "http://x/link")
        assert message["To"] == "someone@example.com"
        assert "http://x/link" in message.get_content()

    async def test_disabled_smtp_logs_instead_of_sending(self, caplog):
        """No SMTP_HOST in the test environment: nothing is delivered, the link is logged."""
        assert not email_service.enabled
        with caplog.at_level(logging.INFO, logger="app.services.email_service"):
            await email_service.send_password_reset("someone@example.com", "abc", "tok")
        assert "reset-password/tok/" in caplog.text

    def test_retry_wait_stays_within_bounds(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            wait = retry_wait()

        state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
        for attempt in range(1, 8):
            state.attempt_number = attempt
            delay = wait(state)
            assert settings.retry_min_wait <= delay <= settings.retry_max_wait + 1
