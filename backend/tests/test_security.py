"""
OpsLedger Backend — Password & Token Unit Tests
=================================================

What:  Tests for bcrypt hashing and JWT encode/decode in app/services/security.py.
"""

import uuid
from datetime import timedelta

import pytest

from app.exceptions import AuthenticationError
from app.services import security


class TestPasswords:

    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = security.hash_password("Secret#1")
        assert hashed != "Secret#1"
        assert security.verify_password("Secret#1", hashed)

    def test_wrong_password_fails(self):
        hashed = security.hash_password("Secret#1")
        assert not security.verify_password("Secret#2", hashed)

    def test_malformed_hash_fails_closed(self):
        assert not security.verify_password("Secret#1", "not-a-bcrypt-hash")


class TestTokens:

    def setup_method(self):
        self.user_id = uuid.uuid4()

    def test_access_token_round_trip(self):
        token = security.create_access_token(self.user_id, "Admin")
        payload = security.decode_token(security.ACCESS, token)
        assert payload["sub"] == str(self.user_id)
        assert payload["role"] == "Admin"
        assert payload["type"] == security.ACCESS

    def test_token_kinds_are_not_interchangeable(self):
        """A refresh token is signed with another secret and cannot pass as an access token."""
        refresh = security.create_refresh_token(self.user_id)
        with pytest.raises(AuthenticationError):
            security.decode_token(security.ACCESS, refresh)

    def test_expired_token_rejected(self):
        token = security.create_token(security.RESET, self.user_id, timedelta(seconds=-5))
        with pytest.raises(AuthenticationError) as exc_info:
            security.decode_token(security.RESET, token)
        assert exc_info.value.context["reason"] == "expired"

    def test_garbage_token_rejected(self):
        with pytest.raises(AuthenticationError):
            security.decode_token(security.ACCESS, "not.a.jwt")

    def test_remember_me_extends_refresh_lifetime(self):
        assert security.refresh_token_lifetime(True) > security.refresh_token_lifetime(False)
        payload = security.decode_token(
            security.REFRESH, security.create_refresh_token(self.user_id, remember_me=True)
        )
        assert payload["remember_me"] is True
