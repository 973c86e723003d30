"""
PlaceShare Backend - Credential Gate Unit Tests
=================================================

What:  Token issue/verification outcomes and password hashing.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from app.exceptions import AuthenticationError
from app.services.auth_service import (
    CredentialGate,
    Identity,
    hash_password,
    verify_password,
)


class TestCredentialGate:

    def setup_method(self):
        self.gate = CredentialGate(secret_key="unit-test-secret", algorithm="HS256", expires_minutes=60)
        self.user_id = uuid.uuid4()

    def test_issued_token_authenticates(self):
        token = self.gate.issue_token(self.user_id, "ada@example.com")
        assert self.gate.authenticate(token) == Identity(user_id=self.user_id)

    def test_token_carries_user_id_and_email(self):
        token = self.gate.issue_token(self.user_id, "ada@example.com")
        claims = jwt.decode(token, "unit-test-secret", algorithms=["HS256"])
        assert claims["userId"] == str(self.user_id)
        assert claims["email"] == "ada@example.com"
        assert "exp" in claims

    def test_empty_token_is_403(self):
        with pytest.raises(AuthenticationError) as exc_info:
            self.gate.authenticate("")
        assert exc_info.value.status_code == 403

    def test_expired_token_is_401(self):
        claims = {
            "userId": str(self.user_id),
            "email": "ada@example.com",
            "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
        }
        token = jwt.encode(claims, "unit-test-secret", algorithm="HS256")

        with pytest.raises(AuthenticationError) as exc_info:
            self.gate.authenticate(token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Authentication failed, please try again."

    def test_wrong_secret_is_401(self):
        other = CredentialGate(secret_key="another-secret")
        token = other.issue_token(self.user_id, "ada@example.com")

        with pytest.raises(AuthenticationError) as exc_info:
            self.gate.authenticate(token)
        assert exc_info.value.status_code == 401

    def test_garbage_token_is_401(self):
        with pytest.raises(AuthenticationError) as exc_info:
            self.gate.authenticate("not-a-jwt")
        assert exc_info.value.status_code == 401

    def test_token_without_user_id_is_401(self):
        token = jwt.encode(
            {"email": "ada@example.com", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "unit-test-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError) as exc_info:
            self.gate.authenticate(token)
        assert exc_info.value.status_code == 401


class TestPasswordHashing:

    def test_hash_verifies(self):
        stored = hash_password("secret123", iterations=1_000)
        assert verify_password("secret123", stored)
        assert not verify_password("secret124", stored)

    def test_hash_is_salted(self):
        assert hash_password("secret123", iterations=1_000) != hash_password("secret123", iterations=1_000)

    def test_unreadable_hash_does_not_verify(self):
        assert not verify_password("secret123", "plaintext")
