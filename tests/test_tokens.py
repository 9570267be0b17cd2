"""Tests for admin credentials and bearer tokens."""

from datetime import datetime, timedelta, timezone

import pytest

from finadmin.auth.tokens import (
    check_password,
    hash_password,
    issue_credential,
    issue_token,
    register_admin,
    verify_credential,
)
from finadmin.errors import AuthError, ConflictError
from finadmin.models.domain import AdminEntity

SECRET = "test-secret"


@pytest.fixture
def admin(session):
    return register_admin(session, "root@x.com", "hunter22")


class TestPasswords:
    """bcrypt hashing."""

    def test_hash_is_not_plaintext(self):
        hashed = hash_password("hunter22")
        assert hashed != "hunter22"
        assert check_password("hunter22", hashed)

    def test_wrong_password_fails(self):
        assert not check_password("wrong", hash_password("hunter22"))

    def test_passwords_agree_on_first_72_bytes(self):
        """bcrypt ignores bytes past 72; long passwords must not raise."""
        base = "a" * 72
        hashed = hash_password(base + "tail-one")
        assert check_password(base + "tail-two", hashed)


class TestIssueCredential:
    """Login: email/password to token."""

    def test_round_trip(self, session, admin):
        token = issue_credential(session, "root@x.com", "hunter22", SECRET, 60)

        principal = verify_credential(token, SECRET)

        assert principal.admin_id == admin.admin_id
        assert principal.email == "root@x.com"

    def test_unknown_admin_is_not_found(self, session, admin):
        with pytest.raises(AuthError) as exc_info:
            issue_credential(session, "nobody@x.com", "hunter22", SECRET, 60)

        assert exc_info.value.reason == "not_found"
        assert exc_info.value.status_code == 404

    def test_wrong_password_is_unauthorized(self, session, admin):
        with pytest.raises(AuthError) as exc_info:
            issue_credential(session, "root@x.com", "wrong", SECRET, 60)

        assert exc_info.value.reason == "invalid_password"
        assert exc_info.value.status_code == 401


class TestVerifyCredential:
    """Token verification failures."""

    def _admin(self) -> AdminEntity:
        return AdminEntity(admin_id="a1", email="root@x.com", password_hash="unused")

    def test_expired_token(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = issue_token(self._admin(), SECRET, expires_minutes=60, now=issued)

        with pytest.raises(AuthError) as exc_info:
            verify_credential(token, SECRET)

        assert exc_info.value.reason == "expired"
        assert exc_info.value.status_code == 401

    def test_wrong_secret_is_invalid(self):
        token = issue_token(self._admin(), SECRET, expires_minutes=60)

        with pytest.raises(AuthError) as exc_info:
            verify_credential(token, "another-secret")

        assert exc_info.value.reason == "invalid"

    def test_garbage_is_invalid(self):
        with pytest.raises(AuthError) as exc_info:
            verify_credential("not-a-token", SECRET)

        assert exc_info.value.reason == "invalid"


class TestRegisterAdmin:
    """Admin account creation."""

    def test_password_is_stored_hashed(self, admin):
        assert admin.password_hash != "hunter22"
        assert check_password("hunter22", admin.password_hash)

    def test_duplicate_email_conflicts(self, session, admin):
        with pytest.raises(ConflictError, match="Admin already exists"):
            register_admin(session, "root@x.com", "other")
