"""
Tests for credential login.
"""

import logging

import pytest

from aerobook.errors import AuthenticationError, BookingEngineError
from aerobook.models.enums import UserRole
from aerobook.security.password import hash_password
from aerobook.services.authentication import AuthenticationService
from aerobook.stores.base import AccountDirectory


@pytest.fixture
def accounts(store):
    """Store with one account of each kind, all with passwords."""
    store.add_user(first_name="Grace", last_name="Hopper", email="Grace@Example.com",
                   password_hash=hash_password("Cobol59"))
    store.add_owner(company_name="Delta Air Lines", company_code="DL",
                    password_hash=hash_password("Atlanta1"))
    store.add_admin(username="root", password_hash=hash_password("Secret1"))
    return store


@pytest.fixture
def auth(accounts):
    return AuthenticationService(accounts)


class TestLogin:
    """Test each kind of account logging in by its own identifier."""

    def test_store_is_an_account_directory(self, accounts):
        assert isinstance(accounts, AccountDirectory)

    def test_user_by_email(self, auth):
        context = auth.authenticate(UserRole.USER, "  grace@example.COM ", "Cobol59")
        assert context.principal_id == 2
        assert context.role == UserRole.USER
        assert not context.is_admin

    def test_owner_by_company_code(self, auth):
        context = auth.authenticate("OWNER", "dl", "Atlanta1")
        assert context.principal_id == 2
        assert context.role == UserRole.OWNER

    def test_admin_by_username(self, auth):
        context = auth.authenticate("ADMIN", "root", "Secret1")
        assert context.principal_id == 1
        assert context.is_admin

    def test_context_is_accepted_by_the_engine(self, auth, engine, make_flight):
        context = auth.authenticate("USER", "grace@example.com", "Cobol59")
        booking = engine.create_booking(context.principal_id, make_flight().flight_id, context)
        assert booking.user_id == 2


class TestRejection:
    """Test that failed logins never say which part was wrong."""

    def test_wrong_password(self, auth):
        with pytest.raises(AuthenticationError) as exc_info:
            auth.authenticate("USER", "grace@example.com", "cobol59")
        assert exc_info.value.role == UserRole.USER
        assert str(exc_info.value) == "Invalid credentials for user login"

    def test_unknown_account_looks_the_same(self, auth):
        with pytest.raises(AuthenticationError) as exc_info:
            auth.authenticate("USER", "nobody@example.com", "Cobol59")
        assert str(exc_info.value) == "Invalid credentials for user login"

    def test_account_without_password(self, auth):
        # Ada and airline AA are registered without a password hash
        with pytest.raises(AuthenticationError):
            auth.authenticate("USER", "ada@example.com", "")
        with pytest.raises(AuthenticationError):
            auth.authenticate("OWNER", "AA", "anything")

    def test_username_is_exact(self, auth):
        with pytest.raises(AuthenticationError):
            auth.authenticate("ADMIN", "Root", "Secret1")

    def test_role_must_match_identifier(self, auth):
        with pytest.raises(AuthenticationError):
            auth.authenticate("ADMIN", "grace@example.com", "Cobol59")

    def test_is_a_booking_engine_error(self, auth):
        with pytest.raises(BookingEngineError):
            auth.authenticate("OWNER", "DL", "wrong")

    def test_failure_is_logged_without_password(self, auth, caplog):
        with caplog.at_level(logging.WARNING, logger="aerobook.services.authentication"):
            with pytest.raises(AuthenticationError):
                auth.authenticate("ADMIN", "root", "hunter2")
        assert "root" in caplog.text
        assert "hunter2" not in caplog.text

    @pytest.mark.parametrize("identifier", ["", "   "])
    def test_empty_identifier(self, auth, identifier):
        with pytest.raises(ValueError):
            auth.authenticate("USER", identifier, "Cobol59")

    def test_unknown_role(self, auth):
        with pytest.raises(ValueError):
            auth.authenticate("PILOT", "root", "Secret1")
