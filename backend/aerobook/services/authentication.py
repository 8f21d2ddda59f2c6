"""
Credential login for passengers, airline operators and administrators.

Each kind of account logs in by its own identifier: users by email,
airlines by company code, administrators by username. A successful login
yields the SessionContext that the booking engine takes on every call.
"""

import logging
from typing import Optional, Tuple, Union

from ..errors import AuthenticationError
from ..models.enums import UserRole
from ..models.user import SessionContext
from ..security.password import verify_password
from ..stores.base import AccountDirectory

logger = logging.getLogger(__name__)


class AuthenticationService:
    """Verifies passwords against stored account hashes."""

    def __init__(self, accounts: AccountDirectory):
        self.accounts = accounts

    def authenticate(
        self,
        role: Union[UserRole, str],
        identifier: str,
        password: str,
    ) -> SessionContext:
        """
        Log in an account.

        Args:
            role: USER (email), OWNER (company code) or ADMIN (username)
            identifier: The account's login name for that role
            password: Plain-text password

        Returns:
            SessionContext for the authenticated principal

        Raises:
            AuthenticationError: unknown account or wrong password
            ValueError: empty identifier or unknown role
        """
        role = UserRole(role)
        if not identifier or not identifier.strip():
            raise ValueError("An identifier is required to log in")

        principal_id, stored_hash = self._lookup(role, identifier)
        if principal_id is None or not verify_password(password, stored_hash):
            logger.warning(f"Failed {role.value} login for {identifier.strip()!r}")
            raise AuthenticationError(role)

        logger.info(f"{role.value} {principal_id} logged in")
        return SessionContext(principal_id=principal_id, role=role)

    def _lookup(self, role: UserRole, identifier: str) -> Tuple[Optional[int], Optional[str]]:
        if role == UserRole.USER:
            account = self.accounts.find_user_by_email(identifier)
            return (account.user_id, account.password_hash) if account else (None, None)
        if role == UserRole.OWNER:
            account = self.accounts.find_owner_by_code(identifier)
            return (account.owner_id, account.password_hash) if account else (None, None)
        account = self.accounts.find_admin_by_username(identifier)
        return (account.admin_id, account.password_hash) if account else (None, None)
