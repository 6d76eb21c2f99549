"""
Request dependencies: the session gate and role checks.

The caller is identified by a bearer token in the Authorization header or,
failing that, by the ``token`` cookie set at login.
"""

from typing import Optional

from fastapi import Depends, Request

from therapease.config import COOKIE_NAME
from therapease.models.account import AccountRole, CurrentAccount
from therapease.models.base import get_session_factory
from therapease.services import policies
from therapease.services.accounts import AccountService
from therapease.services.errors import AuthenticationError


# =============================================================================
# Module-level services (for dependency injection)
# =============================================================================

_account_service: Optional[AccountService] = None


def get_account_service() -> AccountService:
    """Get or create account service."""
    global _account_service
    if _account_service is None:
        _account_service = AccountService(session_factory=get_session_factory())
    return _account_service


def set_account_service(service: Optional[AccountService]) -> None:
    """Set account service (for testing)."""
    global _account_service
    _account_service = service


# =============================================================================
# Session gate
# =============================================================================

def extract_token(request: Request) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME) or None


def get_current_account(request: Request) -> CurrentAccount:
    token = extract_token(request)
    if not token:
        raise AuthenticationError("Not authorized, no token")
    return get_account_service().resolve_token(token)


def require_role(*roles: AccountRole):
    """Dependency that admits only the given roles."""

    def checker(account: CurrentAccount = Depends(get_current_account)) -> CurrentAccount:
        policies.ensure_role(account, *roles)
        return account

    return checker


require_admin = require_role(AccountRole.ADMIN)
require_therapist = require_role(AccountRole.THERAPIST)
require_user = require_role(AccountRole.USER)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
