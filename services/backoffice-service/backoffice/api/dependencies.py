"""Shared FastAPI dependencies: application services, sessions and error mapping."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, Request, status

from ..config import get_settings
from ..domain.policy import PolicyService
from ..domain.service import UserService
from ..domain.user import Account, User
from ..i18n.translator import Translator
from ..i18n.xliff import XliffService
from ..messaging.flash import FlashMessageStore
from ..security.authentication import AuthenticationManager
from ..services.redirection import BackendRedirectionService


@dataclass(slots=True)
class Session:
    """The authenticated user and the account the access token was issued for."""

    user: User
    account: Account


def get_user_service(request: Request) -> UserService:
    """Resolve the `UserService` stored on the FastAPI application state."""
    service: UserService = request.app.state.user_service
    return service


def get_policy_service(request: Request) -> PolicyService:
    service: PolicyService = request.app.state.policy_service
    return service


def get_authentication_manager(request: Request) -> AuthenticationManager:
    manager: AuthenticationManager = request.app.state.authentication_manager
    return manager


def get_flash_store(request: Request) -> FlashMessageStore:
    store: FlashMessageStore = request.app.state.flash_store
    return store


def get_translator(request: Request) -> Translator:
    translator: Translator = request.app.state.translator
    return translator


def get_xliff_service(request: Request) -> XliffService:
    service: XliffService = request.app.state.xliff_service
    return service


def get_redirection_service(request: Request) -> BackendRedirectionService:
    service: BackendRedirectionService = request.app.state.redirection_service
    return service


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_session(
    token: str | None = Depends(bearer_token),
    manager: AuthenticationManager = Depends(get_authentication_manager),
) -> Session:
    """Resolve the acting user from the bearer token or reject the request."""
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="not authenticated")
    resolved = manager.resolve_user(token)
    if resolved is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid access token")
    user, account = resolved
    return Session(user=user, account=account)


def require_users_module(
    session: Session = Depends(get_session),
    policy_service: PolicyService = Depends(get_policy_service),
) -> Session:
    """Only sessions whose roles are granted the user-module privilege may pass."""
    roles = [
        policy_service.get_role(identifier)
        for identifier in session.account.role_identifiers
        if policy_service.has_role(identifier)
    ]
    privilege = get_settings().users_module_privilege
    if not policy_service.is_privilege_target_granted_for_roles(roles, privilege):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="access denied")
    return session


def http_error_from_value_error(exc: ValueError) -> HTTPException:
    message = str(exc).lower()
    status_code = status.HTTP_400_BAD_REQUEST
    if "not found" in message:
        status_code = status.HTTP_404_NOT_FOUND
    return HTTPException(status_code=status_code, detail=str(exc))
