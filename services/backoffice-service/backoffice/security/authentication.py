"""Authentication providers and the manager that registers them."""

from __future__ import annotations

import logging
from typing import Iterable

import jwt

from .passwords import verify_password
from .tokens import decode_access_token
from ..domain.service import UserService
from ..domain.user import Account, User

logger = logging.getLogger(__name__)


class UsernamePasswordProvider:
    """Authenticates accounts of one provider name against their stored password hash."""

    def __init__(self, name: str, user_service: UserService) -> None:
        self.name = name
        self._user_service = user_service

    def authenticate(self, username: str, password: str) -> Account | None:
        user = self._user_service.get_user(username, self.name)
        if user is None:
            return None
        for account in user.accounts:
            if (
                account.account_identifier == username
                and account.authentication_provider_name == self.name
                and verify_password(password, account.credentials_source)
            ):
                return account
        return None


class AuthenticationManager:
    """Registry of authentication providers plus bearer-token session resolution."""

    def __init__(self, user_service: UserService, provider_names: Iterable[str]) -> None:
        self._user_service = user_service
        self._providers = {
            name: UsernamePasswordProvider(name, user_service) for name in provider_names
        }

    def get_providers(self) -> dict[str, UsernamePasswordProvider]:
        return dict(self._providers)

    def authenticate(self, username: str, password: str, provider_name: str) -> Account | None:
        provider = self._providers.get(provider_name)
        if provider is None:
            raise ValueError(f'authentication provider "{provider_name}" not found')
        account = provider.authenticate(username, password)
        if account is None:
            logger.warning("failed authentication attempt for %s (%s)", username, provider_name)
        return account

    def resolve_user(self, token: str) -> tuple[User, Account] | None:
        """Return the user and account a bearer token was issued for, if still valid."""
        try:
            claims = decode_access_token(token)
        except jwt.PyJWTError as exc:
            logger.info("rejected access token: %s", exc)
            return None
        user = self._user_service.get_user_by_account_id(claims["sub"])
        if user is None:
            return None
        for account in user.accounts:
            if account.account_id == claims["sub"]:
                return user, account
        return None
