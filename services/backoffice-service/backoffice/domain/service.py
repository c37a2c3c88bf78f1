"""User directory service orchestrating persistence, credentials and role assignment."""

from __future__ import annotations

import logging
from typing import Iterable

from .contracts import CreateUserInput, UserAlreadyExistsError, UserRepository
from .policy import PolicyService
from .user import Account, User
from ..config import get_settings
from ..security.passwords import hash_password

logger = logging.getLogger(__name__)


class UserService:
    """User directory workflows backed by a :class:`UserRepository`."""

    def __init__(self, repository: UserRepository, policy_service: PolicyService) -> None:
        self._repository = repository
        self._policy_service = policy_service

    def get_users(self) -> list[User]:
        return self._repository.list_users()

    def get_user(
        self, username: str, authentication_provider_name: str | None = None
    ) -> User | None:
        """Return the user owning the account ``username`` for the given (or default) provider."""
        provider = authentication_provider_name or get_settings().default_authentication_provider
        return self._repository.find_user_by_account(username, provider)

    def get_user_by_id(self, user_id: str) -> User | None:
        return self._repository.get_user(user_id)

    def get_user_by_account_id(self, account_id: str) -> User | None:
        return self._repository.find_user_by_account_id(account_id)

    def add_user(self, payload: CreateUserInput) -> User:
        """Create a user with a primary account for ``payload.username``.

        Raises
        ------
        UserAlreadyExistsError
            When the account identifier is already taken for the provider.
        NoSuchRoleError
            When one of the role identifiers is unknown.
        """
        provider = payload.authentication_provider_name or get_settings().default_authentication_provider
        if self._repository.find_user_by_account(payload.username, provider) is not None:
            raise UserAlreadyExistsError(f'a user with username "{payload.username}" already exists')

        role_identifiers = payload.role_identifiers
        self._validate_roles(role_identifiers)

        user = User(name=payload.name, electronic_addresses=list(payload.electronic_addresses))
        account = Account(
            account_identifier=payload.username,
            authentication_provider_name=provider,
            role_identifiers=set(role_identifiers),
            credentials_source=hash_password(payload.password),
            user_id=user.user_id,
        )
        user.accounts.append(account)
        self._repository.add_user(user)
        logger.info(
            "created user %s with account %s (%s) and roles %s",
            user.user_id,
            payload.username,
            provider,
            sorted(role_identifiers),
        )
        return user

    def update_user(self, user: User) -> None:
        self._repository.update_user(user)
        logger.info("updated user %s", user.user_id)

    def delete_user(self, user: User) -> None:
        self._repository.delete_user(user.user_id)
        logger.info("deleted user %s", user.user_id)

    def set_user_password(self, user: User, password: str) -> None:
        """Replace the credentials of every account owned by ``user``."""
        for account in user.accounts:
            account.credentials_source = hash_password(password)
            self._repository.update_account(account)
        logger.info("changed password of user %s", user.user_id)

    def set_roles_for_account(self, account: Account, role_identifiers: Iterable[str]) -> None:
        identifiers = set(role_identifiers)
        self._validate_roles(identifiers)
        account.role_identifiers = identifiers
        self._repository.update_account(account)
        logger.info(
            "assigned roles %s to account %s", sorted(identifiers), account.account_identifier
        )

    def _validate_roles(self, role_identifiers: Iterable[str]) -> None:
        for identifier in role_identifiers:
            self._policy_service.get_role(identifier)
