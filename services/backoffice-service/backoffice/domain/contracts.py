"""Domain-level request contracts and errors shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .user import Account, ElectronicAddress, PersonName, User


@dataclass(slots=True)
class CreateUserInput:
    """Validated inputs required to create a user with its primary account."""

    username: str
    password: str
    name: PersonName
    role_identifiers: list[str]
    authentication_provider_name: str | None = None
    electronic_addresses: list[ElectronicAddress] = field(default_factory=list)


class UserAlreadyExistsError(ValueError):
    """Raised when an account identifier is already taken for a provider."""


class UserNotFoundError(ValueError):
    """Raised when a user or account cannot be resolved."""


class NoSuchRoleError(ValueError):
    """Raised when a role identifier is not known to the policy."""


class UserRepository(Protocol):
    """Persistence operations the user directory relies on."""

    def list_users(self) -> list[User]: ...

    def get_user(self, user_id: str) -> User | None: ...

    def find_user_by_account(
        self, account_identifier: str, authentication_provider_name: str
    ) -> User | None: ...

    def find_user_by_account_id(self, account_id: str) -> User | None: ...

    def add_user(self, user: User) -> None: ...

    def update_user(self, user: User) -> None: ...

    def delete_user(self, user_id: str) -> None: ...

    def update_account(self, account: Account) -> None: ...
