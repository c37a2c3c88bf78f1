"""
User management utility for bootstrapping the backoffice.

Usage:
    python -m backoffice.manage_users list
    python -m backoffice.manage_users create <username> <password> [role ...]
"""

from __future__ import annotations

import sys

from psycopg_pool import ConnectionPool

from .config import get_settings
from .domain.contracts import CreateUserInput, NoSuchRoleError, UserAlreadyExistsError
from .domain.policy import PolicyService
from .domain.service import UserService
from .domain.user import PersonName
from .repository import UserRepository


def _user_service(pool: ConnectionPool) -> UserService:
    settings = get_settings()
    policy_service = (
        PolicyService.from_file(settings.policy_path) if settings.policy_path else PolicyService()
    )
    return UserService(UserRepository(pool), policy_service)


def list_users(service: UserService) -> int:
    users = service.get_users()
    if not users:
        print("No users found")
        return 0
    for user in users:
        account = user.primary_account
        if account is None:
            continue
        print(
            f"  - {account.account_identifier} ({account.authentication_provider_name}): "
            f"{', '.join(sorted(account.role_identifiers))}"
        )
    return 0


def create_user(service: UserService, username: str, password: str, roles: list[str]) -> int:
    try:
        service.add_user(
            CreateUserInput(
                username=username,
                password=password,
                name=PersonName(first_name=username),
                role_identifiers=roles or [get_settings().administrator_role],
            )
        )
    except (UserAlreadyExistsError, NoSuchRoleError) as exc:
        print(f"Error: {exc}")
        return 1
    print(f"Created user {username}")
    return 0


def main(argv: list[str]) -> int:
    if not argv or argv[0] not in {"list", "create"}:
        print(__doc__)
        return 1
    if argv[0] == "create" and len(argv) < 3:
        print("Username and password required")
        print(__doc__)
        return 1

    with ConnectionPool(get_settings().database_url) as pool:
        service = _user_service(pool)
        if argv[0] == "list":
            return list_users(service)
        return create_user(service, argv[1], argv[2], argv[3:])


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
