from __future__ import annotations

import copy
import os
from pathlib import Path

# keep password hashing cheap before the settings are first read
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backoffice.api import auth, backend, users
from backoffice.config import get_settings
from backoffice.controllers.base import RequestContext
from backoffice.controllers.users import UsersController
from backoffice.domain.contracts import CreateUserInput
from backoffice.domain.policy import PolicyService
from backoffice.domain.service import UserService
from backoffice.domain.user import Account, PersonName, User
from backoffice.i18n.cache import InMemoryLabelCache
from backoffice.i18n.translator import Translator
from backoffice.i18n.xliff import XliffService
from backoffice.messaging.flash import InMemoryFlashMessageStore
from backoffice.security.authentication import AuthenticationManager
from backoffice.security.tokens import issue_access_token
from backoffice.services.redirection import BackendRedirectionService

TRANSLATIONS_PATH = Path(__file__).parent / "fixtures" / "translations"

ADMINISTRATOR = "Backoffice:Administrator"
EDITOR = "Backoffice:Editor"
USER_MANAGER = "Backoffice:UserManager"


class FakeUserRepository:
    """In-memory repository handing out copies, like rows re-read from Postgres."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def list_users(self) -> list[User]:
        return [copy.deepcopy(user) for user in self._users.values()]

    def get_user(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user else None

    def find_user_by_account(self, account_identifier: str, authentication_provider_name: str):
        for user in self._users.values():
            for account in user.accounts:
                if (
                    account.account_identifier == account_identifier
                    and account.authentication_provider_name == authentication_provider_name
                ):
                    return copy.deepcopy(user)
        return None

    def find_user_by_account_id(self, account_id: str):
        for user in self._users.values():
            if any(account.account_id == account_id for account in user.accounts):
                return copy.deepcopy(user)
        return None

    def add_user(self, user: User) -> None:
        self._users[user.user_id] = copy.deepcopy(user)

    def update_user(self, user: User) -> None:
        stored = self._users[user.user_id]
        stored.name = copy.deepcopy(user.name)
        stored.electronic_addresses = copy.deepcopy(user.electronic_addresses)

    def delete_user(self, user_id: str) -> None:
        self._users.pop(user_id, None)

    def update_account(self, account: Account) -> None:
        for user in self._users.values():
            for index, stored in enumerate(user.accounts):
                if stored.account_id == account.account_id:
                    user.accounts[index] = copy.deepcopy(account)


def make_user(user_service: UserService, username: str, roles: list[str]) -> User:
    return user_service.add_user(
        CreateUserInput(
            username=username,
            password="secret",
            name=PersonName(first_name=username.title(), last_name="Tester"),
            role_identifiers=roles,
        )
    )


def auth_headers(user: User) -> dict[str, str]:
    token, _ = issue_access_token(user.primary_account)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def repository() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def policy_service() -> PolicyService:
    return PolicyService()


@pytest.fixture
def user_service(repository, policy_service) -> UserService:
    return UserService(repository, policy_service)


@pytest.fixture
def label_cache() -> InMemoryLabelCache:
    return InMemoryLabelCache(ttl_seconds=60)


@pytest.fixture
def xliff_service(label_cache) -> XliffService:
    return XliffService(str(TRANSLATIONS_PATH), label_cache, default_locale="en")


@pytest.fixture
def translator(xliff_service) -> Translator:
    return Translator(xliff_service, default_locale="en")


@pytest.fixture
def authentication_manager(user_service) -> AuthenticationManager:
    return AuthenticationManager(user_service, get_settings().authentication_providers)


@pytest.fixture
def people(user_service) -> dict[str, User]:
    """An administrator, a non-admin user manager, an editor and an editor-in-chief."""
    return {
        "admin": make_user(user_service, "admin", [ADMINISTRATOR]),
        "manager": make_user(user_service, "manager", [EDITOR, USER_MANAGER]),
        "editor": make_user(user_service, "editor", [EDITOR]),
        "peer": make_user(user_service, "peer", [EDITOR]),
        "chief": make_user(user_service, "chief", [EDITOR, ADMINISTRATOR]),
    }


@pytest.fixture
def controller_for(user_service, policy_service, authentication_manager, translator):
    """Build a users controller acting as the given user."""

    def factory(current_user: User, action_name: str = "index") -> UsersController:
        settings = get_settings()
        context = RequestContext.for_user(
            current_user, action_name, policy_service, settings.administrator_role
        )
        return UsersController(
            context,
            user_service=user_service,
            policy_service=policy_service,
            authentication_manager=authentication_manager,
            translator=translator,
            module_label=settings.users_module_label,
            module_privilege=settings.users_module_privilege,
        )

    return factory


@pytest.fixture
def flash_store() -> InMemoryFlashMessageStore:
    return InMemoryFlashMessageStore()


@pytest.fixture
def api_client(
    user_service,
    policy_service,
    authentication_manager,
    xliff_service,
    translator,
    flash_store,
):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(backend.router)
    app.state.user_service = user_service
    app.state.policy_service = policy_service
    app.state.authentication_manager = authentication_manager
    app.state.flash_store = flash_store
    app.state.xliff_service = xliff_service
    app.state.translator = translator
    app.state.redirection_service = BackendRedirectionService(
        authentication_manager, get_settings().after_login_uri
    )

    with TestClient(app, follow_redirects=False) as client:
        yield client
