"""User administration module: manage backoffice users, their accounts and addresses."""

from __future__ import annotations

import logging
from typing import Sequence

from .base import ActionResult, ModuleController, RequestContext
from ..domain.contracts import CreateUserInput, UserAlreadyExistsError, UserNotFoundError
from ..domain.policy import PolicyService
from ..domain.service import UserService
from ..domain.user import (
    ELECTRONIC_ADDRESS_TYPES,
    ELECTRONIC_ADDRESS_USAGE_TYPES,
    Account,
    ElectronicAddress,
    Role,
    User,
)
from ..i18n.translator import Translator
from ..messaging.flash import Severity
from ..security.authentication import AuthenticationManager

logger = logging.getLogger(__name__)


class UsersController(ModuleController):
    """Actions of the user administration module.

    Non-administrators may only act on users whose roles are a subset of their
    own, and may only hand out roles they hold themselves.
    """

    def __init__(
        self,
        context: RequestContext,
        *,
        user_service: UserService,
        policy_service: PolicyService,
        authentication_manager: AuthenticationManager,
        translator: Translator,
        module_label: str,
        module_privilege: str,
    ) -> None:
        super().__init__(context)
        self._user_service = user_service
        self._policy_service = policy_service
        self._authentication_manager = authentication_manager
        self._translator = translator
        self._module_privilege = module_privilege
        action_label = module_label.replace("label", "action.") + context.action_name
        self.title = f"{translator.translate(module_label)} :: {translator.translate(action_label)}"

    def index(self) -> ActionResult:
        users_with_meta = [
            {
                "user": user,
                "is_editing_allowed": self.is_editing_allowed(user),
                "is_current_user": user.user_id == self.current_user.user_id,
            }
            for user in self._user_service.get_users()
        ]
        return self.view(
            "index",
            title=self.title,
            current_user=self.current_user,
            users_with_meta=users_with_meta,
        )

    def show(self, user: User) -> ActionResult:
        return self.view(
            "show",
            title=self.title,
            current_user=self.current_user,
            is_editing_allowed=self.is_editing_allowed(user),
            user=user,
        )

    def new(self, user: User | None = None) -> ActionResult:
        return self.view(
            "new",
            title=self.title,
            current_user=self.current_user,
            user=user,
            roles=self.get_allowed_roles(),
            providers=self.get_authentication_providers(),
        )

    def create(
        self,
        username: str,
        password: Sequence[str],
        user: User,
        role_identifiers: Sequence[str],
        authentication_provider_name: str | None = None,
    ) -> ActionResult:
        if not self.is_role_assignment_allowed(role_identifiers):
            logger.warning(
                "%s may not create user %s with roles %s",
                self._actor_name,
                username,
                list(role_identifiers),
            )
            self.add_flash_message(
                'Not allowed to create a user with roles "%s".',
                "User creation denied",
                Severity.error,
                [", ".join(role_identifiers)],
                1416225562,
            )
            return self.redirect("index")
        unknown_roles = self._unknown_roles(role_identifiers)
        if unknown_roles:
            self.add_flash_message(
                'The roles "%s" do not exist.',
                "User creation denied",
                Severity.error,
                [", ".join(unknown_roles)],
                1416225568,
            )
            return self.redirect("index")

        try:
            self._user_service.add_user(
                CreateUserInput(
                    username=username,
                    password=password[0],
                    name=user.name,
                    role_identifiers=list(role_identifiers),
                    authentication_provider_name=authentication_provider_name,
                    electronic_addresses=list(user.electronic_addresses),
                )
            )
        except UserAlreadyExistsError:
            self.add_flash_message(
                'The username "%s" is already in use.',
                "User creation denied",
                Severity.error,
                [username],
                1416225569,
            )
            return self.redirect("index")
        self.add_flash_message(
            'The user "%s" has been created.',
            "User created",
            Severity.ok,
            [username],
            1416225561,
        )
        return self.redirect("index")

    def edit(self, user: User) -> ActionResult:
        if not self.is_editing_allowed(user):
            self.add_flash_message(
                'Not allowed to edit the user "%s".',
                "User editing denied",
                Severity.error,
                [user.name.full_name],
                1416225563,
            )
            return self.redirect("index")
        return self.view(
            "edit",
            title=self.title,
            current_user=self.current_user,
            user=user,
            available_roles=self.get_allowed_roles(),
            **self.electronic_address_options(),
        )

    def update(self, user: User) -> ActionResult:
        """Persist ``user``, which already carries the submitted changes."""
        if not self.is_editing_allowed(user):
            self.add_flash_message(
                'Not allowed to edit the user "%s".',
                "User editing denied",
                Severity.error,
                [user.name.full_name],
                1416225563,
            )
            return self.redirect("index")
        self._user_service.update_user(user)
        self.add_flash_message(
            'The user "%s" has been updated.',
            "User updated",
            Severity.ok,
            [user.name.full_name],
            1412374498,
        )
        return self.redirect("index")

    def delete(self, user: User) -> ActionResult:
        if not self.is_editing_allowed(user):
            self.add_flash_message(
                'Not allowed to delete the user "%s".',
                "User editing denied",
                Severity.error,
                [user.name.full_name],
                1416225564,
            )
            return self.redirect("index")
        if user.user_id == self.current_user.user_id:
            self.add_flash_message(
                "You can not delete the currently logged in user",
                "Current user can't be deleted",
                Severity.warning,
                code=1412374546,
            )
            return self.redirect("index")
        self._user_service.delete_user(user)
        self.add_flash_message(
            'The user "%s" has been deleted.',
            "User deleted",
            Severity.notice,
            [user.name.full_name],
            1412374546,
        )
        return self.redirect("index")

    def edit_account(self, account: Account) -> ActionResult:
        user = self._account_owner(account)
        if not self.is_editing_allowed(user):
            self.add_flash_message(
                'Not allowed to edit the account for the user "%s".',
                "User account editing denied",
                Severity.error,
                [user.name.full_name],
                1416225565,
            )
            return self.redirect("index")
        return self.view(
            "edit_account",
            title=self.title,
            account=account,
            user=user,
            available_roles=self.get_allowed_roles(),
        )

    def update_account(
        self,
        account: Account,
        role_identifiers: Sequence[str],
        password: Sequence[str] = (),
    ) -> ActionResult:
        """Replace the account's roles and, when a non-blank password is given, its password."""
        user = self._account_owner(account)
        if not self.is_editing_allowed(user):
            self.add_flash_message(
                'Not allowed to edit the account for the user "%s".',
                "User account editing denied",
                Severity.error,
                [user.name.full_name],
                1416225565,
            )
            return self.redirect("index")
        if not self.is_role_assignment_allowed(role_identifiers):
            self.add_flash_message(
                'Not allowed to assign the roles "%s".',
                "User account editing denied",
                Severity.error,
                [", ".join(role_identifiers)],
                1416225570,
            )
            return self.redirect("edit", user=user.user_id)
        unknown_roles = self._unknown_roles(role_identifiers)
        if unknown_roles:
            self.add_flash_message(
                'The roles "%s" do not exist.',
                "User account editing denied",
                Severity.error,
                [", ".join(unknown_roles)],
                1416225571,
            )
            return self.redirect("edit", user=user.user_id)

        if user.user_id == self.current_user.user_id:
            roles = [self._policy_service.get_role(identifier) for identifier in role_identifiers]
            if not self._policy_service.is_privilege_target_granted_for_roles(roles, self._module_privilege):
                logger.warning("%s tried to lock themselves out of the user module", self._actor_name)
                self.add_flash_message(
                    "With the selected roles the currently logged in user wouldn't have access "
                    "to this module any longer. Please adjust the assigned roles!",
                    "Don't lock yourself out",
                    Severity.warning,
                    code=1416501197,
                )
                return self.redirect("edit", user=self.current_user.user_id)

        new_password = password[0] if password else ""
        if new_password.strip():
            self._user_service.set_user_password(user, new_password)

        # the owner's copy carries the credentials written above
        owned = next(
            (candidate for candidate in user.accounts if candidate.account_id == account.account_id),
            account,
        )
        self._user_service.set_roles_for_account(owned, role_identifiers)
        self.add_flash_message("The account has been updated.", "Account updated", Severity.ok)
        return self.redirect("edit", user=user.user_id)

    def new_electronic_address(self, user: User) -> ActionResult:
        if not self.is_editing_allowed(user):
            self.add_flash_message(
                'Not allowed to create an electronic address for the user "%s".',
                "User email editing denied",
                Severity.error,
                [user.name.full_name],
                1416225566,
            )
            return self.redirect("index")
        return self.view(
            "new_electronic_address",
            title=self.title,
            user=user,
            **self.electronic_address_options(),
        )

    def create_electronic_address(self, user: User, electronic_address: ElectronicAddress) -> ActionResult:
        if not self.is_editing_allowed(user):
            self.add_flash_message(
                'Not allowed to create an electronic address for the user "%s".',
                "User email editing denied",
                Severity.error,
                [user.name.full_name],
                1416225566,
            )
            return self.redirect("index")
        user.add_electronic_address(electronic_address)
        self._user_service.update_user(user)
        self.add_flash_message(
            'An electronic address "%s" (%s) has been added.',
            "Electronic address added",
            Severity.ok,
            [electronic_address.identifier, electronic_address.type],
            1412374814,
        )
        return self.redirect("edit", user=user.user_id)

    def delete_electronic_address(self, user: User, electronic_address: ElectronicAddress) -> ActionResult:
        if not self.is_editing_allowed(user):
            self.add_flash_message(
                'Not allowed to delete an electronic address for the user "%s".',
                "User email deletion denied",
                Severity.error,
                [user.name.full_name],
                1416225567,
            )
            return self.redirect("index")
        user.remove_electronic_address(electronic_address)
        self._user_service.update_user(user)
        self.add_flash_message(
            'The electronic address "%s" (%s) has been deleted for "%s".',
            "Electronic address removed",
            Severity.notice,
            [electronic_address.identifier, electronic_address.type, user.name.full_name],
            1412374678,
        )
        return self.redirect("edit", user=user.user_id)

    def electronic_address_options(self) -> dict[str, dict[str, str]]:
        """Address types and translated usage types, the latter led by an empty choice."""
        usage_types = {"": ""}
        for usage_type in ELECTRONIC_ADDRESS_USAGE_TYPES:
            usage_types[usage_type] = self._translator.translate(
                f"users.electronicAddress.usage.type.{usage_type}",
                usage_type,
                source="Modules",
                package="Backoffice",
            )
        return {
            "electronic_address_types": {type_: type_ for type_ in ELECTRONIC_ADDRESS_TYPES},
            "electronic_address_usage_types": usage_types,
        }

    def get_authentication_providers(self) -> dict[str, str]:
        """Provider names sorted alphabetically, keyed by themselves."""
        names = sorted(self._authentication_manager.get_providers())
        return {name: name for name in names}

    def get_allowed_roles(self) -> list[Role]:
        """Administrators can assign any role, other users only their own roles."""
        if self.is_administrator:
            return self._policy_service.get_roles()
        return [
            self._policy_service.get_role(identifier)
            for identifier in sorted(self.current_user.role_identifiers)
            if self._policy_service.has_role(identifier)
        ]

    def is_editing_allowed(self, user: User) -> bool:
        """Administrators may edit anybody; others only users holding a subset of their roles."""
        if self.is_administrator:
            return True
        return not (user.role_identifiers - self.current_user.role_identifiers)

    def is_role_assignment_allowed(self, role_identifiers: Sequence[str]) -> bool:
        if self.is_administrator:
            return True
        return not (set(role_identifiers) - self.current_user.role_identifiers)

    def _unknown_roles(self, role_identifiers: Sequence[str]) -> list[str]:
        return [identifier for identifier in role_identifiers if not self._policy_service.has_role(identifier)]

    def _account_owner(self, account: Account) -> User:
        user = self._user_service.get_user(account.account_identifier, account.authentication_provider_name)
        if user is None:
            raise UserNotFoundError(f'user for account "{account.account_identifier}" not found')
        return user

    @property
    def _actor_name(self) -> str:
        account = self.current_user.primary_account
        return account.account_identifier if account else self.current_user.user_id
