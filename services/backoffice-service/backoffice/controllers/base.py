"""Framework-agnostic action results, request context and the module controller base."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from ..domain.policy import PolicyService
from ..domain.user import User
from ..messaging.flash import FlashMessage, FlashMessageContainer, Severity


@dataclass(slots=True)
class ViewResult:
    """Variables handed to the view layer for rendering ``template``."""

    template: str
    variables: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RedirectResult:
    """Redirect to another action of the same controller."""

    action: str
    arguments: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class UriRedirectResult:
    uri: str


@dataclass(slots=True)
class ContentResult:
    content: str
    media_type: str


ActionResult = Union[ViewResult, RedirectResult, UriRedirectResult, ContentResult]


@dataclass(slots=True)
class RequestContext:
    """Per-request facts about the acting user, resolved once before the action runs."""

    current_user: User
    action_name: str
    is_administrator: bool = False

    @classmethod
    def for_user(
        cls,
        current_user: User,
        action_name: str,
        policy_service: PolicyService,
        administrator_role: str,
    ) -> "RequestContext":
        """Build the context; administrators are recognised on the primary account only."""
        admin_role = policy_service.get_role(administrator_role)
        account = current_user.primary_account
        return cls(
            current_user=current_user,
            action_name=action_name,
            is_administrator=account is not None and account.has_role(admin_role.identifier),
        )


class ModuleController:
    """Base for backend module controllers: flash messages and redirects."""

    def __init__(self, context: RequestContext) -> None:
        self.context = context
        self.flash_messages = FlashMessageContainer()

    @property
    def current_user(self) -> User:
        return self.context.current_user

    @property
    def is_administrator(self) -> bool:
        return self.context.is_administrator

    def add_flash_message(
        self,
        message: str,
        title: str = "",
        severity: Severity = Severity.ok,
        arguments: list[Any] | None = None,
        code: int | None = None,
    ) -> None:
        self.flash_messages.add(
            FlashMessage(
                message=message,
                title=title,
                severity=severity,
                arguments=list(arguments or []),
                code=code,
            )
        )

    def redirect(self, action: str, **arguments: str) -> RedirectResult:
        return RedirectResult(action=action, arguments=arguments)

    def view(self, template: str, **variables: Any) -> ViewResult:
        return ViewResult(template=template, variables=variables)
