"""HTTP routes of the user administration module."""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_client import Counter

from .dependencies import (
    Session,
    get_authentication_manager,
    get_flash_store,
    get_policy_service,
    get_translator,
    get_user_service,
    http_error_from_value_error,
    require_users_module,
)
from .schemas import (
    CreateUserRequest,
    ElectronicAddressRequest,
    UpdateAccountRequest,
    UpdateUserRequest,
    ViewResponse,
    serialize_view_value,
)
from ..config import get_settings
from ..controllers.base import ActionResult, RedirectResult, RequestContext
from ..controllers.users import UsersController
from ..domain.service import UserService
from ..domain.user import Account, ElectronicAddress, PersonName, User

router = APIRouter(prefix="/v1", tags=["users"])

USER_ADMIN_ACTIONS = Counter(
    "backoffice_user_admin_actions_total",
    "Actions handled by the user administration module.",
    ["action", "outcome"],
)

_REDIRECT_ROUTES = {"index": "users.index", "edit": "users.edit"}


def users_controller(action_name: str) -> Callable[..., UsersController]:
    """Dependency factory building a per-request controller for ``action_name``."""

    def dependency(request: Request, session: Session = Depends(require_users_module)) -> UsersController:
        settings = get_settings()
        policy_service = get_policy_service(request)
        context = RequestContext.for_user(
            session.user, action_name, policy_service, settings.administrator_role
        )
        return UsersController(
            context,
            user_service=get_user_service(request),
            policy_service=policy_service,
            authentication_manager=get_authentication_manager(request),
            translator=get_translator(request),
            module_label=settings.users_module_label,
            module_privilege=settings.users_module_privilege,
        )

    return dependency


def _respond(request: Request, controller: UsersController, result: ActionResult) -> Response:
    """Store the collected flash messages, then render the view or follow the redirect."""
    messages = controller.flash_messages.messages
    get_flash_store(request).push(controller.current_user.user_id, messages)
    outcome = messages[-1].severity.value if messages else "view"
    USER_ADMIN_ACTIONS.labels(action=controller.context.action_name, outcome=outcome).inc()

    if isinstance(result, RedirectResult):
        path_params = {"user_id": result.arguments["user"]} if "user" in result.arguments else {}
        url = request.url_for(_REDIRECT_ROUTES[result.action], **path_params)
        return RedirectResponse(str(url), status_code=status.HTTP_303_SEE_OTHER)

    view = ViewResponse(template=result.template, variables=serialize_view_value(result.variables))
    return JSONResponse(view.model_dump(mode="json"))


def _load_user(user_service: UserService, user_id: str) -> User:
    user = user_service.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
    return user


def _load_account(user_service: UserService, account_id: str) -> Account:
    user = user_service.get_user_by_account_id(account_id)
    if user is not None:
        for account in user.accounts:
            if account.account_id == account_id:
                return account
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="account not found")


def _load_address(user: User, address_id: str) -> ElectronicAddress:
    address = user.get_electronic_address(address_id)
    if address is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="electronic address not found")
    return address


@router.get("/users", name="users.index")
def index(
    request: Request,
    controller: UsersController = Depends(users_controller("index")),
) -> Response:
    """List all users with per-user editing permissions for the acting user."""
    return _respond(request, controller, controller.index())


@router.get("/users/new", name="users.new")
def new_user(
    request: Request,
    first_name: str | None = Query(default=None),
    last_name: str | None = Query(default=None),
    controller: UsersController = Depends(users_controller("new")),
) -> Response:
    draft = None
    if first_name or last_name:
        draft = User(name=PersonName(first_name=first_name or "", last_name=last_name or ""))
    return _respond(request, controller, controller.new(draft))


@router.post("/users", name="users.create")
def create_user(
    request: Request,
    payload: CreateUserRequest,
    controller: UsersController = Depends(users_controller("create")),
) -> Response:
    """Create a user; rejected role assignments end up as flash messages."""
    settings = get_settings()
    provider = payload.authentication_provider_name or settings.default_authentication_provider
    if provider not in get_authentication_manager(request).get_providers():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f'unknown authentication provider "{provider}"',
        )
    if get_user_service(request).get_user(payload.username, provider) is not None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f'the username "{payload.username}" is already in use',
        )
    result = controller.create(
        payload.username,
        payload.password,
        payload.user.to_domain(),
        payload.role_identifiers,
        payload.authentication_provider_name,
    )
    return _respond(request, controller, result)


@router.get("/users/{user_id}", name="users.show")
def show_user(
    request: Request,
    user_id: str,
    controller: UsersController = Depends(users_controller("show")),
) -> Response:
    user = _load_user(get_user_service(request), user_id)
    return _respond(request, controller, controller.show(user))


@router.get("/users/{user_id}/edit", name="users.edit")
def edit_user(
    request: Request,
    user_id: str,
    controller: UsersController = Depends(users_controller("edit")),
) -> Response:
    user = _load_user(get_user_service(request), user_id)
    return _respond(request, controller, controller.edit(user))


@router.put("/users/{user_id}", name="users.update")
def update_user(
    request: Request,
    user_id: str,
    payload: UpdateUserRequest,
    controller: UsersController = Depends(users_controller("update")),
) -> Response:
    user = payload.apply_to(_load_user(get_user_service(request), user_id))
    return _respond(request, controller, controller.update(user))


@router.delete("/users/{user_id}", name="users.delete")
def delete_user(
    request: Request,
    user_id: str,
    controller: UsersController = Depends(users_controller("delete")),
) -> Response:
    user = _load_user(get_user_service(request), user_id)
    return _respond(request, controller, controller.delete(user))


@router.get("/accounts/{account_id}/edit", name="users.edit_account")
def edit_account(
    request: Request,
    account_id: str,
    controller: UsersController = Depends(users_controller("editAccount")),
) -> Response:
    account = _load_account(get_user_service(request), account_id)
    try:
        result = controller.edit_account(account)
    except ValueError as exc:
        raise http_error_from_value_error(exc) from exc
    return _respond(request, controller, result)


@router.put("/accounts/{account_id}", name="users.update_account")
def update_account(
    request: Request,
    account_id: str,
    payload: UpdateAccountRequest,
    controller: UsersController = Depends(users_controller("updateAccount")),
) -> Response:
    """Change roles and optionally the password; a blank password keeps the current one."""
    account = _load_account(get_user_service(request), account_id)
    try:
        result = controller.update_account(account, payload.role_identifiers, payload.password)
    except ValueError as exc:
        raise http_error_from_value_error(exc) from exc
    return _respond(request, controller, result)


@router.get("/users/{user_id}/electronic-addresses/new", name="users.new_electronic_address")
def new_electronic_address(
    request: Request,
    user_id: str,
    controller: UsersController = Depends(users_controller("newElectronicAddress")),
) -> Response:
    user = _load_user(get_user_service(request), user_id)
    return _respond(request, controller, controller.new_electronic_address(user))


@router.post("/users/{user_id}/electronic-addresses", name="users.create_electronic_address")
def create_electronic_address(
    request: Request,
    user_id: str,
    payload: ElectronicAddressRequest,
    controller: UsersController = Depends(users_controller("createElectronicAddress")),
) -> Response:
    user = _load_user(get_user_service(request), user_id)
    result = controller.create_electronic_address(user, payload.to_domain())
    return _respond(request, controller, result)


@router.delete(
    "/users/{user_id}/electronic-addresses/{address_id}",
    name="users.delete_electronic_address",
)
def delete_electronic_address(
    request: Request,
    user_id: str,
    address_id: str,
    controller: UsersController = Depends(users_controller("deleteElectronicAddress")),
) -> Response:
    user = _load_user(get_user_service(request), user_id)
    address = _load_address(user, address_id)
    return _respond(request, controller, controller.delete_electronic_address(user, address))
