"""Login and flash-message routes shared by all backend modules."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from .dependencies import (
    Session,
    get_authentication_manager,
    get_flash_store,
    get_session,
    http_error_from_value_error,
)
from .schemas import FlashMessageResponse, LoginRequest, TokenResponse
from ..config import get_settings
from ..messaging.flash import FlashMessageStore
from ..security.authentication import AuthenticationManager
from ..security.tokens import issue_access_token

router = APIRouter(prefix="/v1", tags=["auth"])


@router.get("/login", name="auth.login_form")
def login_form(
    manager: AuthenticationManager = Depends(get_authentication_manager),
) -> dict[str, list[str]]:
    """List the authentication providers a login form can offer."""
    return {"providers": sorted(manager.get_providers())}


@router.post("/login", response_model=TokenResponse, name="auth.login")
def login(
    payload: LoginRequest,
    manager: AuthenticationManager = Depends(get_authentication_manager),
) -> TokenResponse:
    """Authenticate with username and password and issue a bearer token."""
    provider = payload.authentication_provider_name or get_settings().default_authentication_provider
    try:
        account = manager.authenticate(payload.username, payload.password, provider)
    except ValueError as exc:
        raise http_error_from_value_error(exc) from exc
    if account is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="wrong credentials")
    access_token, expires_in = issue_access_token(account)
    return TokenResponse(access_token=access_token, expires_in=expires_in)


@router.get("/flash-messages", response_model=list[FlashMessageResponse], name="flash.pop")
def pop_flash_messages(
    session: Session = Depends(get_session),
    store: FlashMessageStore = Depends(get_flash_store),
) -> list[FlashMessageResponse]:
    """Return and forget the flash messages queued for the acting user."""
    return [FlashMessageResponse.from_domain(message) for message in store.pop(session.user.user_id)]
