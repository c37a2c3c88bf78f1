"""HTTP routes of the backend entry point."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from .dependencies import (
    bearer_token,
    get_redirection_service,
    get_xliff_service,
    http_error_from_value_error,
)
from ..config import get_settings
from ..controllers.backend import BackendController

router = APIRouter(prefix="/backend", tags=["backend"])


def get_backend_controller(request: Request) -> BackendController:
    return BackendController(
        redirection_service=get_redirection_service(request),
        xliff_service=get_xliff_service(request),
        login_uri=get_settings().login_uri,
    )


@router.get("", name="backend.index")
def index(
    token: str | None = Depends(bearer_token),
    controller: BackendController = Depends(get_backend_controller),
) -> Response:
    """Send the user to their landing page, or to the login when not authenticated."""
    result = controller.index(token)
    return RedirectResponse(result.uri, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/xliff.json", name="backend.xliff_as_json")
def xliff_as_json(
    locale: str = Query(..., min_length=2),
    controller: BackendController = Depends(get_backend_controller),
) -> Response:
    """Return the cached label catalogue for ``locale`` as JSON."""
    try:
        result = controller.xliff_as_json(locale)
    except ValueError as exc:
        raise http_error_from_value_error(exc) from exc
    return Response(content=result.content, media_type=result.media_type)
