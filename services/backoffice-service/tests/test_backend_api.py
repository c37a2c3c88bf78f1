from __future__ import annotations

import json

from backoffice.controllers.backend import BackendController
from backoffice.controllers.base import UriRedirectResult
from backoffice.services.redirection import BackendRedirectionService

from conftest import auth_headers


def test_backend_without_session_redirects_to_login(api_client):
    response = api_client.get("/backend")

    assert response.status_code == 303
    assert response.headers["location"] == "/v1/login"


def test_backend_with_invalid_token_redirects_to_login(api_client):
    response = api_client.get("/backend", headers={"Authorization": "Bearer expired.or.forged"})

    assert response.headers["location"] == "/v1/login"


def test_backend_with_session_redirects_to_landing_page(api_client, people):
    response = api_client.get("/backend", headers=auth_headers(people["editor"]))

    assert response.status_code == 303
    assert response.headers["location"] == "/v1/users"


def test_xliff_as_json_serves_labels(api_client):
    response = api_client.get("/backend/xliff.json", params={"locale": "de"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    modules = response.json()["Backoffice"]["Modules"]
    assert modules["users.label"] == "Benutzerverwaltung"
    assert modules["users.action.edit"] == "Edit user"
    assert response.json()["Acme_Blog"]["Modules_Posts"]["posts.title"] == "Posts"


def test_xliff_as_json_rejects_malformed_locale(api_client):
    response = api_client.get("/backend/xliff.json", params={"locale": "not a locale"})

    assert response.status_code == 400


def test_controller_falls_back_to_login_uri(authentication_manager, xliff_service):
    controller = BackendController(
        BackendRedirectionService(authentication_manager, "/landing"),
        xliff_service,
        login_uri="/login",
    )

    assert controller.index(None) == UriRedirectResult(uri="/login")


def test_controller_returns_json_content(authentication_manager, xliff_service):
    controller = BackendController(
        BackendRedirectionService(authentication_manager, "/landing"),
        xliff_service,
        login_uri="/login",
    )

    result = controller.xliff_as_json("en")

    assert result.media_type == "application/json"
    assert json.loads(result.content)["Backoffice"]["Modules"]["users.label"] == "User Management"
