"""Health probe and the LinkedIn sign-in round trip with the provider mocked."""
import json
from unittest.mock import MagicMock
from urllib.parse import parse_qs, unquote, urlparse

import pytest

from qreview import shutdown_app
from qreview.errors import UpstreamUnavailable

pytestmark = pytest.mark.integration

LINKEDIN_USER = {
    "id": "abc",
    "linkedinId": "abc",
    "name": "Jane Doe",
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane@example.com",
    "profileUrl": "",
    "verified": True,
}


@pytest.fixture
def linkedin(app):
    client = MagicMock()
    client.authorization_url.side_effect = lambda state: f"https://linkedin.test/authorize?state={state}"
    client.authenticate.return_value = dict(LINKEDIN_USER)
    app.extensions["linkedin_client"] = client
    return client


def _start_flow(client):
    response = client.get("/auth/linkedin")
    assert response.status_code == 302
    return parse_qs(urlparse(response.headers["Location"]).query)["state"][0]


def test_health_reports_database(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["db"] == "sqlite"
    assert isinstance(body["uptime"], int)


def test_shutdown_can_run_twice(app):
    shutdown_app(app)
    shutdown_app(app)
    assert len(app.extensions["admin_sessions"]) == 0


def test_linkedin_unconfigured_returns_503(client):
    response = client.get("/auth/linkedin")
    assert response.status_code == 503
    assert response.get_json() == {"error": "LinkedIn authentication not configured"}


def test_session_is_anonymous_by_default(client):
    assert client.get("/auth/session").get_json() == {"authenticated": False}


def test_callback_stores_user_and_redirects(client, linkedin):
    state = _start_flow(client)

    response = client.get(f"/auth/linkedin/callback?code=auth-code&state={state}")

    assert response.status_code == 302
    location = response.headers["Location"]
    assert location.startswith("/?linkedin_data=")
    assert json.loads(unquote(location.split("=", 1)[1])) == LINKEDIN_USER
    linkedin.authenticate.assert_called_once_with("auth-code")

    session_body = client.get("/auth/session").get_json()
    assert session_body == {"authenticated": True, "user": LINKEDIN_USER}


def test_callback_rejects_mismatched_state(client, linkedin):
    _start_flow(client)

    response = client.get("/auth/linkedin/callback?code=auth-code&state=forged")

    assert response.status_code == 302
    assert response.headers["Location"] == "/?error=linkedin_auth_failed&details=invalid_state"
    linkedin.authenticate.assert_not_called()


def test_callback_without_code(client, linkedin):
    state = _start_flow(client)

    response = client.get(f"/auth/linkedin/callback?state={state}")
    assert response.headers["Location"] == "/?error=linkedin_auth_failed&details=no_user"


def test_callback_relays_provider_error(client, linkedin):
    response = client.get("/auth/linkedin/callback?error=user_cancelled_login")
    assert response.headers["Location"] == "/?error=linkedin_auth_failed&details=user_cancelled_login"


def test_callback_upstream_failure_redirects(client, linkedin):
    linkedin.authenticate.side_effect = UpstreamUnavailable("token exchange failed")
    state = _start_flow(client)

    response = client.get(f"/auth/linkedin/callback?code=auth-code&state={state}")

    assert response.status_code == 302
    assert response.headers["Location"] == "/?error=linkedin_auth_failed&details=token%20exchange%20failed"
    assert client.get("/auth/session").get_json() == {"authenticated": False}
