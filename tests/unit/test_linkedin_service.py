"""Tests for the LinkedIn OpenID Connect client."""
import json
from http.client import IncompleteRead
from unittest.mock import MagicMock, patch
from urllib.error import URLError
from urllib.parse import parse_qs, urlparse

import pytest

from qreview.errors import UpstreamUnavailable
from qreview.services.linkedin_service import AUTHORIZATION_URL, LinkedInClient


def _response(payload):
    response = MagicMock()
    response.read.return_value = json.dumps(payload).encode("utf-8")
    context = MagicMock()
    context.__enter__.return_value = response
    return context


@pytest.fixture
def client():
    return LinkedInClient("client-id", "client-secret", "https://reviews.test/auth/linkedin/callback")


@pytest.mark.unit
def test_from_config_without_credentials_disables_feature():
    assert LinkedInClient.from_config({"BASE_URL": "https://reviews.test"}) is None
    assert LinkedInClient.from_config({"BASE_URL": "x", "LINKEDIN_CLIENT_ID": "id"}) is None


@pytest.mark.unit
def test_from_config_builds_callback_url():
    client = LinkedInClient.from_config(
        {
            "BASE_URL": "https://reviews.test/",
            "LINKEDIN_CLIENT_ID": "id",
            "LINKEDIN_CLIENT_SECRET": "secret",
        }
    )
    assert client.redirect_uri == "https://reviews.test/auth/linkedin/callback"


@pytest.mark.unit
def test_authorization_url_carries_scope_and_state(client):
    url = client.authorization_url("state-123")
    parsed = urlparse(url)
    query = parse_qs(parsed.query)

    assert url.startswith(AUTHORIZATION_URL)
    assert query["client_id"] == ["client-id"]
    assert query["scope"] == ["openid profile email"]
    assert query["state"] == ["state-123"]
    assert query["response_type"] == ["code"]


@pytest.mark.unit
def test_authenticate_maps_userinfo(client):
    responses = [
        _response({"access_token": "tok"}),
        _response({"sub": "abc", "name": "Jane Doe", "given_name": "Jane", "family_name": "Doe", "email": "j@d.fr"}),
    ]
    with patch("qreview.services.linkedin_service.urlopen", side_effect=responses) as mock_urlopen:
        user = client.authenticate("auth-code")

    assert user == {
        "id": "abc",
        "linkedinId": "abc",
        "name": "Jane Doe",
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "j@d.fr",
        "profileUrl": "",
        "verified": True,
    }
    token_request = mock_urlopen.call_args_list[0].args[0]
    assert token_request.get_method() == "POST"
    assert b"code=auth-code" in token_request.data
    userinfo_request = mock_urlopen.call_args_list[1].args[0]
    assert userinfo_request.get_header("Authorization") == "Bearer tok"


@pytest.mark.unit
def test_missing_access_token_is_upstream_failure(client):
    with patch("qreview.services.linkedin_service.urlopen", return_value=_response({})):
        with pytest.raises(UpstreamUnavailable):
            client.exchange_code("code")


@pytest.mark.unit
def test_network_failure_is_upstream_failure(client):
    with patch("qreview.services.linkedin_service.urlopen", side_effect=URLError("down")):
        with pytest.raises(UpstreamUnavailable):
            client.fetch_profile("tok")


@pytest.mark.unit
@pytest.mark.parametrize("payload", [["tok"], {"access_token": 12}])
def test_unexpected_token_payload_is_upstream_failure(client, payload):
    with patch("qreview.services.linkedin_service.urlopen", return_value=_response(payload)):
        with pytest.raises(UpstreamUnavailable):
            client.exchange_code("code")


@pytest.mark.unit
def test_userinfo_without_subject_is_upstream_failure(client):
    with patch("qreview.services.linkedin_service.urlopen", return_value=_response({"name": "Jane"})):
        with pytest.raises(UpstreamUnavailable):
            client.fetch_profile("tok")


@pytest.mark.unit
def test_truncated_response_is_upstream_failure(client):
    with patch("qreview.services.linkedin_service.urlopen", side_effect=IncompleteRead(b"{")):
        with pytest.raises(UpstreamUnavailable):
            client.fetch_profile("tok")
