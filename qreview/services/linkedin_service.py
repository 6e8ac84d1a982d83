import json
from http.client import HTTPException
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from qreview.errors import UpstreamUnavailable

AUTHORIZATION_URL = "https://www.linkedin.com/oauth/v2/authorization"
TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
USERINFO_URL = "https://api.linkedin.com/v2/userinfo"
SCOPES = ("openid", "profile", "email")


class LinkedInClient:
    def __init__(self, client_id, client_secret, redirect_uri, timeout=10.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        """Build a client, or return None when LinkedIn credentials are not configured."""
        client_id = config.get("LINKEDIN_CLIENT_ID")
        client_secret = config.get("LINKEDIN_CLIENT_SECRET")
        if not client_id or not client_secret:
            return None
        redirect_uri = config["BASE_URL"].rstrip("/") + "/auth/linkedin/callback"
        return cls(client_id, client_secret, redirect_uri, timeout=config.get("LINKEDIN_TIMEOUT", 10.0))

    def authorization_url(self, state):
        query = urlencode(
            {
                "response_type": "code",
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "scope": " ".join(SCOPES),
                "state": state,
            }
        )
        return f"{AUTHORIZATION_URL}?{query}"

    def _fetch_json(self, req, action):
        try:
            with urlopen(req, timeout=self.timeout) as response:
                payload = json.loads(response.read().decode("utf-8"))
        except (OSError, HTTPException, ValueError) as exc:
            raise UpstreamUnavailable(f"{action} failed: {exc!r}") from exc
        if not isinstance(payload, dict):
            raise UpstreamUnavailable(f"{action} returned an unexpected payload")
        return payload

    def exchange_code(self, code):
        body = urlencode(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            }
        ).encode("utf-8")
        req = Request(
            TOKEN_URL,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"},
            method="POST",
        )
        access_token = self._fetch_json(req, "LinkedIn token exchange").get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise UpstreamUnavailable("LinkedIn token exchange returned no access token")
        return access_token

    def fetch_profile(self, access_token):
        req = Request(USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        info = self._fetch_json(req, "LinkedIn user info request")
        if not info.get("sub"):
            raise UpstreamUnavailable("LinkedIn user info carried no subject")

        # OpenID Connect userinfo carries no vanity profile URL.
        return {
            "id": info.get("sub"),
            "linkedinId": info.get("sub"),
            "name": info.get("name") or "",
            "firstName": info.get("given_name") or "",
            "lastName": info.get("family_name") or "",
            "email": info.get("email") or "",
            "profileUrl": "",
            "verified": True,
        }

    def authenticate(self, code):
        return self.fetch_profile(self.exchange_code(code))
