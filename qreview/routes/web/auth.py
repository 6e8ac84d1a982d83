import json
import secrets
from urllib.parse import quote

from flask import Blueprint, current_app, jsonify, redirect, request, session

from qreview.errors import AppError, UpstreamUnavailable

web_auth_bp = Blueprint("web_auth", __name__)

STATE_SESSION_KEY = "linkedin_oauth_state"
USER_SESSION_KEY = "linkedin_user"


def _linkedin_client():
    return current_app.extensions.get("linkedin_client")


def _failure_redirect(details):
    return redirect("/?error=linkedin_auth_failed&details=" + quote(str(details), safe=""))


@web_auth_bp.get("/linkedin")
def linkedin_login():
    client = _linkedin_client()
    if client is None:
        current_app.logger.error("LinkedIn credentials not configured")
        raise AppError("LinkedIn authentication not configured", 503)
    state = secrets.token_urlsafe(16)
    session[STATE_SESSION_KEY] = state
    current_app.logger.info("Initiating LinkedIn OAuth flow")
    return redirect(client.authorization_url(state))


@web_auth_bp.get("/linkedin/callback")
def linkedin_callback():
    client = _linkedin_client()
    if client is None:
        raise AppError("LinkedIn authentication not configured", 503)

    if request.args.get("error"):
        current_app.logger.warning("LinkedIn returned an error: %s", request.args.get("error"))
        return _failure_redirect(request.args.get("error_description") or request.args.get("error"))

    expected_state = session.pop(STATE_SESSION_KEY, None)
    if not expected_state or not secrets.compare_digest(expected_state, request.args.get("state", "")):
        current_app.logger.warning("LinkedIn callback with invalid state")
        return _failure_redirect("invalid_state")

    code = request.args.get("code")
    if not code:
        return _failure_redirect("no_user")

    try:
        user = client.authenticate(code)
    except UpstreamUnavailable as exc:
        current_app.logger.error("LinkedIn authentication error: %s", exc)
        return _failure_redirect(exc)

    session[USER_SESSION_KEY] = user
    current_app.logger.info("LinkedIn authentication successful for %s", user.get("linkedinId"))
    return redirect("/?linkedin_data=" + quote(json.dumps(user), safe=""))


@web_auth_bp.get("/session")
def linkedin_session():
    user = session.get(USER_SESSION_KEY)
    if user:
        return jsonify({"authenticated": True, "user": user})
    return jsonify({"authenticated": False})
