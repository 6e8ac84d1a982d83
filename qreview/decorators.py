from functools import wraps

from flask import g, request

from qreview.errors import AuthError, ValidationError
from qreview.services.auth_service import AuthService


def admin_required(func):
    @wraps(func)
    def inner(*args, **kwargs):
        token = AuthService.bearer_token(request.headers.get("Authorization"))
        if not AuthService.session_store().is_valid(token):
            raise AuthError()
        g.admin_token = token
        return func(*args, **kwargs)

    return inner


def json_body():
    """The request's JSON object, or an empty dict when the body is absent or not JSON."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError(["Request body must be a JSON object"])
    return payload
