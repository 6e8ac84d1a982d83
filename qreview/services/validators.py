import re

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
SIRET_RE = re.compile(r"[0-9]{14}")

COMPANY_NAME_MAX = 255
POSITION_MAX = 255
DURATION_MAX = 100
EMAIL_MAX = 255
COMMENT_MAX = 5000
AUTHOR_NAME_MAX = 255
REPLY_MAX = 2000


def _is_blank(value):
    return not isinstance(value, str) or not value.strip()


def _required_text(errors, payload, field, max_length):
    value = payload.get(field)
    if _is_blank(value):
        errors.append(f"{field} is required")
    elif len(value) > max_length:
        errors.append(f"{field} must be at most {max_length} characters")


def parse_rating(value):
    """Return the rating as an int in 1..5, or None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, str):
        value = value.strip()
        if not re.fullmatch(r"[+-]?\d+", value):
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    if value < 1 or value > 5:
        return None
    return value


def is_valid_siret(value):
    return isinstance(value, str) and SIRET_RE.fullmatch(value) is not None


def validate_review(payload):
    if not isinstance(payload, dict):
        payload = {}
    errors = []

    _required_text(errors, payload, "company_name", COMPANY_NAME_MAX)
    _required_text(errors, payload, "position", POSITION_MAX)
    _required_text(errors, payload, "duration", DURATION_MAX)

    if parse_rating(payload.get("rating")) is None:
        errors.append("rating must be an integer between 1 and 5")

    email = payload.get("email")
    if not isinstance(email, str) or not EMAIL_RE.fullmatch(email):
        errors.append("A valid email is required")
    elif len(email) > EMAIL_MAX:
        errors.append(f"email must be at most {EMAIL_MAX} characters")

    comment = payload.get("comment")
    if comment is not None and not isinstance(comment, str):
        errors.append("comment must be text")
    elif comment and len(comment) > COMMENT_MAX:
        errors.append(f"comment must be at most {COMMENT_MAX} characters")

    author_name = payload.get("author_name")
    if author_name and (not isinstance(author_name, str) or len(author_name) > AUTHOR_NAME_MAX):
        errors.append(f"author_name must be at most {AUTHOR_NAME_MAX} characters")

    siret = payload.get("siret")
    if siret and not is_valid_siret(siret):
        errors.append("siret must be exactly 14 digits")

    return errors


def validate_admin_reply(payload):
    reply = payload.get("reply") if isinstance(payload, dict) else None
    errors = []
    if _is_blank(reply):
        errors.append("reply is required")
    elif len(reply) > REPLY_MAX:
        errors.append(f"reply must be at most {REPLY_MAX} characters")
    return errors
