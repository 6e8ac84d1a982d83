from flask import current_app

from qreview.errors import AppError, NotFoundError, RateLimitError, ValidationError
from qreview.services.review_repository import ADMIN_FILTERS, SORT_ORDERS, ReviewRepository
from qreview.services.validators import parse_rating, validate_admin_reply, validate_review

SUBMITTED_MESSAGE = (
    "Votre avis a bien été soumis. Il sera visible après validation par un administrateur."
)
DUPLICATE_MESSAGE = "You have already submitted a review for this company recently."

PUBLIC_PAGE_MAX = 50
PUBLIC_PAGE_DEFAULT = 20
ADMIN_PAGE_MAX = 100
ADMIN_PAGE_DEFAULT = 50
MAX_PAGE = 1_000_000


def _clean_text(value):
    if not isinstance(value, str):
        return None
    return value.strip() or None


def as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "on"}
    return bool(value)


def parse_review_id(raw):
    """Positive integer id from a path segment or payload value, else None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    text = str(raw or "").strip()
    if not text.isdigit():
        return None
    value = int(text)
    return value if value > 0 else None


def require_review_id(raw):
    review_id = parse_review_id(raw)
    if review_id is None:
        raise AppError("Invalid review id", 400)
    return review_id


def parse_id_list(raw):
    if not isinstance(raw, list) or not raw:
        return None
    return [review_id for review_id in (parse_review_id(item) for item in raw) if review_id is not None]


def clamp_page(raw_page, raw_limit, default_limit, max_limit):
    try:
        page = int(raw_page)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(raw_limit)
    except (TypeError, ValueError):
        limit = default_limit
    return min(MAX_PAGE, max(1, page)), min(max_limit, max(1, limit))


class ReviewService:
    @staticmethod
    def registry():
        return current_app.extensions["registry_client"]

    @staticmethod
    def submit_review(payload):
        payload = payload or {}
        errors = validate_review(payload)
        if errors:
            raise ValidationError(errors)

        company_name = payload["company_name"].strip()
        email = payload["email"].strip()
        if ReviewRepository.check_duplicate_review(email, company_name):
            raise RateLimitError(DUPLICATE_MESSAGE)

        siret = _clean_text(payload.get("siret"))
        company_verified = False
        if siret:
            verification = ReviewService.registry().verify(siret)
            company_verified = bool(verification.get("valid"))
            if company_verified and verification.get("company_name"):
                company_name = verification["company_name"]

        # Identity fields arrive from the client after the OAuth round-trip and are stored as sent.
        linkedin_verified = as_bool(payload.get("linkedin_verified"))
        review_id = ReviewRepository.create_review(
            {
                "company_name": company_name,
                "position": payload["position"].strip(),
                "duration": payload["duration"].strip(),
                "rating": parse_rating(payload["rating"]),
                "comment": _clean_text(payload.get("comment")),
                "email": email,
                "author_name": _clean_text(payload.get("author_name")),
                "siret": siret,
                "company_verified": company_verified,
                "linkedin_id": _clean_text(payload.get("linkedin_id")),
                "linkedin_verified": linkedin_verified,
                "linkedin_profile_url": _clean_text(payload.get("linkedin_profile_url")),
            }
        )
        current_app.logger.info(
            "New review %s submitted for %r (company_verified=%s, linkedin_verified=%s), pending validation",
            review_id,
            company_name,
            company_verified,
            linkedin_verified,
        )
        return {
            "message": SUBMITTED_MESSAGE,
            "id": review_id,
            "company_verified": company_verified,
            "linkedin_verified": linkedin_verified,
        }

    @staticmethod
    def list_public(page=None, limit=None, sort=None, company=None):
        page, limit = clamp_page(page, limit, PUBLIC_PAGE_DEFAULT, PUBLIC_PAGE_MAX)
        if sort not in SORT_ORDERS:
            sort = "date_desc"
        company = _clean_text(company)
        return ReviewRepository.get_validated_reviews(page=page, limit=limit, sort=sort, company=company)

    @staticmethod
    def list_admin(page=None, limit=None, status_filter=None, search=None):
        page, limit = clamp_page(page, limit, ADMIN_PAGE_DEFAULT, ADMIN_PAGE_MAX)
        if status_filter not in ADMIN_FILTERS:
            status_filter = "all"
        search = _clean_text(search)
        return ReviewRepository.get_all_reviews(page=page, limit=limit, status_filter=status_filter, search=search)

    @staticmethod
    def public_review(review_id):
        review = ReviewRepository.get_review_by_id(review_id)
        if review is None:
            raise NotFoundError("Review not found")
        return review

    @staticmethod
    def redeem_token(token):
        result = ReviewRepository.validate_review(token)
        if result is None:
            raise NotFoundError("Invalid or already used validation token")
        current_app.logger.info("Review %s validated via token", result["id"])
        return result

    @staticmethod
    def validate_by_admin(review_id):
        if not ReviewRepository.validate_by_admin(review_id):
            raise NotFoundError("Review not found or already validated")
        current_app.logger.info("Review %s manually validated by admin", review_id)

    @staticmethod
    def reply(review_id, payload):
        errors = validate_admin_reply(payload)
        if errors:
            raise ValidationError(errors)
        if not ReviewRepository.add_admin_reply(review_id, payload["reply"].strip()):
            raise NotFoundError("Review not found")
        current_app.logger.info("Admin replied to review %s", review_id)

    @staticmethod
    def set_flag(review_id, flagged):
        if not ReviewRepository.flag_review(review_id, flagged):
            raise NotFoundError("Review not found")
        current_app.logger.info("Review %s %s by admin", review_id, "flagged" if flagged else "unflagged")

    @staticmethod
    def report(review_id):
        affected = ReviewRepository.flag_review(review_id, True)
        current_app.logger.info("Review %s reported by a visitor (matched=%s)", review_id, affected)
        return affected

    @staticmethod
    def delete(review_id):
        if not ReviewRepository.delete_review(review_id):
            raise NotFoundError("Review not found")
        current_app.logger.info("Review %s deleted by admin", review_id)

    @staticmethod
    def bulk_validate(raw_ids):
        ids = parse_id_list(raw_ids)
        if ids is None:
            raise ValidationError(["No review ids provided"])
        count = ReviewRepository.bulk_validate(ids)
        current_app.logger.info("Bulk validation by admin: %d of %d ids", count, len(ids))
        return {"message": f"{count} avis validés", "count": count}

    @staticmethod
    def bulk_delete(raw_ids):
        ids = parse_id_list(raw_ids)
        if ids is None:
            raise ValidationError(["No review ids provided"])
        count = ReviewRepository.bulk_delete(ids)
        current_app.logger.info("Bulk deletion by admin: %d of %d ids", count, len(ids))
        return {"message": f"{count} avis supprimés", "count": count}
