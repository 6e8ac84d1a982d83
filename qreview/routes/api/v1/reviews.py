from flask import Blueprint, current_app, jsonify, request

from qreview.decorators import json_body
from qreview.errors import AppError
from qreview.extensions import limiter
from qreview.services import ReviewRepository, ReviewService
from qreview.services.review_service import require_review_id
from qreview.services.validators import is_valid_siret

api_review_bp = Blueprint("api_review", __name__)

# One budget across every public review route, counted on top of any route limit.
public_api_limit = limiter.shared_limit(
    lambda: current_app.config["RATELIMIT_PUBLIC_API"],
    scope="public_api",
)


@api_review_bp.get("/verify-siret/<siret>")
@public_api_limit
@limiter.limit(
    lambda: current_app.config["RATELIMIT_SIRET_LOOKUP"],
    error_message="Too many SIRET verification attempts.",
)
def verify_siret(siret):
    if not is_valid_siret(siret):
        raise AppError("Invalid SIRET format", 400)
    return jsonify(ReviewService.registry().verify(siret))


@api_review_bp.get("/stats")
@public_api_limit
def review_stats():
    return jsonify(ReviewRepository.get_statistics())


@api_review_bp.get("")
@public_api_limit
def list_reviews():
    result = ReviewService.list_public(
        page=request.args.get("page"),
        limit=request.args.get("limit"),
        sort=request.args.get("sort"),
        company=request.args.get("company"),
    )
    return jsonify(result)


@api_review_bp.post("")
@public_api_limit
@limiter.limit(
    lambda: current_app.config["RATELIMIT_REVIEW_SUBMIT"],
    error_message="Too many reviews submitted. Please try again later.",
)
def submit_review():
    return jsonify(ReviewService.submit_review(json_body())), 201


@api_review_bp.get("/validate/<token>")
@public_api_limit
def redeem_validation_token(token):
    result = ReviewService.redeem_token(token)
    return jsonify({"message": "Review validated", "id": result["id"]})


@api_review_bp.get("/<review_id>")
@public_api_limit
def get_review(review_id):
    review = ReviewService.public_review(require_review_id(review_id))
    return jsonify(review.to_public_dict())


@api_review_bp.post("/<review_id>/flag")
@public_api_limit
def flag_review(review_id):
    # Unknown ids are accepted silently so reports cannot probe which ids exist.
    ReviewService.report(require_review_id(review_id))
    return jsonify({"message": "Review flagged for moderation"})
