from flask import Blueprint, Response, current_app, g, jsonify, request

from qreview.decorators import admin_required, json_body
from qreview.extensions import limiter
from qreview.services import AuthService, ExportService, QRCodeService, ReviewRepository, ReviewService
from qreview.services.review_service import as_bool, require_review_id

api_admin_bp = Blueprint("api_admin", __name__)


@api_admin_bp.post("/login")
@limiter.limit(
    lambda: current_app.config["RATELIMIT_ADMIN_LOGIN"],
    error_message="Too many login attempts. Please try again later.",
)
def login():
    payload = json_body()
    token = AuthService.login(payload.get("password"))
    return jsonify({"token": token})


@api_admin_bp.post("/logout")
@admin_required
def logout():
    AuthService.logout(g.admin_token)
    return jsonify({"message": "Logged out"})


@api_admin_bp.get("/stats")
@admin_required
def admin_stats():
    return jsonify(ReviewRepository.get_admin_stats())


@api_admin_bp.get("/reviews")
@admin_required
def list_reviews():
    result = ReviewService.list_admin(
        page=request.args.get("page"),
        limit=request.args.get("limit"),
        status_filter=request.args.get("filter"),
        search=request.args.get("search"),
    )
    return jsonify(result)


@api_admin_bp.post("/reviews/<review_id>/validate")
@admin_required
def validate_review(review_id):
    ReviewService.validate_by_admin(require_review_id(review_id))
    return jsonify({"message": "Review validated"})


@api_admin_bp.delete("/reviews/<review_id>")
@admin_required
def delete_review(review_id):
    ReviewService.delete(require_review_id(review_id))
    return jsonify({"message": "Review deleted"})


@api_admin_bp.post("/reviews/<review_id>/reply")
@admin_required
def reply_to_review(review_id):
    review_id = require_review_id(review_id)
    ReviewService.reply(review_id, json_body())
    return jsonify({"message": "Reply added"})


@api_admin_bp.post("/reviews/<review_id>/flag")
@admin_required
def flag_review(review_id):
    review_id = require_review_id(review_id)
    payload = json_body()
    flagged = as_bool(payload.get("flagged", False))
    ReviewService.set_flag(review_id, flagged)
    return jsonify({"message": "Review flagged" if flagged else "Review unflagged"})


@api_admin_bp.post("/reviews/bulk/validate")
@admin_required
def bulk_validate():
    payload = json_body()
    return jsonify(ReviewService.bulk_validate(payload.get("ids")))


@api_admin_bp.post("/reviews/bulk/delete")
@admin_required
def bulk_delete():
    payload = json_body()
    return jsonify(ReviewService.bulk_delete(payload.get("ids")))


@api_admin_bp.get("/export/csv")
@admin_required
def export_csv():
    return Response(
        ExportService.reviews_csv(),
        mimetype="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{ExportService.export_filename()}"',
        },
    )


@api_admin_bp.get("/qrcode")
@admin_required
def qrcode_preview():
    url = current_app.config["BASE_URL"]
    return jsonify({"qrCode": QRCodeService.png_data_url(url), "url": url})


@api_admin_bp.get("/qrcode/download")
@admin_required
def qrcode_download():
    size = QRCodeService.clamp_size(request.args.get("size"))
    return Response(
        QRCodeService.png_bytes(current_app.config["BASE_URL"], size),
        mimetype="image/png",
        headers={"Content-Disposition": 'attachment; filename="qreview-qrcode.png"'},
    )


@api_admin_bp.get("/qrcode/svg")
@admin_required
def qrcode_svg():
    return Response(
        QRCodeService.svg_text(current_app.config["BASE_URL"]),
        mimetype="image/svg+xml",
        headers={"Content-Disposition": 'attachment; filename="qreview-qrcode.svg"'},
    )
