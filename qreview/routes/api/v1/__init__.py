from flask import Blueprint

from qreview.routes.api.v1.admin import api_admin_bp
from qreview.routes.api.v1.reviews import api_review_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_review_bp, url_prefix="/reviews")
api_v1_bp.register_blueprint(api_admin_bp, url_prefix="/admin")
