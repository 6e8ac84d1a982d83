"""Storage contract for the ``reviews`` table.

Every lifecycle transition is a single conditional row update, so the
database's own row atomicity decides races: the first validation wins and a
repeated one matches zero rows.
"""

import secrets
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app
from sqlalchemy import case, func, inspect, or_, text

from qreview.extensions import db
from qreview.models import Review
from qreview.models.base import utcnow

SORT_ORDERS = {
    "date_desc": (Review.created_at.desc(), Review.id.desc()),
    "date_asc": (Review.created_at.asc(), Review.id.asc()),
    "rating_desc": (Review.rating.desc(), Review.created_at.desc(), Review.id.desc()),
    "rating_asc": (Review.rating.asc(), Review.created_at.desc(), Review.id.desc()),
}
DEFAULT_SORT = "date_desc"

ADMIN_FILTERS = {
    "all": None,
    "validated": Review.is_validated.is_(True),
    "pending": Review.is_validated.is_(False),
    "flagged": Review.flagged.is_(True),
}

DUPLICATE_WINDOW = timedelta(hours=24)

# Columns added after the first release; each entry is (column, DDL suffix).
ADDITIVE_COLUMNS = (
    ("admin_reply", "admin_reply TEXT"),
    ("flagged", "flagged BOOLEAN DEFAULT FALSE"),
    ("linkedin_id", "linkedin_id VARCHAR(255)"),
    ("linkedin_verified", "linkedin_verified BOOLEAN DEFAULT FALSE"),
    ("linkedin_profile_url", "linkedin_profile_url TEXT"),
    ("author_name", "author_name VARCHAR(255)"),
)

_VALIDATED_VALUES = {"is_validated": True, "validation_token": None}


def _contains_ci(column, term):
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _page_payload(paginated, serializer):
    return {
        "reviews": [serializer(review) for review in paginated.items],
        "total": paginated.total,
        "page": paginated.page,
        "limit": paginated.per_page,
        "totalPages": paginated.pages,
    }


def _rounded_average(value):
    if value is None:
        return None
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class ReviewRepository:
    @staticmethod
    def init():
        db.create_all()
        ReviewRepository._apply_additive_migrations()
        current_app.logger.info("Database initialized (%s)", db.engine.dialect.name)

    @staticmethod
    def _apply_additive_migrations():
        existing = {column["name"] for column in inspect(db.engine).get_columns(Review.__tablename__)}
        for column, ddl in ADDITIVE_COLUMNS:
            if column in existing:
                continue
            try:
                with db.engine.begin() as conn:
                    conn.execute(text(f"ALTER TABLE {Review.__tablename__} ADD COLUMN {ddl}"))
                current_app.logger.info("Added column reviews.%s", column)
            except Exception as exc:
                current_app.logger.warning("Migration for reviews.%s skipped: %s", column, exc)

    @staticmethod
    def create_review(fields):
        review = Review(
            company_name=fields["company_name"],
            position=fields["position"],
            duration=fields["duration"],
            rating=int(fields["rating"]),
            comment=fields.get("comment") or None,
            email=fields["email"],
            author_name=fields.get("author_name") or None,
            siret=fields.get("siret") or None,
            company_verified=bool(fields.get("company_verified")),
            linkedin_id=fields.get("linkedin_id") or None,
            linkedin_verified=bool(fields.get("linkedin_verified")),
            linkedin_profile_url=fields.get("linkedin_profile_url") or None,
            validation_token=secrets.token_urlsafe(32),
            is_validated=False,
            flagged=False,
        )
        db.session.add(review)
        db.session.commit()
        return review.id

    @staticmethod
    def validate_review(token):
        if not token:
            return None
        row = db.session.query(Review.id).filter(Review.validation_token == token).first()
        if row is None:
            return None
        updated = (
            Review.query.filter(Review.id == row.id, Review.validation_token == token)
            .update(dict(_VALIDATED_VALUES), synchronize_session=False)
        )
        db.session.commit()
        if not updated:
            return None
        return {"id": row.id, "validated": True}

    @staticmethod
    def validate_by_admin(review_id):
        updated = (
            Review.query.filter(Review.id == review_id, Review.is_validated.is_(False))
            .update(dict(_VALIDATED_VALUES), synchronize_session=False)
        )
        db.session.commit()
        return updated > 0

    @staticmethod
    def bulk_validate(ids):
        if not ids:
            return 0
        updated = (
            Review.query.filter(Review.id.in_(ids), Review.is_validated.is_(False))
            .update(dict(_VALIDATED_VALUES), synchronize_session=False)
        )
        db.session.commit()
        return updated

    @staticmethod
    def bulk_delete(ids):
        if not ids:
            return 0
        deleted = Review.query.filter(Review.id.in_(ids)).delete(synchronize_session=False)
        db.session.commit()
        return deleted

    @staticmethod
    def delete_review(review_id):
        deleted = Review.query.filter(Review.id == review_id).delete(synchronize_session=False)
        db.session.commit()
        return deleted > 0

    @staticmethod
    def add_admin_reply(review_id, reply):
        updated = Review.query.filter(Review.id == review_id).update(
            {"admin_reply": reply}, synchronize_session=False
        )
        db.session.commit()
        return updated > 0

    @staticmethod
    def flag_review(review_id, flagged):
        updated = Review.query.filter(Review.id == review_id).update(
            {"flagged": bool(flagged)}, synchronize_session=False
        )
        db.session.commit()
        return updated > 0

    @staticmethod
    def get_validated_reviews(page=1, limit=20, sort=DEFAULT_SORT, company=None):
        query = Review.query.filter(Review.is_validated.is_(True))
        if company:
            query = query.filter(_contains_ci(Review.company_name, company))
        query = query.order_by(*SORT_ORDERS.get(sort, SORT_ORDERS[DEFAULT_SORT]))
        paginated = query.paginate(page=page, per_page=limit, error_out=False)
        return _page_payload(paginated, Review.to_public_dict)

    @staticmethod
    def get_all_reviews(page=1, limit=50, status_filter="all", search=None):
        query = Review.query
        condition = ADMIN_FILTERS.get(status_filter)
        if condition is not None:
            query = query.filter(condition)
        if search:
            query = query.filter(
                or_(
                    _contains_ci(Review.company_name, search),
                    _contains_ci(Review.email, search),
                    _contains_ci(Review.position, search),
                )
            )
        query = query.order_by(Review.created_at.desc(), Review.id.desc())
        paginated = query.paginate(page=page, per_page=limit, error_out=False)
        return _page_payload(paginated, Review.to_admin_dict)

    @staticmethod
    def export_rows():
        return Review.query.order_by(Review.created_at.desc(), Review.id.desc()).all()

    @staticmethod
    def get_review_by_id(review_id):
        return Review.query.filter(Review.id == review_id, Review.is_validated.is_(True)).first()

    @staticmethod
    def check_duplicate_review(email, company_name):
        since = utcnow() - DUPLICATE_WINDOW
        match = (
            db.session.query(Review.id)
            .filter(Review.email == email, Review.company_name == company_name)
            .filter(Review.created_at > since)
            .first()
        )
        return match is not None

    @staticmethod
    def get_statistics():
        star_columns = [
            func.sum(case((Review.rating == stars, 1), else_=0)).label(f"stars_{stars}") for stars in (5, 4, 3, 2, 1)
        ]
        row = (
            db.session.query(
                func.count(Review.id).label("total_reviews"),
                func.avg(Review.rating).label("average_rating"),
                *star_columns,
                func.sum(case((Review.company_verified.is_(True), 1), else_=0)).label("verified_count"),
            )
            .filter(Review.is_validated.is_(True))
            .one()
        )
        stats = {
            "total_reviews": int(row.total_reviews or 0),
            "average_rating": _rounded_average(row.average_rating),
        }
        for stars in (5, 4, 3, 2, 1):
            stats[f"stars_{stars}"] = int(getattr(row, f"stars_{stars}") or 0)
        stats["verified_count"] = int(row.verified_count or 0)
        return stats

    @staticmethod
    def get_admin_stats():
        row = db.session.query(
            func.count(Review.id).label("total_reviews"),
            func.sum(case((Review.is_validated.is_(True), 1), else_=0)).label("validated"),
            func.sum(case((Review.is_validated.is_(False), 1), else_=0)).label("pending"),
            func.sum(case((Review.flagged.is_(True), 1), else_=0)).label("flagged"),
            func.avg(case((Review.is_validated.is_(True), Review.rating), else_=None)).label("average_rating"),
        ).one()
        return {
            "total_reviews": int(row.total_reviews or 0),
            "validated": int(row.validated or 0),
            "pending": int(row.pending or 0),
            "flagged": int(row.flagged or 0),
            "average_rating": _rounded_average(row.average_rating),
        }

    @staticmethod
    def close():
        db.session.remove()
        db.engine.dispose()
