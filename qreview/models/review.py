from qreview.extensions import db
from qreview.models.base import CreatedAtMixin, PKType

PUBLIC_FIELDS = (
    "id",
    "company_name",
    "position",
    "duration",
    "rating",
    "comment",
    "created_at",
    "company_verified",
    "linkedin_verified",
    "linkedin_profile_url",
    "admin_reply",
    "flagged",
    "author_name",
)

ADMIN_FIELDS = (
    "id",
    "company_name",
    "position",
    "duration",
    "rating",
    "comment",
    "email",
    "siret",
    "author_name",
    "company_verified",
    "linkedin_id",
    "linkedin_verified",
    "linkedin_profile_url",
    "is_validated",
    "admin_reply",
    "flagged",
    "created_at",
)


class Review(CreatedAtMixin, db.Model):
    __tablename__ = "reviews"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    company_name = db.Column(db.String(255), nullable=False, index=True)
    position = db.Column(db.String(255), nullable=False)
    duration = db.Column(db.String(100), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    email = db.Column(db.String(255), nullable=False)
    author_name = db.Column(db.String(255), nullable=True)
    siret = db.Column(db.String(14), nullable=True)
    company_verified = db.Column(db.Boolean, nullable=False, default=False)
    linkedin_id = db.Column(db.String(255), nullable=True)
    linkedin_verified = db.Column(db.Boolean, nullable=False, default=False)
    linkedin_profile_url = db.Column(db.Text, nullable=True)
    validation_token = db.Column(db.String(255), nullable=True, unique=True)
    is_validated = db.Column(db.Boolean, nullable=False, default=False, index=True)
    admin_reply = db.Column(db.Text, nullable=True)
    flagged = db.Column(db.Boolean, nullable=False, default=False, index=True)

    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
        db.Index("idx_reviews_email_company", "email", "company_name"),
    )

    def _serialize(self, fields):
        data = {}
        for field in fields:
            value = getattr(self, field)
            if field == "created_at" and value is not None:
                value = value.isoformat()
            data[field] = value
        return data

    def to_public_dict(self):
        return self._serialize(PUBLIC_FIELDS)

    def to_admin_dict(self):
        return self._serialize(ADMIN_FIELDS)

    def __repr__(self):
        state = "validated" if self.is_validated else "pending"
        return f"<Review {self.id} {self.company_name!r} {state}>"
