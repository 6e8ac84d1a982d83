from qreview.models.review import ADMIN_FIELDS, PUBLIC_FIELDS, Review

__all__ = [
    "ADMIN_FIELDS",
    "PUBLIC_FIELDS",
    "Review",
]
