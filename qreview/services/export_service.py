import csv
import io
from datetime import datetime, timezone

from qreview.services.review_repository import ReviewRepository

EXPORT_COLUMNS = (
    "id",
    "company_name",
    "position",
    "duration",
    "rating",
    "comment",
    "email",
    "siret",
    "company_verified",
    "linkedin_verified",
    "is_validated",
    "flagged",
    "admin_reply",
    "created_at",
)

# Excel only detects UTF-8 with a byte order mark.
UTF8_BOM = "\ufeff"


class ExportService:
    @staticmethod
    def export_filename(today=None):
        today = today or datetime.now(timezone.utc).date()
        return f"qreview-export-{today.isoformat()}.csv"

    @staticmethod
    def reviews_csv():
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(EXPORT_COLUMNS)
        for review in ReviewRepository.export_rows():
            row = review.to_admin_dict()
            writer.writerow(["" if row[column] is None else row[column] for column in EXPORT_COLUMNS])
        return UTF8_BOM + buffer.getvalue()
