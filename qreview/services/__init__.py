from qreview.services.auth_service import AdminSessionStore, AuthService
from qreview.services.export_service import ExportService
from qreview.services.linkedin_service import LinkedInClient
from qreview.services.qrcode_service import QRCodeService
from qreview.services.review_repository import ReviewRepository
from qreview.services.review_service import ReviewService
from qreview.services.siret_service import RegistryClient

__all__ = [
    "AdminSessionStore",
    "AuthService",
    "ExportService",
    "LinkedInClient",
    "QRCodeService",
    "RegistryClient",
    "ReviewRepository",
    "ReviewService",
]
