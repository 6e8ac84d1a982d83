import os


def normalize_database_url(raw_url: str) -> str:
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql://", 1)
    return raw_url


def env_flag(name, default="false"):
    return os.getenv(name, default).lower() == "true"


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY") or os.getenv("SESSION_SECRET", "qreview-dev-unsafe-key")
    SQLALCHEMY_DATABASE_URI = normalize_database_url(
        os.getenv("DATABASE_URL", "sqlite:///instance/reviews.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }
    MAX_CONTENT_LENGTH = 100 * 1024

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SENTRY_DSN = os.getenv("SENTRY_DSN")
    BASE_URL = os.getenv("BASE_URL", "http://localhost:5000")

    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")
    ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH")
    ADMIN_SESSION_HOURS = float(os.getenv("ADMIN_SESSION_HOURS", "4"))
    SESSION_SWEEP_MINUTES = float(os.getenv("SESSION_SWEEP_MINUTES", "30"))
    SESSION_SWEEP_ENABLED = env_flag("SESSION_SWEEP_ENABLED", "true")

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = env_flag("SESSION_COOKIE_SECURE")

    SIRET_API_URL = os.getenv("SIRET_API_URL", "https://recherche-entreprises.api.gouv.fr")
    SIRET_TIMEOUT = float(os.getenv("SIRET_TIMEOUT", "10"))
    SIRET_MAX_ATTEMPTS = int(os.getenv("SIRET_MAX_ATTEMPTS", "2"))
    SIRET_RETRY_DELAY = float(os.getenv("SIRET_RETRY_DELAY", "1.5"))

    LINKEDIN_CLIENT_ID = os.getenv("LINKEDIN_CLIENT_ID")
    LINKEDIN_CLIENT_SECRET = os.getenv("LINKEDIN_CLIENT_SECRET")
    LINKEDIN_TIMEOUT = float(os.getenv("LINKEDIN_TIMEOUT", "10"))

    RATELIMIT_ENABLED = env_flag("RATELIMIT_ENABLED", "true")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_STRATEGY = "moving-window"
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_PUBLIC_API = os.getenv("RATELIMIT_PUBLIC_API", "100 per 15 minutes")
    RATELIMIT_REVIEW_SUBMIT = os.getenv("RATELIMIT_REVIEW_SUBMIT", "10 per hour")
    RATELIMIT_SIRET_LOOKUP = os.getenv("RATELIMIT_SIRET_LOOKUP", "30 per 15 minutes")
    RATELIMIT_ADMIN_LOGIN = os.getenv("RATELIMIT_ADMIN_LOGIN", "10 per 15 minutes")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    SESSION_COOKIE_SECURE = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    ADMIN_PASSWORD = "test-admin-password"
    ADMIN_PASSWORD_HASH = None
    SESSION_SWEEP_ENABLED = False
    RATELIMIT_ENABLED = False
    LINKEDIN_CLIENT_ID = None
    LINKEDIN_CLIENT_SECRET = None
    SENTRY_DSN = None
    SIRET_RETRY_DELAY = 0


config_by_env = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
