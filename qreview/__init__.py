import logging
import os
import time

import click
from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from qreview.config import config_by_env
from qreview.errors import register_error_handlers
from qreview.extensions import bcrypt, db, limiter, migrate
from qreview.routes.api.v1 import api_v1_bp
from qreview.routes.web.auth import web_auth_bp
from qreview.services import AdminSessionStore, LinkedInClient, RegistryClient, ReviewRepository

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
        "font-src 'self' https://fonts.gstatic.com; img-src 'self' data: blob:; "
        "script-src 'self' 'unsafe-inline'; connect-src 'self'"
    ),
}


def create_app(config_object=None):
    load_dotenv()
    env = os.getenv("FLASK_ENV", "development")
    if config_object is None:
        config_object = config_by_env.get(env, config_by_env["development"])

    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if db_uri.startswith("sqlite:///") and not db_uri.startswith("sqlite:////") and db_uri != "sqlite:///:memory:":
        relative_path = db_uri.replace("sqlite:///", "", 1)
        absolute_path = os.path.join(project_root, relative_path)
        os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{absolute_path}"

    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    limiter.init_app(app)
    _init_sentry(app)

    sessions = AdminSessionStore(ttl_seconds=app.config["ADMIN_SESSION_HOURS"] * 3600)
    app.extensions["admin_sessions"] = sessions
    app.extensions["registry_client"] = RegistryClient.from_config(app.config)
    app.extensions["linkedin_client"] = LinkedInClient.from_config(app.config)
    if app.extensions["linkedin_client"] is None:
        app.logger.info("LinkedIn credentials not set; identity verification disabled.")

    register_error_handlers(app)
    _register_cli(app)

    app.register_blueprint(web_auth_bp, url_prefix="/auth")
    app.register_blueprint(api_v1_bp, url_prefix="/api/v1")

    started_at = time.monotonic()

    @app.get("/health")
    @limiter.exempt
    def health():
        return jsonify(
            {
                "status": "ok",
                "db": db.engine.dialect.name,
                "uptime": round(time.monotonic() - started_at),
            }
        )

    @app.after_request
    def apply_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    with app.app_context():
        ReviewRepository.init()

    using_default_password = not app.config.get("ADMIN_PASSWORD_HASH") and app.config.get("ADMIN_PASSWORD") == "admin"
    if using_default_password and not app.debug and not app.testing:
        app.logger.warning("ADMIN_PASSWORD is the default value; set ADMIN_PASSWORD or ADMIN_PASSWORD_HASH.")

    if app.config.get("SESSION_SWEEP_ENABLED"):
        sessions.start_sweeper(app.config["SESSION_SWEEP_MINUTES"] * 60, logger=app.logger)

    return app


def shutdown_app(app):
    """Stop background work and release database connections; safe to call twice."""
    sessions = app.extensions.get("admin_sessions")
    if sessions is not None:
        sessions.stop_sweeper()
        sessions.clear()
    with app.app_context():
        ReviewRepository.close()
    app.logger.info("Database connection closed")


def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.05")),
            environment=os.getenv("FLASK_ENV", "production"),
        )
        app.logger.info("Sentry initialized.")
    except Exception as exc:
        app.logger.warning("Sentry initialization failed: %s", exc)


def _register_cli(app):
    @app.cli.command("hash-password")
    @click.argument("password")
    def hash_password(password):
        """Print a bcrypt hash suitable for ADMIN_PASSWORD_HASH."""
        click.echo(bcrypt.generate_password_hash(password).decode("utf-8"))

    @app.cli.command("init-db")
    def init_db():
        """Create the reviews table and apply additive column migrations."""
        ReviewRepository.init()
        click.echo("Database initialized.")
