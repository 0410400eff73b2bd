"""Flask application factory for the grievance tracking API."""
import os
from typing import Optional

import click
from flask import Flask, g, request
from sqlalchemy import create_engine, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from extensions import db, migrate, login_manager
from utils.errors import AuthenticationError, GrievanceServiceError
from utils.logger import init_logging
from utils.responses import api_error
from utils.security import bearer_token_from_header


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(GrievanceServiceError)
    def service_error(error: GrievanceServiceError):
        db.session.rollback()
        if error.status_code >= 500:
            app.logger.error("Service failure", extra={"path": request.path, "error": error.message})
        return api_error(error.message, error.errors, error.status_code)

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        app.logger.warning(
            f"{error.code} {error.name}",
            extra={"path": request.path, "method": request.method},
        )
        return api_error(error.description or error.name, [error.name], error.code or 500)

    @app.errorhandler(Exception)
    def unexpected_error(error: Exception):
        db.session.rollback()
        app.logger.exception("500 Internal Server Error")
        return api_error(
            "An internal server error occurred. Please try again later.",
            ["Internal server error"],
            500,
        )


def ensure_default_official(app: Flask) -> None:
    """Ensure a bootstrap Government Official exists when credentials are configured."""
    from models import ROLE_GOVERNMENT_OFFICIAL, User  # Local import to avoid circular dependency

    email = (app.config.get("DEFAULT_OFFICIAL_EMAIL") or "").lower().strip()
    password = app.config.get("DEFAULT_OFFICIAL_PASSWORD") or ""
    if not email or not password:
        return

    official = User.query.filter_by(email=email).first()
    if official:
        updates = False
        if official.role != ROLE_GOVERNMENT_OFFICIAL:
            official.role = ROLE_GOVERNMENT_OFFICIAL
            updates = True
        if not official.is_active:
            official.is_active = True
            updates = True
        if updates:
            db.session.add(official)
            db.session.commit()
        return

    official = User(
        name="Municipal Administrator",
        email=email,
        phone_number="0000000000",
        address="Municipal Office",
        role=ROLE_GOVERNMENT_OFFICIAL,
        is_active=True,
    )
    official.set_password(password)
    db.session.add(official)
    db.session.commit()


def ensure_database_exists(database_uri: str) -> None:
    """Create the target database if it does not exist (PostgreSQL + SQLite support)."""
    url = make_url(database_uri)

    if url.drivername.startswith("sqlite"):
        # For SQLite just make sure the parent directory exists.
        if url.database and url.database != ":memory:":
            os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)
        return

    if url.drivername.startswith("postgres"):
        db_name = url.database
        admin_url = url.set(database=os.getenv("POSTGRES_DB_ADMIN", "postgres"))
        engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")
        try:
            with engine.connect() as conn:
                exists = conn.execute(
                    text("SELECT 1 FROM pg_database WHERE datname = :name"), {"name": db_name}
                ).scalar()
                if not exists:
                    conn.execute(text(f'CREATE DATABASE "{db_name}"'))
        except OperationalError:
            # If we cannot connect/create, let the normal app startup fail loudly later.
            pass
        finally:
            engine.dispose()


def configure_authentication() -> None:
    """Authenticate each request from its bearer credential."""
    from models import User  # Local import to avoid circular dependency
    from utils.auth_service import resolve_bearer

    @login_manager.request_loader
    def load_user_from_request(req) -> Optional[User]:
        token = bearer_token_from_header(req.headers.get("Authorization"))
        if not token:
            return None
        try:
            user, claims = resolve_bearer(token)
        except AuthenticationError as exc:
            g.auth_error = exc.message
            return None
        g.access_token = token
        g.token_claims = claims
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        message = g.get("auth_error") or "Authentication required."
        return api_error(message, [message], 401)


def create_app(config_name: Optional[str] = None) -> Flask:
    """Application factory with environment-aware configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)

    # Resolve configuration
    from config import DevelopmentConfig, ProductionConfig, TestingConfig

    config_key = (config_name or os.getenv("FLASK_CONFIG") or os.getenv("FLASK_ENV") or "production").lower()
    config_map = {
        "development": DevelopmentConfig,
        "dev": DevelopmentConfig,
        "production": ProductionConfig,
        "prod": ProductionConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }
    config_class = config_map.get(config_key, ProductionConfig)
    app.config.from_object(config_class())

    ensure_database_exists(app.config["SQLALCHEMY_DATABASE_URI"])

    # Optional instance-specific overrides
    app.config.from_pyfile("config.py", silent=True)

    # Initialize logging early
    logger = init_logging(app)
    app.logger = logger

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    configure_authentication()

    # Blueprints
    from routes import main_bp, auth_bp, grievance_bp, user_bp
    from utils.session_revocation import run_prune_cycle

    app.register_blueprint(main_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(user_bp, url_prefix="/api/user")
    app.register_blueprint(grievance_bp, url_prefix="/api/grievance")

    @app.cli.command("blacklist-prune")
    def blacklist_prune():
        """Delete blacklisted tokens past their natural expiry (schedule this via cron)."""
        removed = run_prune_cycle(app)
        click.echo(f"Removed {removed} expired blacklisted token(s).")

    # Error handlers
    register_error_handlers(app)

    # Ensure tables exist so first run creates the database structure automatically.
    with app.app_context():
        db.create_all()
        ensure_default_official(app)

    return app


if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, use_reloader=False)
