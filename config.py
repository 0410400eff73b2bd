"""Environment-aware configuration for the grievance tracking API."""
import os
import tempfile
from datetime import timedelta


class BaseConfig:
    def __init__(self) -> None:
        # Defaults for local dev: SQLite db and a non-empty secret. Override via env for production.
        self.SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
        db_url = os.getenv("DATABASE_URL")
        # If DATABASE_URL points to a placeholder host (e.g., db_host) or is missing, fall back to SQLite for local dev.
        if db_url and "db_host" not in db_url:
            self.SQLALCHEMY_DATABASE_URI = db_url
        else:
            self.SQLALCHEMY_DATABASE_URI = os.getenv(
                "SQLITE_URL",
                f"sqlite:///{os.path.join(os.getcwd(), 'instance', 'grievances.db')}",
            )
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False
        self.SQLALCHEMY_ENGINE_OPTIONS = {
            "pool_size": int(os.getenv("DB_POOL_SIZE", 10)),
            "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", 20)),
            "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", 30)),
            "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", 1800)),
        }
        self.JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", self.SECRET_KEY)
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRY_MINUTES = int(os.getenv("JWT_EXPIRY_MINUTES", 1440))
        self.JWT_ISSUER = os.getenv("JWT_ISSUER", "grievance-tracker")
        self.JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "grievance-tracker-clients")
        self.GRIEVANCES_PER_PAGE = int(os.getenv("GRIEVANCES_PER_PAGE", 10))
        self.MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", 100))
        self.BLACKLIST_PRUNE_ON_LOGOUT = os.getenv("BLACKLIST_PRUNE_ON_LOGOUT", "true").lower() == "true"
        self.UPVOTE_MAX_ATTEMPTS = int(os.getenv("UPVOTE_MAX_ATTEMPTS", 3))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))
        # Optional bootstrap official so status changes are possible on a fresh database.
        self.DEFAULT_OFFICIAL_EMAIL = os.getenv("DEFAULT_OFFICIAL_EMAIL", "")
        self.DEFAULT_OFFICIAL_PASSWORD = os.getenv("DEFAULT_OFFICIAL_PASSWORD", "")
        self.MAX_CONTENT_LENGTH = int(os.getenv("MAX_REQUEST_BYTES", 1 * 1024 * 1024))


class DevelopmentConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = True
        self.ENV = "development"
        self.JWT_EXPIRY_MINUTES = int(os.getenv("JWT_EXPIRY_MINUTES", 60 * 24 * 7))


class ProductionConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = False
        self.ENV = "production"
        self.PERMANENT_SESSION_LIFETIME = timedelta(days=1)


class TestingConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.TESTING = True
        self.ENV = "testing"
        self.SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite://")
        # In-memory SQLite uses a singleton pool that rejects sizing options.
        self.SQLALCHEMY_ENGINE_OPTIONS = {}
        self.JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
        self.LOG_DIR = os.path.join(tempfile.gettempdir(), "grievance-tracker-test-logs")
        self.LOG_LEVEL = "WARNING"
        self.DEFAULT_OFFICIAL_EMAIL = ""
        self.DEFAULT_OFFICIAL_PASSWORD = ""
