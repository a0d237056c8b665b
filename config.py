import os
import secrets
import warnings

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))

# Secrets the score pipeline cannot run without
REQUIRED_RUNTIME_SECRETS = ("SQLALCHEMY_DATABASE_URI", "RESEND_API_KEY")


class Config:
    _secret_key = os.environ.get("SECRET_KEY")

    if not _secret_key:
        _secret_key = secrets.token_urlsafe(32)
        warnings.warn(
            "🔐 SECRET_KEY not set! Using auto-generated key. "
            "Socket.IO sessions will reset on app restart.",
            UserWarning,
        )

    SECRET_KEY = _secret_key

    # Database configuration - built from environment at initialization
    def __init__(self):
        """Initialize configuration with dynamic database URI"""
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()

    def _build_database_uri(self):
        """Build database URI from environment variables"""
        database_url = os.environ.get("DATABASE_URL")

        if database_url:
            return database_url

        db_type = os.environ.get("DB_TYPE", "sqlite")

        if db_type.lower() == "postgresql":
            db_host = os.environ.get("DB_HOST") or "localhost"
            db_port = os.environ.get("DB_PORT") or "5432"
            db_name = os.environ.get("DB_NAME") or "squares_db"
            db_user = os.environ.get("DB_USER") or "squares_user"
            db_password = os.environ.get("DB_PASSWORD") or "squares_password"

            return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Default to SQLite for development
            return "sqlite:///" + os.path.join(basedir, "app.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Score feed
    ESPN_SCOREBOARD_URL = (
        os.environ.get("ESPN_SCOREBOARD_URL")
        or "https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard"
    )
    SCORE_FEED_TIMEOUT = float(os.environ.get("SCORE_FEED_TIMEOUT") or 30)

    # Email transport (Resend HTTP API)
    RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
    RESEND_API_URL = os.environ.get("RESEND_API_URL") or "https://api.resend.com/emails"
    RESEND_FROM_EMAIL = (
        os.environ.get("RESEND_FROM_EMAIL") or "Fundwell <no-reply@fundwell.us>"
    )
    EMAIL_TIMEOUT = float(os.environ.get("EMAIL_TIMEOUT") or 15)
    SITE_URL = os.environ.get("SITE_URL") or "https://fundwell.us"

    # Optional bearer token protecting the pipeline/admin API
    PIPELINE_API_TOKEN = os.environ.get("PIPELINE_API_TOKEN")

    # Scheduler configuration
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED", "True").lower() == "true"
    SCORE_CHECK_INTERVAL_SECONDS = int(
        os.environ.get("SCORE_CHECK_INTERVAL_SECONDS") or 60
    )
    GAME_WINDOW_ONLY = os.environ.get("GAME_WINDOW_ONLY", "True").lower() == "true"
    TIMEZONE = os.environ.get("TIMEZONE", "America/Los_Angeles")

    # Realtime and rate limiting
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "eventlet")
    SOCKETIO_CORS_ORIGINS = os.environ.get("SOCKETIO_CORS_ORIGINS", "*")
    RATELIMIT_ENABLED = os.environ.get("RATELIMIT_ENABLED", "True").lower() == "true"
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    TRIGGER_RATE_LIMIT = os.environ.get("TRIGGER_RATE_LIMIT", "30 per minute")

    # Logging configuration
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = os.environ.get("LOG_TO_CONSOLE", "True").lower() == "true"
    LOG_TO_FILE = os.environ.get("LOG_TO_FILE", "True").lower() == "true"
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    # Environment detection
    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration with helpful defaults"""

    DEBUG = True
    SQLALCHEMY_ECHO = os.environ.get("SQLALCHEMY_ECHO", "False").lower() == "true"
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "threading")


class ProductionConfig(Config):
    """Production configuration with security focus"""

    DEBUG = False

    # In production, require explicit environment variables
    def __init__(self):
        super().__init__()  # Call parent __init__ to build database URI

        if not os.environ.get("SECRET_KEY"):
            warnings.warn(
                "🚨 PRODUCTION WARNING: SECRET_KEY not explicitly set! "
                "Using auto-generated key is not recommended for production.",
                UserWarning,
            )
        if not self.PIPELINE_API_TOKEN:
            warnings.warn(
                "🚨 PRODUCTION WARNING: PIPELINE_API_TOKEN not set! "
                "The score trigger and admin API are open to anyone.",
                UserWarning,
            )


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    DEBUG = False
    SCHEDULER_ENABLED = False
    RATELIMIT_ENABLED = False
    SOCKETIO_ASYNC_MODE = "threading"
    LOG_TO_FILE = False
    LOG_TO_CONSOLE = False
    RESEND_API_KEY = "re_test_key"
    PIPELINE_API_TOKEN = None
    SITE_URL = "https://squares.test"

    def __init__(self):
        super().__init__()
        self.SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"


# Configuration mapping
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
