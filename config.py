import os
from datetime import timedelta


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration for CuisineMuse."""

    SECRET_KEY = os.environ.get("CUISINEMUSE_SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "CUISINEMUSE_DATABASE_URI",
        "sqlite:///cuisinemuse.db",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SEED_SAMPLE_RECIPES = _env_flag("CUISINEMUSE_SEED_SAMPLE_RECIPES", True)

    GEMINI_API_KEY = os.environ.get("CUISINEMUSE_GEMINI_API_KEY")
    GEMINI_MODEL = os.environ.get("CUISINEMUSE_GEMINI_MODEL", "gemini-1.5-pro")
    GEMINI_TEMPERATURE = float(os.environ.get("CUISINEMUSE_GEMINI_TEMPERATURE", "0.7"))
    GEMINI_MAX_OUTPUT_TOKENS = int(
        os.environ.get("CUISINEMUSE_GEMINI_MAX_OUTPUT_TOKENS", "1024")
    )
    # Greedy first-"{" / last-"}" extraction unless explicitly hardened.
    PARSER_BALANCED_BRACES = _env_flag("CUISINEMUSE_PARSER_BALANCED_BRACES", False)

    RESEND_API_KEY = os.environ.get("CUISINEMUSE_RESEND_API_KEY")
    RESEND_API_URL = os.environ.get(
        "CUISINEMUSE_RESEND_API_URL", "https://api.resend.com/emails"
    )
    EMAIL_SENDER = os.environ.get(
        "CUISINEMUSE_EMAIL_SENDER", "CuisineMuse <onboarding@resend.dev>"
    )
    EMAIL_SANDBOX_MODE = _env_flag("CUISINEMUSE_EMAIL_SANDBOX_MODE", False)
    EMAIL_SANDBOX_RECIPIENT = os.environ.get(
        "CUISINEMUSE_EMAIL_SANDBOX_RECIPIENT", "delivered@resend.dev"
    )
    EMAIL_TIMEOUT = float(os.environ.get("CUISINEMUSE_EMAIL_TIMEOUT", "10"))

    # Flask-Limiter: the application limit is the per-address default policy
    # shared by every route.
    RATELIMIT_APPLICATION = os.environ.get(
        "CUISINEMUSE_DEFAULT_RATE_LIMIT", "60 per 15 minutes"
    )
    AI_RATE_LIMIT = os.environ.get("CUISINEMUSE_AI_RATE_LIMIT", "10 per 15 minutes")
    AUTH_RATE_LIMIT = os.environ.get("CUISINEMUSE_AUTH_RATE_LIMIT", "5 per hour")
    RATELIMIT_STORAGE_URI = os.environ.get("CUISINEMUSE_RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_STRATEGY = "moving-window"
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_DEFAULT_MESSAGE = "Too many requests, please try again after some time"

    LOG_LEVEL = os.environ.get("CUISINEMUSE_LOG_LEVEL", "INFO")

    SESSION_COOKIE_HTTPONLY = True
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.environ.get("CUISINEMUSE_LOG_LEVEL", "DEBUG")
    EMAIL_SANDBOX_MODE = _env_flag("CUISINEMUSE_EMAIL_SANDBOX_MODE", True)


class ProductionConfig(BaseConfig):
    DEBUG = False
    SESSION_COOKIE_SECURE = True


class TestingConfig(BaseConfig):
    TESTING = True
    # In-memory SQLite is one connection shared by every thread; single-threaded tests only.
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_SAMPLE_RECIPES = False
    GEMINI_API_KEY = None
    RESEND_API_KEY = "re_test_key"
    EMAIL_SANDBOX_MODE = False
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = "memory://"


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config():
    """Return the appropriate config class based on FLASK_ENV."""
    env = os.environ.get("FLASK_ENV", "development").lower()
    return config_by_name.get(env, DevelopmentConfig)
