"""
Per-address request policies layered on Flask-Limiter.

- default: the application-wide limit (RATELIMIT_APPLICATION), counted across
  every route for one client address.
- ai: a shared limit over the routes that call the model, on top of default.
- auth: a shared limit over the account routes that only counts failed
  attempts.

Counters live in the configured storage (in-process memory by default), so
several server instances need a shared RATELIMIT_STORAGE_URI.
"""
from flask import current_app

from extensions import limiter  # type: ignore

AI_LIMIT_MESSAGE = "AI query limit reached. Please try again in a few minutes."
AUTH_LIMIT_MESSAGE = "Too many login attempts, please try again after an hour"


def _ai_limit() -> str:
    return current_app.config["AI_RATE_LIMIT"]


def _auth_limit() -> str:
    return current_app.config["AUTH_RATE_LIMIT"]


def _is_failed_attempt(response) -> bool:
    return response.status_code >= 400


ai_limit = limiter.shared_limit(
    _ai_limit,
    scope="ai",
    error_message=AI_LIMIT_MESSAGE,
)

auth_limit = limiter.shared_limit(
    _auth_limit,
    scope="auth",
    error_message=AUTH_LIMIT_MESSAGE,
    deduct_when=_is_failed_attempt,
)


def breach_message(exc) -> str:
    """Human-readable retry guidance for a Flask-Limiter breach."""
    limit = getattr(exc, "limit", None)
    message = getattr(limit, "error_message", None)
    if message:
        return message
    return current_app.config.get(
        "RATELIMIT_DEFAULT_MESSAGE",
        "Too many requests, please try again after some time",
    )
