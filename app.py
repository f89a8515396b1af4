import logging
import time

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config import get_config
from extensions import db, limiter, migrate
from services.errors import CuisineMuseError, ProviderError, RateLimited
from services.rate_limits import breach_message

logger = logging.getLogger(__name__)


def _configure_logging(app: Flask) -> None:
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(CuisineMuseError)
    def handle_domain_error(exc: CuisineMuseError):
        if isinstance(exc, ProviderError):
            logger.error("%s on %s %s: %s", exc.code, request.method, request.path, exc.detail)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(429)
    def handle_rate_limited(exc):
        error = RateLimited(breach_message(exc))
        logger.warning("Rate limit hit by %s on %s", request.remote_addr, request.path)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        code = (exc.name or "error").lower().replace(" ", "_")
        return jsonify({"error": code, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "internal_error", "message": "Internal Server Error"}), 500


def _register_request_logging(app: Flask) -> None:
    @app.before_request
    def _start_timer():
        g.request_started_at = time.perf_counter()

    @app.after_request
    def _log_api_request(response):
        if request.path.startswith("/api"):
            started = g.get("request_started_at")
            elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
            logger.info(
                "%s %s %s in %.0fms",
                request.method,
                request.path,
                response.status_code,
                elapsed_ms,
            )
        return response


def create_app(config_object=None):
    """Application factory for CuisineMuse."""
    app = Flask(__name__)
    app.config.from_object(config_object or get_config())
    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Proxy fix for production behind reverse proxies; x_for keeps per-address
    # rate limits keyed on the real client.
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Register blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.chat.routes import chat_bp
    from blueprints.email.routes import email_bp
    from blueprints.newsletter.routes import newsletter_bp
    from blueprints.recipes.routes import recipes_bp

    app.register_blueprint(recipes_bp, url_prefix="/api")
    app.register_blueprint(chat_bp, url_prefix="/api")
    app.register_blueprint(newsletter_bp, url_prefix="/api")
    app.register_blueprint(email_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api")

    _register_error_handlers(app)
    _register_request_logging(app)

    @app.route("/health")
    @limiter.exempt
    def health():
        return {"status": "ok", "app": "CuisineMuse"}

    with app.app_context():
        from models import init_models
        from services.recipe_store import get_recipe_store

        init_models()
        db.create_all()
        if app.config.get("SEED_SAMPLE_RECIPES"):
            get_recipe_store().seed_samples()

    return app


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=5000)
