import logging
import os
from pathlib import Path

from flask import Flask
from flask_cors import CORS
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import db
from app_core.api import api_bp
from app_core.auth import auth_bp
from app_core.config import EXTENSION_KEY, Settings
from app_core.errors import install_json_error_handlers
from app_core.metrics import metrics_bp
from app_core.services import build_services

logger = logging.getLogger("moviecatalog")


def _database_uri(app: Flask, settings: Settings) -> str:
    if settings.database_url:
        safe_dest = settings.database_url.split("@", 1)[-1]
        logger.info(f"Using DATABASE_URL -> {safe_dest}")
        return settings.database_url
    instance_db = Path(app.instance_path) / "moviecatalog.db"
    instance_db.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"DB file -> {instance_db.resolve()}")
    return f"sqlite:///{instance_db}"


def create_app(settings: Settings | None = None):
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["TESTING"] = settings.testing
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SQLALCHEMY_DATABASE_URI"] = _database_uri(app, settings)
    app.json.sort_keys = False

    if settings.uses_default_secret and not settings.testing:
        logger.warning("JWT_SECRET/SECRET_KEY not set, tokens are signed with the development secret")

    # Installing JSON error handlers & SQLAlchemy
    install_json_error_handlers(app)
    db.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": list(settings.cors_origins)}})

    # components share the read-only settings for the life of the app
    app.extensions[EXTENSION_KEY] = build_services(settings)

    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as e:
            logger.warning(f"Database initialization skipped due to error: {e}")

    # HEALTH CHECK ENDPOINT
    @app.route("/health")
    def health():
        """
        Basic health endpoint for monitoring.
        Returns 200 if DB is reachable, 500 otherwise.
        """
        db_ok = True
        try:
            db.session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Health check could not reach the database")
            db_ok = False

        status_code = 200 if db_ok else 500
        return {"status": "ok" if db_ok else "error", "database": db_ok}, status_code

    # Register blueprints
    app.register_blueprint(metrics_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)

    return app


# Development only
if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=True)
