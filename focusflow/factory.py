# -*- coding: utf-8 -*-
"""
Application factory for the FocusFlow API.
"""
import os
from pathlib import Path
from typing import Optional

from flask import Flask
from flask_cors import CORS

from focusflow.config import Config
from focusflow.database import db
from focusflow.services.structured_logging import get_logger, init_logging
from focusflow.middleware.errors import register_error_handlers
from focusflow.services.metrics import init_metrics
from focusflow.services.request_context import init_request_context, REQUEST_ID_HEADER

PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = get_logger('focusflow.startup')


def _normalize_db_url(url: str) -> str:
    """Point postgres URLs at the psycopg 3 driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def _database_uri(app: Flask) -> str:
    url = app.config.get("SQLALCHEMY_DATABASE_URI") or app.config.get("DATABASE_URL")
    if url:
        return _normalize_db_url(url)
    instance_db = PROJECT_ROOT / "instance" / "focusflow.db"
    instance_db.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{instance_db}"


def _migrate_db(app: Flask):
    """Upgrade the schema to the latest Alembic revision."""
    from alembic import command
    from alembic.config import Config as AlembicConfig

    cfg = AlembicConfig()
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", app.config["SQLALCHEMY_DATABASE_URI"])
    try:
        command.upgrade(cfg, "head")
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise
    logger.info("Database schema is at head")


def _allowed_origins(app: Flask) -> list:
    raw = app.config.get("CORS_ALLOWED_ORIGINS") or ""
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(config_overrides: Optional[dict] = None) -> Flask:
    app = Flask(__name__, instance_path=str(PROJECT_ROOT / "instance"))
    app.url_map.strict_slashes = False

    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.config["SQLALCHEMY_DATABASE_URI"] = _database_uri(app)
    if not app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {
            "pool_pre_ping": True,
            "pool_recycle": 300,
        })
    db.init_app(app)

    # Browser dashboard calls the JSON API cross-origin
    CORS(app, resources={r"/api/*": {"origins": _allowed_origins(app)}},
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
         expose_headers=[REQUEST_ID_HEADER],
         max_age=600)

    init_logging(app)
    init_request_context(app)
    init_metrics(app)
    register_error_handlers(app)

    if not app.config.get("STRIPE_WEBHOOK_SECRET"):
        get_logger('focusflow.security').log_security_event(
            "STRIPE_WEBHOOK_SECRET not set: webhooks are accepted unverified and not applied",
            severity='warning',
        )

    from focusflow.routes import checkout, health, playlists, stripe_webhooks, subscription, tasks
    app.register_blueprint(health.health_bp)
    for blueprint in (checkout.checkout_bp,
                      stripe_webhooks.stripe_webhooks_bp,
                      subscription.subscription_bp,
                      playlists.playlists_bp,
                      tasks.tasks_bp):
        app.register_blueprint(blueprint, url_prefix="/api")

    if app.config.get("AUTO_MIGRATE"):
        with app.app_context():
            _migrate_db(app)

    return app
