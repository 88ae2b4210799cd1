# -*- coding: utf-8 -*-
import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    DATABASE_URL = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "").strip()
    STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "").strip()
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "").strip()
    STRIPE_PRICE_ID = os.getenv("STRIPE_PRICE_ID", "").strip()
    STRIPE_API_VERSION = os.getenv("STRIPE_API_VERSION") or None
    STRIPE_WEBHOOK_TOLERANCE = int(os.getenv("STRIPE_WEBHOOK_TOLERANCE", 300))

    # Fallback origin for checkout redirect targets
    SITE_URL = os.getenv("SITE_URL", "http://localhost:3000").rstrip("/")

    FREE_DAILY_TASK_LIMIT = int(os.getenv("FREE_DAILY_TASK_LIMIT", 3))

    CORS_ALLOWED_ORIGINS = os.getenv(
        "CORS_ALLOWED_ORIGINS", "http://localhost:3000")
    AUTO_MIGRATE = _env_bool("AUTO_MIGRATE", "0")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_JSON = _env_bool("FOCUSFLOW_LOG_JSON", "true")


def is_stripe_configured(config) -> bool:
    """True when a usable Stripe secret key is present."""
    key = config.get("STRIPE_SECRET_KEY") or ""
    return key.startswith("sk_")


def are_webhooks_configured(config) -> bool:
    """True when a Stripe webhook signing secret is present and well formed."""
    secret = config.get("STRIPE_WEBHOOK_SECRET") or ""
    return secret.startswith("whsec_")
