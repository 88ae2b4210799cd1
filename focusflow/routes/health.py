# -*- coding: utf-8 -*-
"""Liveness and readiness probes."""
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from focusflow.config import are_webhooks_configured, is_stripe_configured
from focusflow.database import db
from focusflow.services.structured_logging import get_logger

SERVICE_NAME = 'focusflow-api'

logger = get_logger('focusflow.health')

health_bp = Blueprint('health', __name__)


def _database_reachable() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning(f"Readiness database probe failed: {e}")
        return False


@health_bp.route('/health', methods=['GET', 'HEAD'])
@health_bp.route('/healthz', methods=['GET', 'HEAD'])
def healthz():
    return jsonify(status='healthy', service=SERVICE_NAME, timestamp=time.time())


@health_bp.route('/readyz', methods=['GET', 'HEAD'])
def readyz():
    """Ready when the database answers; billing configuration is reported only."""
    database_ok = _database_reachable()
    body = {
        'status': 'ready' if database_ok else 'not_ready',
        'service': SERVICE_NAME,
        'timestamp': time.time(),
        'checks': {
            'database': database_ok,
            'stripe_configured': is_stripe_configured(current_app.config),
            'webhooks_verified': are_webhooks_configured(current_app.config),
        },
    }
    return jsonify(body), 200 if database_ok else 503
