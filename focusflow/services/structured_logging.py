"""
Structured logging for the FocusFlow API.

Every record is emitted as one JSON object (or a plain line when
``LOG_JSON`` is off) carrying the request id, the acting user and any keyword
context passed by the caller. Values under credential-like keys are masked
before they reach the handler, so Stripe signatures and keys never land in
logs.

Usage:
    from focusflow.services.structured_logging import get_logger

    logger = get_logger('focusflow.checkout')
    logger.info("Created checkout session", user_id=user_id, session_id=sid)
"""

import json
import logging
import time
from datetime import datetime, timezone

from flask import Flask, g, has_request_context, request

from focusflow.services.request_context import get_request_context

QUIET_PATHS = frozenset(['/health', '/healthz', '/readyz', '/metrics'])

SENSITIVE_KEYS = ('secret', 'signature', 'api_key', 'password', 'token')

BILLING_LOGGERS = [
    'focusflow.checkout',
    'focusflow.webhooks',
    'focusflow.entitlements',
    'focusflow.stripe',
    'focusflow.store',
    'focusflow.security',
]


def _mask(fields: dict) -> dict:
    masked = {}
    for key, value in fields.items():
        if value and any(s in key.lower() for s in SENSITIVE_KEYS):
            masked[key] = '***'
        else:
            masked[key] = value
    return masked


class StructuredFormatter(logging.Formatter):
    """Renders records as JSON lines, or plain text for local runs."""

    def __init__(self, json_enabled: bool = True):
        super().__init__(fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s")
        self.json_enabled = json_enabled

    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, 'context', {})
        if not self.json_enabled:
            line = super().format(record)
            if context:
                line += ' ' + ' '.join(f"{k}={v}" for k, v in context.items())
            return line

        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if has_request_context():
            entry.update({k: v for k, v in get_request_context().items() if v is not None})
        entry.update(context)
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class StructuredLogger:
    """Thin wrapper over ``logging.Logger`` that accepts keyword context."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _emit(self, level: int, message: str, **context):
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra={'context': _mask(context)})

    def debug(self, message: str, **context):
        self._emit(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self._emit(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self._emit(logging.WARNING, message, **context)

    def error(self, message: str, **context):
        self._emit(logging.ERROR, message, **context)

    def log_billing_event(self, event_type: str, outcome: str, **context):
        """One line per webhook delivery, warning level when it failed."""
        level = logging.WARNING if outcome == 'failed' else logging.INFO
        self._emit(
            level,
            f"Billing event {event_type}: {outcome}",
            event_type='billing_event',
            billing_event_type=event_type,
            outcome=outcome,
            **context
        )

    def log_security_event(self, event: str, severity: str = 'info', **context):
        level = logging.getLevelName(severity.upper())
        if not isinstance(level, int):
            level = logging.INFO
        self._emit(
            level,
            f"Security event: {event}",
            event_type='security',
            security_event=event,
            severity=severity,
            **context
        )


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)


def configure_logging(app: Flask):
    """Install a single structured handler on the root logger."""
    json_enabled = bool(app.config.get('LOG_JSON', True))
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(json_enabled=json_enabled))
    root.addHandler(handler)

    app.logger.setLevel(level)
    for name in BILLING_LOGGERS:
        logging.getLogger(name).setLevel(level)


def _log_request(response):
    if request.path in QUIET_PATHS:
        return response

    started = getattr(g, 'request_start_time', None)
    duration_ms = round((time.time() - started) * 1000, 2) if started else None
    get_logger('focusflow.requests').info(
        f"{request.method} {request.path} {response.status_code}",
        event_type='request',
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    return response


def init_logging(app: Flask):
    configure_logging(app)
    app.after_request(_log_request)

    get_logger('focusflow.startup').info(
        "Application starting",
        testing=app.testing,
        stripe_configured=bool(app.config.get('STRIPE_SECRET_KEY')),
        webhooks_verified=bool(app.config.get('STRIPE_WEBHOOK_SECRET')),
    )
