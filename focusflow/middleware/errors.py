"""
Error handling middleware.

Turns billing errors, request validation failures and database errors into
flat JSON error payloads. No partial-success reporting.
"""
from flask import jsonify
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import OperationalError, IntegrityError
from focusflow.database import db
from focusflow.services.structured_logging import get_logger
from focusflow.services.errors import BillingError

logger = get_logger(__name__)


def register_error_handlers(app):
    """Register JSON error handlers on the app"""

    @app.errorhandler(BillingError)
    def handle_billing_error(e):
        if e.status_code >= 500:
            logger.error(f"{type(e).__name__}: {e.message}")
        else:
            logger.warning(f"{type(e).__name__}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(e):
        logger.warning(f"Invalid request data: {e.messages}")
        return jsonify({
            'error': 'Missing required fields',
            'details': e.messages
        }), 400

    @app.errorhandler(OperationalError)
    def handle_operational_error(e):
        """Handle database operational errors (connection, table not found, etc.)"""
        db.session.rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)

        if 'does not exist' in error_msg or 'no such table' in error_msg:
            logger.error(f"Database table not found: {error_msg}")
            return jsonify({
                'error': 'Database tables not yet created',
            }), 503

        logger.error(f"Database operational error: {error_msg}")
        return jsonify({'error': 'Database connection failed'}), 500

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        """Handle database integrity errors (unique constraint and friends)"""
        db.session.rollback()
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)
        logger.error(f"Database integrity error: {error_msg}")

        if 'unique' in error_msg.lower() or 'duplicate' in error_msg.lower():
            return jsonify({'error': 'This entry already exists'}), 409

        return jsonify({'error': error_msg}), 400
