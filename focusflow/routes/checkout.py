# -*- coding: utf-8 -*-
"""
Stripe Checkout routes for premium subscription signup.
"""
from flask import Blueprint, jsonify, request, current_app

from focusflow.schemas.checkout import CheckoutRequestSchema
from focusflow.services.checkout_service import CheckoutService
from focusflow.services.errors import BillingError
from focusflow.services.metrics import get_metrics_service
from focusflow.services.payment_processor import require_payment_processor
from focusflow.services.request_context import set_user_context

checkout_bp = Blueprint("checkout", __name__)


def _json():
    """Safely parse JSON body or return empty dict."""
    return (request.get_json(silent=True) or {}) if request.data else {}


def _record(outcome: str):
    metrics = get_metrics_service()
    if metrics:
        metrics.record_checkout_session(outcome)


@checkout_bp.route("/create-checkout-session", methods=["POST", "OPTIONS"])
def create_checkout_session():
    """Creates a Stripe Checkout session for the premium plan."""
    if request.method == "OPTIONS":
        return ("", 204)

    data = CheckoutRequestSchema().load(_json())
    set_user_context(data["user_id"])

    try:
        service = CheckoutService(
            processor=require_payment_processor(),
            price_id=current_app.config.get("STRIPE_PRICE_ID", ""),
            site_url=current_app.config.get("SITE_URL", "http://localhost:3000"),
        )
        session_id = service.create_session(
            data["user_id"], data["email"], origin=request.headers.get("Origin"))
    except BillingError as e:
        _record(type(e).__name__)
        raise

    _record("created")
    return jsonify({"sessionId": session_id}), 200
