# -*- coding: utf-8 -*-
"""
Stripe webhook receiver.

Verification, idempotency and dispatch live in WebhookReconciler; this route
only hands it the raw body and signature header.
"""
from flask import Blueprint, request, jsonify, current_app

from focusflow.services.webhook_reconciler import WebhookReconciler

stripe_webhooks_bp = Blueprint('stripe_webhooks', __name__)


@stripe_webhooks_bp.route('/webhooks/stripe', methods=['POST'])
def stripe_webhook():
    """
    Handle Stripe webhook events.

    Events handled:
    - checkout.session.completed: mark the payer's subscription active
    - customer.subscription.updated: mirror the reported status
    - customer.subscription.deleted: mark the subscription cancelled
    """
    reconciler = WebhookReconciler(
        webhook_secret=current_app.config.get('STRIPE_WEBHOOK_SECRET'),
        tolerance=current_app.config.get('STRIPE_WEBHOOK_TOLERANCE', 300),
    )
    result = reconciler.handle(
        request.get_data(),
        request.headers.get('Stripe-Signature'),
    )
    return jsonify(result.to_dict()), 200
