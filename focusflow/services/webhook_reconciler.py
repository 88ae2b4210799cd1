# -*- coding: utf-8 -*-
"""
Stripe webhook reconciliation.

Verifies inbound billing events and applies at most one state transition per
event to the subscription records:

- checkout.session.completed     -> upsert by customer email, status "active"
- customer.subscription.updated  -> status mirrors the processor's value
- customer.subscription.deleted  -> status "cancelled"
- anything else                  -> acknowledged, no action

Deliveries are at-least-once and may arrive out of order. Every transition is
an overwrite keyed by email or subscription id, a delivery whose event id is
already in the ledger is acknowledged without re-applying, and an event older
than the last one applied to a record is skipped. Store failures surface as
``PersistenceError`` so Stripe redelivers; nothing is retried here.

Without a webhook secret (local development) events are parsed and logged
but never applied.
"""

import json
from dataclasses import dataclass
from typing import Optional

import stripe
from sqlalchemy.exc import SQLAlchemyError

from focusflow.services.structured_logging import get_logger
from focusflow.models.subscription import STATUS_ACTIVE, STATUS_CANCELLED
from focusflow.services import billing_store
from focusflow.services.billing_events import (
    CheckoutCompleted,
    SubscriptionDeleted,
    SubscriptionUpdated,
    WebhookEvent,
    parse_event,
)
from focusflow.services.errors import (
    AuthenticationError,
    PersistenceError,
    ValidationError,
)
from focusflow.services.metrics import get_metrics_service

logger = get_logger('focusflow.webhooks')

OUTCOME_APPLIED = "applied"
OUTCOME_NO_OP = "no_op"
OUTCOME_IGNORED = "ignored"
OUTCOME_STALE = "stale"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_SIMULATED = "simulated"


@dataclass
class WebhookResult:
    event_type: str
    outcome: str
    simulated: bool = False

    def to_dict(self) -> dict:
        body = {'received': True}
        if self.simulated:
            body['simulated'] = True
            body['message'] = 'Webhook simulated for local development'
        return body


class WebhookReconciler:
    """Verifies and applies Stripe webhook deliveries."""

    def __init__(self, webhook_secret: Optional[str], tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE):
        self.webhook_secret = webhook_secret or None
        self.tolerance = tolerance

    def handle(self, payload: bytes, signature: Optional[str]) -> WebhookResult:
        if not self.webhook_secret:
            return self._simulate(payload)

        event = parse_event(self._verify(payload, signature))
        try:
            outcome = self.apply(event)
        except PersistenceError:
            billing_store.rollback()
            self._record(event.event_type, 'failed', event_id=event.event_id)
            raise
        except SQLAlchemyError as e:
            billing_store.rollback()
            self._record(event.event_type, 'failed', event_id=event.event_id)
            raise PersistenceError("Webhook processing failed") from e

        self._record(event.event_type, outcome, event_id=event.event_id)
        return WebhookResult(event_type=event.event_type, outcome=outcome)

    def _verify(self, payload: bytes, signature: Optional[str]) -> dict:
        if not signature:
            logger.log_security_event("webhook signature missing", severity='warning')
            raise AuthenticationError("Missing signature")

        try:
            text = payload.decode('utf-8') if isinstance(payload, bytes) else payload
        except UnicodeDecodeError as e:
            raise ValidationError("Invalid webhook payload") from e
        try:
            stripe.WebhookSignature.verify_header(
                text, signature, self.webhook_secret, self.tolerance)
        except stripe.SignatureVerificationError as e:
            logger.log_security_event(
                "webhook signature verification failed", severity='warning', reason=str(e))
            raise AuthenticationError("Invalid signature") from e

        return _decode(text)

    def _simulate(self, payload: bytes) -> WebhookResult:
        event = parse_event(_decode(payload))
        logger.log_security_event(
            "unverified webhook accepted without a signing secret",
            severity='warning',
            billing_event_type=event.event_type,
            stripe_event_id=event.event_id,
        )
        self._record(event.event_type, OUTCOME_SIMULATED, event_id=event.event_id)
        return WebhookResult(event_type=event.event_type, outcome=OUTCOME_SIMULATED, simulated=True)

    def apply(self, event: WebhookEvent) -> str:
        """Apply one verified event and commit it with its ledger row."""
        if billing_store.has_processed_event(event.event_id):
            return OUTCOME_DUPLICATE

        if isinstance(event, CheckoutCompleted):
            outcome = self._checkout_completed(event)
        elif isinstance(event, SubscriptionUpdated):
            outcome = self._set_status(event, event.status)
        elif isinstance(event, SubscriptionDeleted):
            outcome = self._set_status(event, STATUS_CANCELLED)
        else:
            outcome = OUTCOME_IGNORED

        billing_store.record_event(event.event_id, event.event_type, outcome)
        billing_store.commit()
        return outcome

    def _checkout_completed(self, event: CheckoutCompleted) -> str:
        if not event.customer_email:
            return OUTCOME_NO_OP

        existing = billing_store.find_subscription_by_email(event.customer_email)
        if existing is not None and _is_stale(existing.event_created_at, event.created):
            return OUTCOME_STALE

        owner = billing_store.find_subscription_by_subscription_id(event.subscription_id)
        if owner is not None and owner.email != event.customer_email:
            logger.warning(
                "Subscription already recorded under another email",
                stripe_event_id=event.event_id,
                subscription_id=event.subscription_id,
                recorded_email=owner.email,
                event_email=event.customer_email,
            )
            return OUTCOME_NO_OP

        billing_store.upsert_subscription_by_email(
            email=event.customer_email,
            customer_id=event.customer_id,
            subscription_id=event.subscription_id,
            status=STATUS_ACTIVE,
            user_id=event.user_id,
            event_created_at=event.created,
        )
        return OUTCOME_APPLIED

    def _set_status(self, event, status: Optional[str]) -> str:
        if not status:
            return OUTCOME_NO_OP
        record = billing_store.find_subscription_by_subscription_id(event.subscription_id)
        if record is None:
            # Checkout completion may not have been delivered yet
            return OUTCOME_NO_OP
        if _is_stale(record.event_created_at, event.created):
            return OUTCOME_STALE

        billing_store.update_subscription_status(record, status, event_created_at=event.created)
        return OUTCOME_APPLIED

    def _record(self, event_type: str, outcome: str, **kwargs):
        logger.log_billing_event(event_type, outcome, **kwargs)
        metrics = get_metrics_service()
        if metrics:
            metrics.record_webhook_event(event_type, outcome)


def _is_stale(applied_at: Optional[int], created: Optional[int]) -> bool:
    return applied_at is not None and created is not None and created < applied_at


def _decode(payload) -> dict:
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid webhook payload") from e
