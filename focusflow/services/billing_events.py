# -*- coding: utf-8 -*-
"""
Typed Stripe webhook events.

Stripe payloads are schema-less JSON. ``parse_event`` turns a decoded event
into one variant of a small tagged union keyed by the event ``type``; kinds
the application does not act on become ``UnrecognizedEvent`` and are never
a parse failure.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from focusflow.services.errors import ValidationError

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


@dataclass(frozen=True)
class CheckoutCompleted:
    event_id: Optional[str]
    created: Optional[int]
    customer_email: Optional[str]
    customer_id: Optional[str]
    subscription_id: Optional[str]
    user_id: Optional[str] = None

    event_type = CHECKOUT_COMPLETED


@dataclass(frozen=True)
class SubscriptionUpdated:
    event_id: Optional[str]
    created: Optional[int]
    subscription_id: Optional[str]
    status: Optional[str]

    event_type = SUBSCRIPTION_UPDATED


@dataclass(frozen=True)
class SubscriptionDeleted:
    event_id: Optional[str]
    created: Optional[int]
    subscription_id: Optional[str]

    event_type = SUBSCRIPTION_DELETED


@dataclass(frozen=True)
class UnrecognizedEvent:
    event_id: Optional[str]
    created: Optional[int]
    event_type: str


WebhookEvent = Union[CheckoutCompleted, SubscriptionUpdated, SubscriptionDeleted, UnrecognizedEvent]


def _str_or_none(value: Any) -> Optional[str]:
    # Expanded objects carry their id under "id"
    if isinstance(value, dict):
        value = value.get('id')
    if value is None or value == '':
        return None
    return str(value)


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def parse_event(event: Dict[str, Any]) -> WebhookEvent:
    """Map a decoded Stripe event onto its typed variant."""
    if not isinstance(event, dict) or not isinstance(event.get('type'), str):
        raise ValidationError("Invalid webhook payload")

    event_type = event['type']
    event_id = _str_or_none(event.get('id'))
    created = _int_or_none(event.get('created'))

    data = event.get('data')
    obj = data.get('object') if isinstance(data, dict) else None
    if not isinstance(obj, dict):
        obj = {}

    if event_type == CHECKOUT_COMPLETED:
        details = obj.get('customer_details')
        email = obj.get('customer_email')
        if not email and isinstance(details, dict):
            email = details.get('email')
        metadata = obj.get('metadata') if isinstance(obj.get('metadata'), dict) else {}
        return CheckoutCompleted(
            event_id=event_id,
            created=created,
            customer_email=_str_or_none(email),
            customer_id=_str_or_none(obj.get('customer')),
            subscription_id=_str_or_none(obj.get('subscription')),
            user_id=_str_or_none(metadata.get('userId') or obj.get('client_reference_id')),
        )

    if event_type == SUBSCRIPTION_UPDATED:
        return SubscriptionUpdated(
            event_id=event_id,
            created=created,
            subscription_id=_str_or_none(obj.get('id')),
            status=_str_or_none(obj.get('status')),
        )

    if event_type == SUBSCRIPTION_DELETED:
        return SubscriptionDeleted(
            event_id=event_id,
            created=created,
            subscription_id=_str_or_none(obj.get('id')),
        )

    return UnrecognizedEvent(event_id=event_id, created=created, event_type=event_type)
