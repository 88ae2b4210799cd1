# -*- coding: utf-8 -*-
"""
Payment processor client.

Stateless wrapper over the Stripe SDK for the two calls checkout needs:
creating a billing customer and opening a hosted checkout session. The API
key is passed on every call so the module-level ``stripe.api_key`` is never
mutated.

The processor is built lazily from app config on first use and cached on the
app. ``get_payment_processor()`` returns ``None`` when Stripe is not
configured; callers handle that variant explicitly (or use
``require_payment_processor()``, which raises ``ProcessorNotConfigured``).
"""

from typing import Any, Dict, Optional

import stripe
from flask import Flask, current_app

from focusflow.config import is_stripe_configured
from focusflow.services.structured_logging import get_logger
from focusflow.services.errors import ProcessorNotConfigured, UpstreamError

logger = get_logger('focusflow.stripe')

EXTENSION_KEY = 'payment_processor'


class StripeProcessor:
    """Issues customer and checkout-session calls against the Stripe API."""

    def __init__(self, secret_key: str, api_version: Optional[str] = None):
        self._secret_key = secret_key
        self._api_version = api_version

    def _request_options(self) -> Dict[str, Any]:
        options = {'api_key': self._secret_key}
        if self._api_version:
            options['stripe_version'] = self._api_version
        return options

    def create_customer(self, email: str, metadata: Optional[Dict[str, str]] = None) -> str:
        """Create a billing customer and return its id."""
        try:
            customer = stripe.Customer.create(
                email=email,
                metadata=metadata or {},
                **self._request_options()
            )
        except stripe.StripeError as e:
            raise _upstream_error("customer creation", e, caller_input=True) from e
        return customer.id

    def create_checkout_session(self,
                                customer_id: str,
                                price_id: str,
                                success_url: str,
                                cancel_url: str,
                                metadata: Optional[Dict[str, str]] = None,
                                client_reference_id: Optional[str] = None) -> str:
        """Open a subscription-mode checkout session and return its id."""
        params = {
            'customer': customer_id,
            'payment_method_types': ['card'],
            'line_items': [{
                'price': price_id,
                'quantity': 1,
            }],
            'mode': 'subscription',
            'success_url': success_url,
            'cancel_url': cancel_url,
            'metadata': metadata or {},
        }
        if client_reference_id:
            params['client_reference_id'] = client_reference_id

        try:
            session = stripe.checkout.Session.create(**params, **self._request_options())
        except stripe.StripeError as e:
            raise _upstream_error("checkout session creation", e) from e
        return session.id


def _upstream_error(operation: str, error: 'stripe.StripeError',
                    caller_input: bool = False) -> UpstreamError:
    """Map a Stripe failure to an UpstreamError.

    Only rejected caller input (the customer email) is a 400. Session
    creation failures are always 500 and do not echo Stripe's message.
    """
    msg = getattr(error, 'user_message', None) or str(error)
    if caller_input and isinstance(error, stripe.InvalidRequestError):
        logger.warning(f"Stripe rejected {operation}: {msg}")
        return UpstreamError(f"Stripe error: {msg}", status_code=400)
    logger.error(f"Stripe {operation} failed: {msg}",
                 stripe_error=type(error).__name__)
    return UpstreamError(f"Stripe {operation} failed", status_code=500)


def build_payment_processor(config) -> Optional[StripeProcessor]:
    """Construct a processor from config, or None when Stripe is not configured."""
    if not is_stripe_configured(config):
        return None
    return StripeProcessor(
        secret_key=config['STRIPE_SECRET_KEY'],
        api_version=config.get('STRIPE_API_VERSION'),
    )


def get_payment_processor(app: Optional[Flask] = None) -> Optional[StripeProcessor]:
    """Return the app's processor, building it on first use."""
    app = app or current_app
    if EXTENSION_KEY not in app.extensions:
        processor = build_payment_processor(app.config)
        if processor is None:
            logger.warning("Stripe is not configured; billing endpoints are disabled")
        app.extensions[EXTENSION_KEY] = processor
    return app.extensions[EXTENSION_KEY]


def set_payment_processor(app: Flask, processor: Optional[StripeProcessor]):
    """Inject a processor (or the unconfigured variant) for this app."""
    app.extensions[EXTENSION_KEY] = processor


def require_payment_processor(app: Optional[Flask] = None) -> StripeProcessor:
    processor = get_payment_processor(app)
    if processor is None:
        raise ProcessorNotConfigured("Billing service not configured")
    return processor
