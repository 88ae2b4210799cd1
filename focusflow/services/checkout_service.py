# -*- coding: utf-8 -*-
"""
Checkout session initiation.

Ensures the user has exactly one billing customer (created lazily on the
first attempt and reused afterwards), then opens a hosted checkout session
for the single premium price. Subscription state is never written here; it
only changes through the webhook path.
"""

from typing import Optional

from focusflow.services.structured_logging import get_logger
from focusflow.services import billing_store
from focusflow.services.errors import (
    PersistenceError,
    ProcessorNotConfigured,
    ValidationError,
)
from focusflow.services.payment_processor import StripeProcessor

logger = get_logger('focusflow.checkout')


class CheckoutService:
    """Creates checkout sessions for a user/email pair."""

    def __init__(self, processor: StripeProcessor, price_id: str, site_url: str):
        self.processor = processor
        self.price_id = price_id
        self.site_url = site_url.rstrip('/')

    def create_session(self, user_id: str, email: str, origin: Optional[str] = None) -> str:
        """Return the id of a new checkout session for ``user_id``."""
        user_id = (user_id or '').strip()
        email = (email or '').strip()
        if not user_id or not email:
            raise ValidationError("Missing required fields")
        if not self.price_id:
            raise ProcessorNotConfigured("STRIPE_PRICE_ID missing")

        customer_id = self.ensure_customer(user_id, email)

        base = (origin or self.site_url).rstrip('/')
        session_id = self.processor.create_checkout_session(
            customer_id=customer_id,
            price_id=self.price_id,
            success_url=f"{base}/subscription?success=true",
            cancel_url=f"{base}/subscription?canceled=true",
            metadata={'userId': user_id},
            client_reference_id=user_id,
        )
        logger.info(f"Created checkout session: {session_id}",
                    user_id=user_id, customer_id=customer_id)
        return session_id

    def ensure_customer(self, user_id: str, email: str) -> str:
        """Return the user's billing customer id, creating and linking it once."""
        user = billing_store.get_or_create_user(user_id, email)
        if user.has_customer_link:
            return user.stripe_customer_id

        customer_id = self.processor.create_customer(email, metadata={'userId': user_id})
        try:
            billing_store.link_customer(user, customer_id)
        except PersistenceError:
            # Remote customer now exists without a local link; a retry creates another
            logger.error("Orphaned billing customer after link failure",
                         user_id=user_id, customer_id=customer_id)
            raise

        logger.info("Linked billing customer", user_id=user_id, customer_id=customer_id)
        return customer_id
