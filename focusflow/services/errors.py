# -*- coding: utf-8 -*-
"""Exception classes for the billing and entitlement services."""


class BillingError(Exception):
    """Base exception for billing and entitlement failures."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {'error': self.message}


class ValidationError(BillingError):
    """Raised when request fields are missing or malformed (400)."""
    status_code = 400


class AuthenticationError(BillingError):
    """Raised when a webhook signature cannot be verified (400)."""
    status_code = 400


class UpstreamError(BillingError):
    """Raised when a payment processor call fails.

    Defaults to 500; the processor client passes 400 when Stripe rejected
    the caller's input so its message can be surfaced.
    """
    status_code = 500


class PersistenceError(BillingError):
    """Raised when the billing store fails (500, processor will redeliver)."""
    status_code = 500


class ProcessorNotConfigured(BillingError):
    """Raised when billing is used without Stripe credentials (503)."""
    status_code = 503


class EntitlementRequired(BillingError):
    """Raised when a premium-only feature is used without an active subscription."""
    status_code = 402

    def __init__(self, feature: str, message: str = None):
        super().__init__(message or f'{feature.replace("_", " ").title()} requires a premium subscription')
        self.feature = feature

    def to_dict(self) -> dict:
        return {
            'error': self.message,
            'feature': self.feature,
            'premium_required': True,
        }
