# -*- coding: utf-8 -*-
# focusflow/models/subscription.py
import datetime as dt

from focusflow.database import db

STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"


class SubscriptionRecord(db.Model):
    """Current entitlement state for an email; cancellation is a status, not a delete."""
    __tablename__ = "user_subscriptions"

    id                     = db.Column(db.Integer, primary_key=True)
    email                  = db.Column(db.String(255), unique=True, nullable=False, index=True)
    user_id                = db.Column(db.String(64), nullable=True, index=True)
    stripe_customer_id     = db.Column(db.String(64), nullable=True, index=True)
    stripe_subscription_id = db.Column(db.String(64), unique=True, nullable=True, index=True)
    status                 = db.Column(db.String(32), nullable=False, default=STATUS_ACTIVE)
    # Processor timestamp (epoch seconds) of the last event applied to this row
    event_created_at       = db.Column(db.BigInteger, nullable=True)
    created_at             = db.Column(db.DateTime, nullable=False, default=dt.datetime.utcnow)
    updated_at             = db.Column(db.DateTime, nullable=False, default=dt.datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def to_dict(self):
        return {
            "email": self.email,
            "user_id": self.user_id,
            "stripe_customer_id": self.stripe_customer_id,
            "stripe_subscription_id": self.stripe_subscription_id,
            "status": self.status,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
