# -*- coding: utf-8 -*-
# focusflow/models/billing_event.py
import datetime as dt

from focusflow.database import db


class BillingEvent(db.Model):
    """Ledger of processed Stripe webhook deliveries, keyed by event id."""
    __tablename__ = "billing_events"

    id              = db.Column(db.Integer, primary_key=True)
    stripe_event_id = db.Column(db.String(255), unique=True, nullable=False, index=True)
    event_type      = db.Column(db.String(80), nullable=False, index=True)
    outcome         = db.Column(db.String(16), nullable=False)
    processed_at    = db.Column(db.DateTime, nullable=False, default=dt.datetime.utcnow)
