# -*- coding: utf-8 -*-
# focusflow/models/user.py
from datetime import datetime

from focusflow.database import db


class User(db.Model):
    """Application identity; rows come from signup and are never deleted here."""
    __tablename__ = 'users'

    id = db.Column(db.String(64), primary_key=True)
    # Not unique: several auth identities may share an address
    email = db.Column(db.String(255), nullable=False, index=True)

    # Billing customer link: set once on first checkout, never reassigned
    stripe_customer_id = db.Column(db.String(64), unique=True, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def has_customer_link(self) -> bool:
        return bool(self.stripe_customer_id)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "stripe_customer_id": self.stripe_customer_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
