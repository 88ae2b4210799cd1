# -*- coding: utf-8 -*-
"""
Billing record store access.

Thin query/upsert helpers over the users, user_subscriptions and
billing_events tables. Callers own the transaction: helpers flush but only
``commit()`` finalizes, so a webhook's ledger row and its state change land
together or not at all. SQLAlchemy failures are rolled back and re-raised as
``PersistenceError``.
"""

import datetime as dt
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from focusflow.database import db
from focusflow.services.structured_logging import get_logger
from focusflow.models.billing_event import BillingEvent
from focusflow.models.subscription import SubscriptionRecord, STATUS_ACTIVE
from focusflow.models.user import User
from focusflow.services.errors import PersistenceError

logger = get_logger('focusflow.store')


def commit():
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceError(f"Billing store write failed: {e}") from e


def rollback():
    db.session.rollback()


def get_user(user_id: str) -> Optional[User]:
    return db.session.get(User, user_id)


def get_or_create_user(user_id: str, email: str) -> User:
    """Return the user row, inserting it when signup happened elsewhere."""
    user = get_user(user_id)
    if user is not None:
        return user

    user = User(id=user_id, email=email)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as e:
        # Concurrent first checkout for the same user
        db.session.rollback()
        user = get_user(user_id)
        if user is None:
            raise PersistenceError(f"Could not create user {user_id}: {e.orig}") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceError(f"Could not create user {user_id}: {e}") from e
    return user


def link_customer(user: User, customer_id: str) -> User:
    """Persist the billing customer link. An existing link is never replaced."""
    if user.stripe_customer_id and user.stripe_customer_id != customer_id:
        logger.warning(
            "Refusing to reassign billing customer",
            user_id=user.id,
            existing_customer_id=user.stripe_customer_id,
            new_customer_id=customer_id,
        )
        return user

    user.stripe_customer_id = customer_id
    commit()
    return user


def find_subscription_by_email(email: str) -> Optional[SubscriptionRecord]:
    return SubscriptionRecord.query.filter_by(email=email).first()


def find_subscription_by_subscription_id(subscription_id: str) -> Optional[SubscriptionRecord]:
    if not subscription_id:
        return None
    return SubscriptionRecord.query.filter_by(
        stripe_subscription_id=subscription_id).first()


def find_subscription_for_user(user_id: str) -> Optional[SubscriptionRecord]:
    """Return the record that decides a user's entitlement.

    Records match by user id or by the user's email. Any active record wins;
    otherwise the most recently updated one reports the status.
    """
    match = SubscriptionRecord.user_id == user_id
    user = get_user(user_id)
    if user is not None:
        match = or_(match, SubscriptionRecord.email == user.email)

    records = (SubscriptionRecord.query
               .filter(match)
               .order_by(SubscriptionRecord.updated_at.desc(), SubscriptionRecord.id.desc())
               .all())
    for record in records:
        if record.is_active:
            return record
    return records[0] if records else None


def upsert_subscription_by_email(email: str,
                                 customer_id: Optional[str],
                                 subscription_id: Optional[str],
                                 status: str = STATUS_ACTIVE,
                                 user_id: Optional[str] = None,
                                 event_created_at: Optional[int] = None) -> SubscriptionRecord:
    """Insert or overwrite the record for ``email``. Does not commit."""
    record = find_subscription_by_email(email)
    if record is None:
        record = SubscriptionRecord(email=email)
        db.session.add(record)

    record.stripe_customer_id = customer_id
    record.stripe_subscription_id = subscription_id
    record.status = status
    if user_id:
        record.user_id = user_id
    elif record.user_id is None:
        user = User.query.filter_by(email=email).first()
        if user is not None:
            record.user_id = user.id
    if event_created_at is not None:
        record.event_created_at = event_created_at
    record.updated_at = dt.datetime.utcnow()
    _flush()
    return record


def update_subscription_status(record: SubscriptionRecord,
                               status: str,
                               event_created_at: Optional[int] = None) -> SubscriptionRecord:
    """Overwrite the status of an existing record. Does not commit."""
    record.status = status
    if event_created_at is not None:
        record.event_created_at = event_created_at
    record.updated_at = dt.datetime.utcnow()
    _flush()
    return record


def has_processed_event(event_id: Optional[str]) -> bool:
    if not event_id:
        return False
    return BillingEvent.query.filter_by(stripe_event_id=event_id).first() is not None


def record_event(event_id: Optional[str], event_type: str, outcome: str):
    """Add a ledger row for a processed delivery. Does not commit."""
    if not event_id:
        return
    db.session.add(BillingEvent(
        stripe_event_id=event_id,
        event_type=event_type,
        outcome=outcome,
    ))
    _flush()


def _flush():
    try:
        db.session.flush()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceError(f"Billing store write failed: {e}") from e
