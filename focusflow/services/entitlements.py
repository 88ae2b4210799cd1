# -*- coding: utf-8 -*-
"""
Entitlement resolution.

A user is premium if and only if their stored subscription status is
"active"; a missing record or any other status is the free tier. Every gated
surface (custom playlists, unlimited tasks, calendar, notes) asks here before
accepting a privileged mutation. A premium flag cached by the browser is a
render hint only and is never consulted.

Usage:
    from focusflow.services.entitlements import require_feature, Feature

    require_feature(user_id, Feature.CUSTOM_PLAYLISTS)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from flask import current_app, has_app_context

from focusflow.services.structured_logging import get_logger
from focusflow.services import billing_store
from focusflow.services.errors import EntitlementRequired
from focusflow.services.metrics import get_metrics_service

logger = get_logger('focusflow.entitlements')

DEFAULT_FREE_DAILY_TASK_LIMIT = 3


class Feature(str, Enum):
    """Premium-gated features."""
    CUSTOM_PLAYLISTS = "custom_playlists"
    UNLIMITED_TASKS = "unlimited_tasks"
    CALENDAR = "calendar"
    NOTES = "notes"


@dataclass
class Entitlements:
    user_id: str
    premium: bool
    status: Optional[str] = None
    features: Dict[str, bool] = field(default_factory=dict)
    daily_task_limit: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'userId': self.user_id,
            'premium': self.premium,
            'status': self.status,
            'features': dict(self.features),
            'dailyTaskLimit': self.daily_task_limit,
        }


def free_daily_task_limit() -> int:
    if has_app_context():
        return int(current_app.config.get('FREE_DAILY_TASK_LIMIT', DEFAULT_FREE_DAILY_TASK_LIMIT))
    return DEFAULT_FREE_DAILY_TASK_LIMIT


def is_premium(user_id: str) -> bool:
    """True iff the user's subscription status is exactly "active"."""
    if not user_id:
        return False
    record = billing_store.find_subscription_for_user(user_id)
    return record is not None and record.is_active


def resolve_entitlements(user_id: str) -> Entitlements:
    record = billing_store.find_subscription_for_user(user_id) if user_id else None
    premium = record is not None and record.is_active
    return Entitlements(
        user_id=user_id,
        premium=premium,
        status=record.status if record is not None else None,
        features={feature.value: premium for feature in Feature},
        daily_task_limit=None if premium else free_daily_task_limit(),
    )


def require_feature(user_id: str, feature: Feature):
    """Raise EntitlementRequired unless the user may use ``feature``."""
    if is_premium(user_id):
        return
    logger.info(f"Entitlement denied: {feature.value}", user_id=user_id, feature=feature.value)
    metrics = get_metrics_service()
    if metrics:
        metrics.record_entitlement_denial(feature.value)
    raise EntitlementRequired(feature.value)


def can_create_task(user_id: str, tasks_today: int) -> bool:
    """Free users may create up to the daily limit; premium users are unlimited."""
    if tasks_today < free_daily_task_limit():
        return True
    return is_premium(user_id)
