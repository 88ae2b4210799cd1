# -*- coding: utf-8 -*-

import pytest

from focusflow.database import db
from focusflow.models import SubscriptionRecord, User
from focusflow.services.entitlements import (
    Feature,
    can_create_task,
    is_premium,
    require_feature,
    resolve_entitlements,
)
from focusflow.services.errors import EntitlementRequired


class TestIsPremium:

    def test_active_is_premium(self, make_subscription):
        make_subscription(status="active")
        assert is_premium("u1") is True

    @pytest.mark.parametrize("status", [
        "cancelled", "canceled", "past_due", "trialing", "incomplete", "unpaid", "ACTIVE", "",
    ])
    def test_any_other_status_is_free(self, make_subscription, status):
        make_subscription(status=status)
        assert is_premium("u1") is False

    def test_no_record_is_free(self, app):
        db.session.add(User(id="u1", email="a@b.com"))
        db.session.commit()
        assert is_premium("u1") is False

    def test_unknown_user_is_free(self, app):
        assert is_premium("nobody") is False
        assert is_premium("") is False

    def test_record_found_by_email_when_user_id_missing(self, app):
        db.session.add(User(id="u1", email="a@b.com"))
        db.session.add(SubscriptionRecord(email="a@b.com", status="active"))
        db.session.commit()

        assert is_premium("u1") is True

    def test_active_record_under_second_email_wins(self, app, post_event):
        for event_id, email, sub_id, created in (("evt_1", "old@x.com", "sub_1", 100),
                                                 ("evt_2", "new@x.com", "sub_2", 200)):
            post_event({"id": event_id, "created": created, "type": "checkout.session.completed",
                        "data": {"object": {"customer_email": email, "customer": "cus_1",
                                            "subscription": sub_id, "metadata": {"userId": "u1"}}}})
        post_event({"id": "evt_3", "created": 300, "type": "customer.subscription.deleted",
                    "data": {"object": {"id": "sub_1"}}})

        statuses = {r.email: r.status for r in SubscriptionRecord.query.all()}
        assert statuses == {"old@x.com": "cancelled", "new@x.com": "active"}
        assert is_premium("u1") is True
        assert resolve_entitlements("u1").status == "active"

    def test_latest_status_reported_when_nothing_active(self, app):
        db.session.add(User(id="u1", email="a@b.com"))
        db.session.add(SubscriptionRecord(email="a@b.com", status="cancelled"))
        db.session.add(SubscriptionRecord(email="other@b.com", user_id="u1", status="past_due"))
        db.session.commit()

        assert is_premium("u1") is False
        assert resolve_entitlements("u1").status in ("cancelled", "past_due")

    def test_has_no_side_effects(self, make_subscription):
        record = make_subscription(status="active")
        updated_at = record.updated_at

        is_premium("u1")
        resolve_entitlements("u1")

        assert SubscriptionRecord.query.count() == 1
        assert db.session.get(SubscriptionRecord, record.id).updated_at == updated_at


class TestResolveEntitlements:

    def test_premium_unlocks_every_feature(self, make_subscription):
        make_subscription(status="active")
        ent = resolve_entitlements("u1")

        assert ent.premium is True
        assert ent.status == "active"
        assert all(ent.features[f.value] for f in Feature)
        assert ent.daily_task_limit is None

    def test_free_tier(self, make_subscription):
        make_subscription(status="cancelled")
        ent = resolve_entitlements("u1")

        assert ent.premium is False
        assert ent.status == "cancelled"
        assert not any(ent.features.values())
        assert ent.daily_task_limit == 3

    def test_require_feature(self, make_subscription):
        make_subscription(status="past_due")
        with pytest.raises(EntitlementRequired) as exc:
            require_feature("u1", Feature.CALENDAR)
        assert exc.value.feature == "calendar"
        assert exc.value.status_code == 402

    def test_task_limit(self, make_subscription):
        assert can_create_task("u1", 0) is True
        assert can_create_task("u1", 2) is True
        assert can_create_task("u1", 3) is False

        make_subscription(status="active")
        assert can_create_task("u1", 3) is True
        assert can_create_task("u1", 50) is True


class TestSubscriptionStatusEndpoint:

    def test_premium_status(self, client, make_subscription):
        make_subscription(status="active")
        response = client.get("/api/subscription/status?userId=u1")

        assert response.status_code == 200
        data = response.get_json()
        assert data["premium"] is True
        assert data["features"]["custom_playlists"] is True
        assert data["features"]["notes"] is True

    def test_free_status(self, client, app):
        response = client.get("/api/subscription/status?userId=u1")

        data = response.get_json()
        assert data["premium"] is False
        assert data["status"] is None
        assert data["dailyTaskLimit"] == 3

    def test_follows_webhook_state(self, client, make_subscription, post_event):
        make_subscription(status="active")
        post_event({"id": "evt_del", "type": "customer.subscription.deleted",
                    "data": {"object": {"id": "sub_1"}}})

        data = client.get("/api/subscription/status?userId=u1").get_json()
        assert data["premium"] is False
        assert data["status"] == "cancelled"

    def test_requires_user_id(self, client):
        response = client.get("/api/subscription/status")
        assert response.status_code == 400
