# -*- coding: utf-8 -*-

from unittest.mock import patch, MagicMock

import pytest
import stripe

from focusflow.database import db
from focusflow.models import SubscriptionRecord, User
from focusflow.services.errors import PersistenceError


def _stripe_object(object_id):
    obj = MagicMock()
    obj.id = object_id
    return obj


class TestCreateCheckoutSession:
    """Test cases for the checkout session endpoint."""

    def test_first_checkout_creates_customer_and_session(self, client, app):
        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_test_1")
            mock_session.return_value = _stripe_object("cs_test_1")

            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 200
        assert response.get_json() == {"sessionId": "cs_test_1"}

        mock_customer.assert_called_once()
        customer_kwargs = mock_customer.call_args[1]
        assert customer_kwargs["email"] == "a@b.com"
        assert customer_kwargs["metadata"] == {"userId": "u1"}
        assert customer_kwargs["api_key"] == "sk_test_dummy_key_for_testing"

        user = db.session.get(User, "u1")
        assert user.stripe_customer_id == "cus_test_1"

    def test_second_checkout_reuses_cached_customer(self, client, app):
        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_test_1")
            mock_session.side_effect = [_stripe_object("cs_test_1"), _stripe_object("cs_test_2")]

            first = client.post("/api/create-checkout-session",
                                json={"userId": "u1", "email": "a@b.com"})
            second = client.post("/api/create-checkout-session",
                                 json={"userId": "u1", "email": "a@b.com"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.get_json()["sessionId"] == "cs_test_2"

        # Customer created once; both sessions opened for the same customer
        assert mock_customer.call_count == 1
        customers = [c[1]["customer"] for c in mock_session.call_args_list]
        assert customers == ["cus_test_1", "cus_test_1"]
        assert User.query.filter_by(id="u1").count() == 1

    def test_existing_user_link_short_circuits(self, client, app):
        db.session.add(User(id="u1", email="a@b.com", stripe_customer_id="cus_existing"))
        db.session.commit()

        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_session.return_value = _stripe_object("cs_test_1")
            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 200
        mock_customer.assert_not_called()
        assert mock_session.call_args[1]["customer"] == "cus_existing"

    def test_session_parameters(self, client, app):
        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_test_1")
            mock_session.return_value = _stripe_object("cs_test_1")

            client.post("/api/create-checkout-session",
                        json={"userId": "u1", "email": "a@b.com"},
                        headers={"Origin": "https://focus.example.com"})

        kwargs = mock_session.call_args[1]
        assert kwargs["mode"] == "subscription"
        assert kwargs["line_items"] == [{"price": "price_test_premium", "quantity": 1}]
        assert kwargs["success_url"] == "https://focus.example.com/subscription?success=true"
        assert kwargs["cancel_url"] == "https://focus.example.com/subscription?canceled=true"
        assert kwargs["metadata"] == {"userId": "u1"}
        assert kwargs["client_reference_id"] == "u1"

    def test_redirects_fall_back_to_site_url(self, client, app):
        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_test_1")
            mock_session.return_value = _stripe_object("cs_test_1")

            client.post("/api/create-checkout-session",
                        json={"userId": "u1", "email": "a@b.com"})

        assert mock_session.call_args[1]["success_url"] == \
            "http://localhost:3000/subscription?success=true"

    @pytest.mark.parametrize("body", [
        {},
        {"userId": "u1"},
        {"email": "a@b.com"},
        {"userId": "", "email": "a@b.com"},
        {"userId": "u1", "email": "not-an-email"},
    ])
    def test_missing_or_malformed_fields(self, client, body):
        with patch("stripe.Customer.create") as mock_customer:
            response = client.post("/api/create-checkout-session", json=body)

        assert response.status_code == 400
        assert "error" in response.get_json()
        mock_customer.assert_not_called()

    def test_does_not_touch_subscription_records(self, client, app):
        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_test_1")
            mock_session.return_value = _stripe_object("cs_test_1")
            client.post("/api/create-checkout-session",
                        json={"userId": "u1", "email": "a@b.com"})

        assert SubscriptionRecord.query.count() == 0

    def test_stripe_failure_returns_500(self, client, app):
        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_test_1")
            mock_session.side_effect = stripe.APIConnectionError("Connection error")

            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 500
        assert "error" in response.get_json()

    def test_rejected_request_surfaces_stripe_message(self, client, app):
        with patch("stripe.Customer.create") as mock_customer:
            mock_customer.side_effect = stripe.InvalidRequestError(
                "Invalid email address", "email")

            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 400
        assert "Invalid email address" in response.get_json()["error"]

    def test_unknown_price_returns_500_without_stripe_message(self, client, app):
        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_test_1")
            mock_session.side_effect = stripe.InvalidRequestError(
                "No such price: 'price_test_premium'", "line_items[0][price]")

            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 500
        assert "No such price" not in response.get_json()["error"]

    def test_email_shared_with_another_user(self, client, app):
        db.session.add(User(id="u_other", email="a@b.com", stripe_customer_id="cus_other"))
        db.session.commit()

        with patch("stripe.Customer.create") as mock_customer, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_test_1")
            mock_session.return_value = _stripe_object("cs_test_1")

            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 200
        assert db.session.get(User, "u1").stripe_customer_id == "cus_test_1"
        assert db.session.get(User, "u_other").stripe_customer_id == "cus_other"

    def test_link_persistence_failure_returns_500(self, client, app):
        with patch("stripe.Customer.create") as mock_customer, \
                patch("focusflow.services.billing_store.link_customer") as mock_link, \
                patch("stripe.checkout.Session.create") as mock_session:
            mock_customer.return_value = _stripe_object("cus_orphan")
            mock_link.side_effect = PersistenceError("Billing store write failed")

            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 500
        mock_session.assert_not_called()

    def test_options_preflight(self, client):
        response = client.options("/api/create-checkout-session")
        assert response.status_code in (200, 204)


class TestCheckoutNotConfigured:

    @pytest.fixture
    def app_config(self, app_config):
        app_config["STRIPE_SECRET_KEY"] = ""
        return app_config

    def test_missing_stripe_key_returns_503(self, client):
        with patch("stripe.Customer.create") as mock_customer:
            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 503
        assert "error" in response.get_json()
        mock_customer.assert_not_called()

    def test_validation_runs_before_configuration_check(self, client):
        response = client.post("/api/create-checkout-session", json={"userId": "u1"})
        assert response.status_code == 400


class TestCheckoutMissingPrice:

    @pytest.fixture
    def app_config(self, app_config):
        app_config["STRIPE_PRICE_ID"] = ""
        return app_config

    def test_missing_price_returns_503(self, client):
        with patch("stripe.Customer.create") as mock_customer:
            response = client.post("/api/create-checkout-session",
                                   json={"userId": "u1", "email": "a@b.com"})

        assert response.status_code == 503
        mock_customer.assert_not_called()
