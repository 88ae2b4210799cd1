"""
Test suite for health and readiness endpoints.
"""

import time
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from focusflow.database import db


class TestHealthEndpoint:
    """Test /healthz endpoint functionality."""

    @pytest.mark.parametrize("path", ["/health", "/healthz"])
    def test_health_always_200(self, client, path):
        response = client.get(path)
        assert response.status_code == 200

        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['service'] == 'focusflow-api'
        assert abs(time.time() - data['timestamp']) < 5

    def test_health_endpoint_head_method(self, client):
        response = client.head('/healthz')
        assert response.status_code == 200
        assert response.data == b''


class TestReadinessEndpoint:
    """Test /readyz endpoint functionality."""

    def test_ready_with_billing_configured(self, client):
        response = client.get('/readyz')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'ready'
        assert data['checks'] == {
            'database': True,
            'stripe_configured': True,
            'webhooks_verified': True,
        }

    def test_database_down(self, client):
        error = OperationalError("SELECT 1", {}, Exception("connection refused"))
        with patch.object(db.session, 'execute', side_effect=error):
            response = client.get('/readyz')

        assert response.status_code == 503
        assert response.get_json()['status'] == 'not_ready'
        assert response.get_json()['checks']['database'] is False


class TestReadinessWithoutBilling:

    @pytest.fixture
    def app_config(self, app_config):
        app_config.update(STRIPE_SECRET_KEY="", STRIPE_WEBHOOK_SECRET="")
        return app_config

    def test_billing_unconfigured_still_ready(self, client):
        response = client.get('/readyz')

        assert response.status_code == 200
        checks = response.get_json()['checks']
        assert checks['stripe_configured'] is False
        assert checks['webhooks_verified'] is False
