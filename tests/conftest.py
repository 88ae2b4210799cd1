import hashlib
import hmac
import json
import os
import tempfile
import time

import pytest
from prometheus_client import REGISTRY

# Set test environment variables
os.environ["TESTING"] = "true"
os.environ.setdefault("FOCUSFLOW_LOG_JSON", "false")

WEBHOOK_SECRET = "whsec_test_secret"
PRICE_ID = "price_test_premium"


@pytest.fixture(autouse=True)
def clear_prometheus_registry():
    """Clear the default prometheus registry before each test."""
    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        REGISTRY.unregister(collector)
    yield


@pytest.fixture
def app_config():
    """Config overrides for the app fixture; tests may mutate before `app` is built."""
    return {
        "TESTING": True,
        "STRIPE_SECRET_KEY": "sk_test_dummy_key_for_testing",
        "STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
        "STRIPE_PRICE_ID": PRICE_ID,
        "SITE_URL": "http://localhost:3000",
        "FREE_DAILY_TASK_LIMIT": 3,
        "AUTO_MIGRATE": False,
    }


@pytest.fixture
def app(app_config):
    """Create and configure a new app instance for each test."""
    db_fd, db_path = tempfile.mkstemp()
    from focusflow.factory import create_app
    from focusflow.database import db

    app = create_app({**app_config, "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


def stripe_signature(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header using Stripe's v1 HMAC scheme."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def sign():
    return stripe_signature


@pytest.fixture
def post_event(client):
    """POST a webhook event with a valid signature."""
    def _post(event, secret=WEBHOOK_SECRET, signature=None):
        payload = json.dumps(event).encode("utf-8")
        header = signature if signature is not None else stripe_signature(payload, secret)
        return client.post(
            "/api/webhooks/stripe",
            data=payload,
            headers={"Stripe-Signature": header, "Content-Type": "application/json"},
        )
    return _post


@pytest.fixture
def make_subscription(app):
    """Insert a user and a subscription record with the given status."""
    from focusflow.database import db
    from focusflow.models import SubscriptionRecord, User

    def _make(user_id="u1", email="a@b.com", status="active", subscription_id="sub_1"):
        if db.session.get(User, user_id) is None:
            db.session.add(User(id=user_id, email=email))
        record = SubscriptionRecord(
            email=email,
            user_id=user_id,
            stripe_customer_id="cus_1",
            stripe_subscription_id=subscription_id,
            status=status,
        )
        db.session.add(record)
        db.session.commit()
        return record
    return _make
