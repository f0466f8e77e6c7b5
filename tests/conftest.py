import smtplib

import pytest
from fastapi.testclient import TestClient

from league_registration_api.app.core.config import DEFAULT_LEAGUE_NAMES, Settings
from league_registration_api.app.core.db import Database
from league_registration_api.app.main import create_app
from league_registration_api.app.services.gateway import GatewayOrder, PaymentGateway
from league_registration_api.app.services.mailer import Mailer

KEY_ID = "rzp_test_key"
KEY_SECRET = "rzp_test_secret"
ADMIN = {"email": "admin@league.test", "name": "Admin", "password": "adminpass"}


class FakeGateway(PaymentGateway):
    """Hands out order ids from a list and records every call."""

    def __init__(self, order_ids=None):
        super().__init__(KEY_ID, KEY_SECRET)
        self.order_ids = list(order_ids or [])
        self.calls = []
        self.error = None
        self.before_create = None

    def create_order(self, amount, currency, receipt, notes=None):
        self.calls.append({"amount": amount, "currency": currency, "receipt": receipt, "notes": notes})
        if self.error is not None:
            raise self.error
        if self.before_create is not None:
            self.before_create()
        order_id = self.order_ids.pop(0) if self.order_ids else f"order_{len(self.calls)}"
        return GatewayOrder(id=order_id, amount=amount, currency=currency, receipt=receipt)


class RecordingMailer(Mailer):
    """Keeps messages in memory; addresses in ``fail_for`` are refused."""

    def __init__(self):
        super().__init__(host="localhost", port=25, from_name="Test League", league_names=DEFAULT_LEAGUE_NAMES)
        self.sent = []
        self.fail_for = set()

    def send_email(self, to, subject, html_body):
        if to in self.fail_for:
            raise smtplib.SMTPRecipientsRefused({to: (550, b"mailbox unavailable")})
        self.sent.append({"to": to, "subject": subject, "html": html_body})


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=str(tmp_path / "test.db"),
        secret_key="test-secret",
        razorpay_key_id=KEY_ID,
        razorpay_key_secret=KEY_SECRET,
        debug=False,
    )


@pytest.fixture
def gateway():
    return FakeGateway(order_ids=["O1", "O2", "O3"])


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(settings, gateway, mailer):
    return create_app(settings=settings, gateway=gateway, mailer=mailer, db=Database(settings.database_url))


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(client):
    response = client.post("/api/v1/auth/register", json=ADMIN)
    assert response.status_code == 201
    return response.json()["data"]["token"]


@pytest.fixture
def admin_headers(admin_token):
    return auth_header(admin_token)


def registration_payload(**overrides):
    data = {
        "leagueType": "trial",
        "name": "Asha Patil",
        "age": 20,
        "mobile": "9876543210",
        "email": "a@x.com",
        "district": "Pune",
        "state": "Maharashtra",
        "role": "Batsman",
    }
    data.update(overrides)
    return data


@pytest.fixture
def register(client):
    """Create a registration and return its id."""

    def _register(**overrides):
        response = client.post("/api/v1/registrations", json=registration_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]["id"]

    return _register
