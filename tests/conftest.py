"""Shared fixtures: an in-memory app, a test client and an admin session."""
import pytest

from qreview import create_app, shutdown_app
from qreview.config import TestingConfig
from qreview.extensions import db

REGISTRY_SIRET = "73282932000074"
REGISTRY_NAME = "APPLE FRANCE"


class FakeRegistry:
    """Stands in for the business registry; records every lookup."""

    def __init__(self, records=None):
        self.records = dict(records or {})
        self.calls = []

    def verify(self, siret):
        self.calls.append(siret)
        name = self.records.get(siret)
        if name is None:
            return {"valid": False}
        return {"valid": True, "company_name": name}


@pytest.fixture
def registry():
    return FakeRegistry({REGISTRY_SIRET: REGISTRY_NAME})


@pytest.fixture
def app(registry):
    app = create_app(TestingConfig)
    app.extensions["registry_client"] = registry
    yield app
    with app.app_context():
        db.drop_all()
    shutdown_app(app)


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_token(client):
    response = client.post("/api/v1/admin/login", json={"password": TestingConfig.ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.get_json()["token"]


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def review_payload():
    return {
        "company_name": "Acme",
        "position": "Dev",
        "duration": "1 an",
        "rating": 5,
        "email": "a@b.com",
    }
