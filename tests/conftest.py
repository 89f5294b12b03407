import os

# Pas de Redis pendant les tests: le lifespan désactive le limiteur
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import copy
import uuid
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from backend import config
from backend.app import app as fastapi_app
from backend.utils.security import get_current_user, get_optional_user, require_admin, require_user

TEST_KEY_ID = "rzp_test_key"
TEST_KEY_SECRET = "rzp_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeOrderStore:
    """Table 'orders' en mémoire, mêmes signatures que backend.orders.repository."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.fail_insert = False
        self._seq = 0

    def insert_order(self, row: Dict[str, Any]) -> Optional[dict]:
        if self.fail_insert:
            return None
        self._seq += 1
        order_id = str(uuid.uuid4())
        stored = {
            **copy.deepcopy(row),
            "id": order_id,
            "razorpay_payment_id": None,
            "razorpay_signature": None,
            "created_at": f"2024-01-01T00:00:{self._seq:02d}+00:00",
            "updated_at": None,
        }
        self.rows[order_id] = stored
        return copy.deepcopy(stored)

    def get_order(self, order_id: str) -> Optional[dict]:
        row = self.rows.get(order_id)
        return copy.deepcopy(row) if row else None

    def update_order_if_unpaid(self, order_id: str, expected_status: str, data: Dict[str, Any]) -> List[dict]:
        row = self.rows.get(order_id)
        if not row or row.get("status") != expected_status or row.get("razorpay_payment_id") is not None:
            return []
        row.update(copy.deepcopy(data))
        return [copy.deepcopy(row)]

    def update_order(self, order_id: str, data: Dict[str, Any]) -> List[dict]:
        row = self.rows.get(order_id)
        if not row:
            return []
        row.update(copy.deepcopy(data))
        return [copy.deepcopy(row)]

    def list_orders_by_user(self, user_id: str) -> List[dict]:
        rows = [r for r in self.rows.values() if r.get("user_id") == user_id]
        return copy.deepcopy(sorted(rows, key=lambda r: r["created_at"], reverse=True))

    def list_orders(self, limit: int = 100) -> List[dict]:
        rows = sorted(self.rows.values(), key=lambda r: r["created_at"], reverse=True)
        return copy.deepcopy(rows[:limit])


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

# Aucun accès Supabase réel pendant les tests
@pytest.fixture(autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture(autouse=True)
def razorpay_keys(monkeypatch):
    monkeypatch.setattr(config, "RAZORPAY_KEY_ID", TEST_KEY_ID)
    monkeypatch.setattr(config, "RAZORPAY_KEY_SECRET", TEST_KEY_SECRET)
    return TEST_KEY_ID, TEST_KEY_SECRET

@pytest.fixture(autouse=True)
def no_smtp(monkeypatch):
    # Les tests qui vérifient l'envoi réactivent SMTP explicitement
    monkeypatch.setattr(config, "SMTP_USER", "")
    monkeypatch.setattr(config, "SMTP_PASS", "")

@pytest.fixture
def order_store(monkeypatch) -> FakeOrderStore:
    store = FakeOrderStore()
    for name in ("insert_order", "get_order", "update_order_if_unpaid", "update_order", "list_orders_by_user", "list_orders"):
        monkeypatch.setattr(f"backend.orders.repository.{name}", getattr(store, name))
    return store

class FakeCatalog:
    def __init__(self):
        self.prices: Dict[str, Any] = {}
        self.calls: List[List[str]] = []

    def lookup(self, ids):
        self.calls.append(list(ids))
        return {i: self.prices[i] for i in ids if i in self.prices}


@pytest.fixture
def catalog(monkeypatch) -> FakeCatalog:
    """Catalogue simulé: catalog.prices[product_id] = prix."""
    fake = FakeCatalog()
    monkeypatch.setattr("backend.catalog.repository.get_prices_by_ids", fake.lookup)
    return fake

@pytest.fixture
def gateway(monkeypatch) -> List[Dict[str, Any]]:
    """Razorpay simulé: enregistre les appels à create_intent."""
    calls: List[Dict[str, Any]] = []

    def _create_intent(*, amount_minor, currency, receipt, notes=None):
        calls.append({"amount_minor": amount_minor, "currency": currency, "receipt": receipt, "notes": notes})
        return {"gateway_order_ref": f"order_test_{len(calls)}"}

    monkeypatch.setattr("backend.payments.razorpay_client.create_intent", _create_intent)
    return calls

@pytest.fixture
def test_user() -> Dict[str, Any]:
    return {"id": "test-user", "email": "test@example.com", "role": "user", "metadata": {}, "token": "fake-token"}

@pytest.fixture
def as_user(app, test_user):
    overridden = (get_current_user, require_user, get_optional_user)
    for dep in overridden:
        app.dependency_overrides[dep] = lambda: test_user
    yield test_user
    for dep in overridden:
        app.dependency_overrides.pop(dep, None)

@pytest.fixture
def authenticated_admin_client(app, client):
    admin = {"id": "admin-user-id", "role": "admin", "email": "admin@example.com"}
    app.dependency_overrides[require_admin] = lambda: admin
    app.dependency_overrides[get_optional_user] = lambda: admin
    yield client
    app.dependency_overrides.clear()
