"""
Shared fixtures for the finance tracker test suite.

Everything runs WITHOUT external services: MongoDB is replaced by
mongomock-motor and the payment provider by a recording fake gateway.
"""

import os

# Configure the provider secret BEFORE importing the app modules
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_secret"
os.environ["CONTRIBUTION_PROJECT_NAME"] = "veritas25"
os.environ["CONTRIBUTION_LABEL"] = "Veritas-25"

from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from fintrack.auth import hash_password
from fintrack.client import FinanceTrackerClient
from fintrack.contribution_routes import get_payment_gateway
from fintrack.database import get_db
from fintrack.errors import OrderCreationError
from fintrack.server import app

TEST_SECRET = "test_secret"
BASE_URL = "http://testserver"


class FakeGateway:
    """Stands in for RazorpayGateway and records every order request"""

    def __init__(self):
        self.calls = []
        self.fail = False

    async def create_order(self, amount, currency, receipt, notes):
        self.calls.append({
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        })
        if self.fail:
            raise OrderCreationError()
        return {
            "id": f"order_test{len(self.calls):04d}",
            "entity": "order",
            "amount": amount,
            "amount_paid": 0,
            "amount_due": amount,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
            "attempts": 0,
            "notes": notes,
            "created_at": 1735689600,
        }


async def seed_project(db, project_name, password):
    """Create a project the way the seed CLI does; returns its id"""
    now = datetime.utcnow()
    result = await db.projects.insert_one({
        "project_name": project_name,
        "password_hash": hash_password(password),
        "created_at": now,
        "updated_at": now,
    })
    return str(result.inserted_id)


# ---------------------------------------------------------------------------
# Database / gateway fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_db():
    """Fresh in-memory database per test"""
    return AsyncMongoMockClient()["finance_tracker_test"]


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def app_overrides(mock_db, fake_gateway):
    """Point the app's dependencies at the in-memory database and fake gateway"""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def veritas_project_id(mock_db):
    return await seed_project(mock_db, "veritas25", "p@ss")


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------

@pytest.fixture
def client(app_overrides):
    """Synchronous FastAPI test client (no lifespan, so no real MongoDB)"""
    return TestClient(app_overrides, raise_server_exceptions=False)


@pytest.fixture
async def api(app_overrides):
    """Async HTTP client bound to the app in-process"""
    transport = httpx.ASGITransport(app=app_overrides)
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as c:
        yield c


@pytest.fixture
async def tracker(app_overrides):
    """FinanceTrackerClient talking to the app in-process"""
    transport = httpx.ASGITransport(app=app_overrides)
    async with FinanceTrackerClient(BASE_URL, transport=transport) as c:
        yield c
