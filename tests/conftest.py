"""Pytest configuration for coupon engine tests."""

import pytest
from fastapi.testclient import TestClient

from couponengine.api.server import app, get_service
from couponengine.core.service import CouponService
from couponengine.data.backends import InMemoryBackend
from couponengine.data.coupon_store import CouponStore
from couponengine.strategies.registry import create_registry


@pytest.fixture
def backend():
    return InMemoryBackend(lock_blocking_timeout=1.0)


@pytest.fixture
def store(backend):
    return CouponStore(backend)


@pytest.fixture
def service(store):
    return CouponService(store, create_registry())


# ---------------------------------------------------------------------------
# API client backed by the in-memory service.  Not entered as a context
# manager, so the app lifespan (which connects to the configured backend)
# does not run.
# ---------------------------------------------------------------------------

@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.pop(get_service, None)
