"""
Shared pytest fixtures for the clinic directory tests.
"""
import asyncio
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

import main
from models import Clinic, clinic_from_record
from permissions import Identity
from seed import seed_data, seed_records, STANDARD_HOURS
from store import InMemoryClinicStore, StoreError


def at(day_offset: int, hour: int, minute: int = 0) -> datetime:
    """Naive instant `day_offset` days after Monday 2024-01-01"""
    return datetime(2024, 1, 1 + day_offset, hour, minute)


def make_clinic(**overrides) -> Clinic:
    """Clinic built through the store-boundary deserializer"""
    record = {
        "id": "test-clinic",
        "name": "Test Vet",
        "city": "Petaling Jaya",
        "state": "Selangor",
        "hours": dict(STANDARD_HOURS),
    }
    record.update(overrides)
    return clinic_from_record(record)


def run(coro):
    return asyncio.run(coro)


class RecordingStore(InMemoryClinicStore):
    """In-memory store that records update() calls and can be told to fail"""

    def __init__(self, records=None, update_delay: float = 0.0):
        super().__init__(records)
        self.update_calls = []
        self.update_delay = update_delay
        self.fail_with = None

    async def update(self, clinic_id, changes):
        loop = asyncio.get_running_loop()
        self.update_calls.append((loop.time(), clinic_id, dict(changes)))
        if self.update_delay:
            await asyncio.sleep(self.update_delay)
        if self.fail_with is not None:
            raise self.fail_with
        return await super().update(clinic_id, changes)


class BrokenStore(InMemoryClinicStore):
    """Every call fails like an unreachable remote store"""

    async def select_all(self):
        raise StoreError("connection refused")

    async def select_by_id(self, clinic_id):
        raise StoreError("connection refused")


@pytest.fixture
def store():
    """Fresh store loaded with the seed clinics"""
    return InMemoryClinicStore(seed_records())


@pytest.fixture
def seed_clinics(store):
    return run(store.select_all())


@pytest.fixture
def valid_values():
    """A complete, valid edit-form draft"""
    return {
        "name": "Test Vet",
        "street": "1 Jalan Test",
        "city": "Petaling Jaya",
        "state": "Selangor",
        "postcode": "47300",
        "phone": "+60 3-7877 1234",
        "email": "hello@testvet.my",
        "website": "https://testvet.my",
        "facebook_url": "",
        "instagram_url": "",
        "emergency": False,
        "emergency_hours": "",
        "emergency_details": "",
        "hours": dict(STANDARD_HOURS),
        "animals_treated": ["Dogs"],
        "specializations": [],
        "services_offered": ["Vaccination"],
    }


@pytest.fixture
def admin():
    return Identity.for_role("admin-1", "admin")


@pytest.fixture
def moderator():
    return Identity.for_role("mod-1", "moderator")


@pytest.fixture
def owner():
    return Identity.for_role("owner-1", "clinic_owner")


@pytest.fixture
def client():
    """TestClient over the app's module-level store, reset to seed data"""
    seed_data(main.store)
    yield TestClient(main.app)
    seed_data(main.store)


ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
MODERATOR_HEADERS = {"X-User-Id": "mod-1", "X-User-Role": "moderator"}
