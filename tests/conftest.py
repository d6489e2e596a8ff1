"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so that tests can import the
domain, repositories, services and api packages, and provides an in-memory
Supabase client so that no test touches the network.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.permissions import PermissionSet
from domain.user import UserProfile
from repositories.client import use_client
from tests.fakes import CASHIER_ID, OWNER_ID, FakeSupabase


@pytest.fixture
def fake_db():
    """Route every repository call to a fresh in-memory Supabase."""
    fake = FakeSupabase()
    use_client(fake)
    yield fake
    use_client(None)


@pytest.fixture
def owner() -> UserProfile:
    return UserProfile(
        id=OWNER_ID,
        email="owner@tokomaju.id",
        name="Budi",
        role="owner",
        tenant_id=OWNER_ID,
    )


@pytest.fixture
def cashier() -> UserProfile:
    """Cashier allowed to sell and apply discounts, nothing else."""
    stored = {"sales": True, "canApplyDiscount": True}
    return UserProfile(
        id=CASHIER_ID,
        email="kasir@tokomaju.id",
        name="Sari",
        role="cashier",
        tenant_id=OWNER_ID,
        permissions=PermissionSet.from_stored(stored),
        has_stored_permissions=True,
    )

