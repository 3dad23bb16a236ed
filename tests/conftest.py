"""
Shared fixtures for the analytics core tests.

Usage:
    pytest tests/              # runs all tests
    pytest tests/ -k pricing   # runs only pricing tests
"""

import sys
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path so tests can import core/ and api/
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from core.data import DATA_DIR, load_pricing  # noqa: E402
from core.mock_data import generate_customers, generate_orders  # noqa: E402
from core.models import Customer, ExtraPhotoYearPrice, Order, PackageYearPrice, PricingTable  # noqa: E402


@pytest.fixture
def make_order():
    """Factory for Orders with sensible defaults; `session_days` books a session that many days later."""
    counter = {"n": 0}

    def _make(created, *, session_days=None, session_at=None, year=None, package="Mamãe Coruja",
              total=196.0, entry=98.0, method="pix", status=None, customer_id="c1"):
        counter["n"] += 1
        if isinstance(created, str):
            created = datetime.fromisoformat(created)
        elif isinstance(created, date) and not isinstance(created, datetime):
            created = datetime(created.year, created.month, created.day, 10, 0)
        if session_days is not None:
            session_at = created + timedelta(days=session_days)
        return Order(
            id=f"o{counter['n']}",
            year=year if year is not None else created.year,
            customer_id=customer_id,
            created_at=created,
            session_at=session_at,
            package_name=package,
            entry_amount=entry,
            total_amount=total,
            entry_payment_method=method,
            status=status or ("photographed" if session_at else "reserved"),
        )

    return _make


@pytest.fixture(scope="session")
def customers():
    return generate_customers()


@pytest.fixture(scope="session")
def synthetic_orders(customers):
    return generate_orders(customers)


@pytest.fixture(scope="session")
def pricing_table():
    """The bundled pricing fixture."""
    return load_pricing(DATA_DIR / "pricing.json")


@pytest.fixture
def small_pricing():
    return PricingTable(
        packages={
            "A": [
                PackageYearPrice(year=2025, total=120, entry=50, installments_count=2, installment_value=35),
                PackageYearPrice(year=2024, total=100, entry=50, installments_count=1, installment_value=50),
            ],
        },
        extra_photo=[ExtraPhotoYearPrice(year=2024, unit_price=10), ExtraPhotoYearPrice(year=2025, unit_price=12)],
    )


@pytest.fixture
def sample_customers():
    return [
        Customer(id="c1", name="Ana Silva", contact_handle="(21) 98000-1000", email="ana@email.com", tags=("VIP",)),
        Customer(id="c2", name="Bruna Costa", contact_handle="(21) 98001-1007"),
        Customer(id="c3", name="Clara Lima", contact_handle="(21) 98002-1014", tags=("voltou_2025",)),
    ]
