"""
Pytest fixtures for Fuelman tests.
"""

from decimal import Decimal

import pytest
from django.utils import timezone

from fuelman import fuel
from fuelman.adapters import reset_driver_directory
from fuelman.models import StorageUnit, UnitType


@pytest.fixture(autouse=True)
def _fresh_driver_directory():
    """Drop the cached driver directory between tests."""
    reset_driver_directory()
    yield
    reset_driver_directory()


@pytest.fixture
def today():
    """Return today's operational date."""
    return timezone.localdate()


@pytest.fixture
def t1(db):
    """Tanker truck, 10,000 L."""
    return StorageUnit.objects.create(
        code='4T1',
        unit_type=UnitType.TRUCK,
        capacity_liters=Decimal('10000'),
        vehicle_number='ABC1D23',
    )


@pytest.fixture
def t2(db):
    """Second tanker truck, 10,000 L."""
    return StorageUnit.objects.create(
        code='4T2',
        unit_type=UnitType.TRUCK,
        capacity_liters=Decimal('10000'),
    )


@pytest.fixture
def d1(db):
    """Fixed datum tank, 8,000 L."""
    return StorageUnit.objects.create(
        code='D1',
        unit_type=UnitType.DATUM,
        capacity_liters=Decimal('8000'),
    )


@pytest.fixture
def dispenser(db):
    """Dispensing pump, never seeded."""
    return StorageUnit.objects.create(
        code='P1',
        unit_type=UnitType.DISPENSER,
        capacity_liters=Decimal('500'),
    )


@pytest.fixture
def opened(t1, t2, d1, today):
    """Day log opened for every unit that can be a transfer source."""
    for unit in (t1, t2, d1):
        fuel.record_day_opening(unit, today, Decimal('0'))
    return today


@pytest.fixture
def t1_lot(t1, today):
    """One 5,000 L purchase lot on T1."""
    return fuel.create_lot(t1, today, Decimal('5000'))
