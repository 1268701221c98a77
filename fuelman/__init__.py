"""
Django Fuelman — Fuel inventory ledger.

Tracks purchase lots per storage unit (tankers, datum tanks, dispensers),
consumes them FIFO across internal transfers and sales, and reconciles the
ledger against dispenser meter readings.

Usage:
    from fuelman import fuel, FuelError

    lot = fuel.create_lot(t1, today, Decimal('5000'))
    fuel.sell(t1, Decimal('3000'), to_vehicle='ABC-1234')
    fuel.transfer(t1, d1, Decimal('1500'))
    fuel.reconcile(t1, day=today)
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'fuel':
        from fuelman.service import Fuel
        return Fuel
    elif name == 'FuelError':
        from fuelman.exceptions import FuelError
        return FuelError
    elif name == 'StorageUnit':
        from fuelman.models.unit import StorageUnit
        return StorageUnit
    elif name == 'FuelLot':
        from fuelman.models.lot import FuelLot
        return FuelLot
    elif name == 'InternalTransfer':
        from fuelman.models.transfer import InternalTransfer
        return InternalTransfer
    elif name == 'SaleTransfer':
        from fuelman.models.transfer import SaleTransfer
        return SaleTransfer
    elif name == 'TestingTransfer':
        from fuelman.models.transfer import TestingTransfer
        return TestingTransfer
    elif name == 'Activity':
        from fuelman.models.enums import Activity
        return Activity
    elif name == 'StockStatus':
        from fuelman.models.enums import StockStatus
        return StockStatus
    elif name == 'UnitType':
        from fuelman.models.enums import UnitType
        return UnitType
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'fuel',
    'FuelError',
    'StorageUnit',
    'FuelLot',
    'InternalTransfer',
    'SaleTransfer',
    'TestingTransfer',
    'Activity',
    'StockStatus',
    'UnitType',
]

__version__ = '0.1.0'
