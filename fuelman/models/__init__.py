"""
Fuelman Models.

Core models for the fuel ledger:
- StorageUnit: Where fuel is held (tanker, fixed tank, dispenser)
- FuelLot: Purchase lot with cached counters
- InternalTransfer / SaleTransfer / TestingTransfer: The ledger
- MeterSnapshot / DayReading / Trip: Meter ground truth
- FuelOpsAudit: Audit trail
- LotSequence / UnitCounter: Atomic counters
"""

from fuelman.models.audit import FuelOpsAudit
from fuelman.models.enums import (
    Activity,
    AuditAction,
    LoadType,
    MeterSource,
    StockStatus,
    UnitType,
)
from fuelman.models.lot import FuelLot
from fuelman.models.readings import DayReading, MeterSnapshot, Trip
from fuelman.models.sequence import LotSequence, UnitCounter
from fuelman.models.transfer import InternalTransfer, SaleTransfer, TestingTransfer
from fuelman.models.unit import StorageUnit

__all__ = [
    'Activity',
    'AuditAction',
    'LoadType',
    'MeterSource',
    'StockStatus',
    'UnitType',
    'StorageUnit',
    'FuelLot',
    'LotSequence',
    'UnitCounter',
    'InternalTransfer',
    'SaleTransfer',
    'TestingTransfer',
    'MeterSnapshot',
    'DayReading',
    'Trip',
    'FuelOpsAudit',
]
