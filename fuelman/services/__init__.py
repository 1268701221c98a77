"""
Fuel services — modular organization of ledger operations.

    from fuelman.services import LotRegistry, TransferEngine, ReconciliationEngine
"""

from fuelman.services.lots import LotRegistry
from fuelman.services.queries import FuelQueries
from fuelman.services.readings import FuelReadings
from fuelman.services.reconciliation import ReconciliationEngine
from fuelman.services.transfers import TransferEngine

__all__ = [
    'FuelQueries',
    'LotRegistry',
    'FuelReadings',
    'TransferEngine',
    'ReconciliationEngine',
]
