"""
Fuel Service — The single public interface for all ledger operations.

Usage:
    from fuelman import fuel, FuelError

    lot = fuel.create_lot(t1, today, Decimal('5000'))
    fuel.sell(t1, Decimal('3000'), to_vehicle='ABC1234')
    fuel.remaining(lot)                 # Decimal('2000')
    fuel.transfer(t1, d1, Decimal('1500'))
    fuel.reconcile(t1, day=today).classification
"""

from datetime import date
from decimal import Decimal

from fuelman.models.lot import FuelLot
from fuelman.services import balance
from fuelman.services.balance import LotBalance
from fuelman.services.lots import LotRegistry
from fuelman.services.queries import FuelQueries
from fuelman.services.readings import FuelReadings
from fuelman.services.reconciliation import ReconciliationEngine
from fuelman.services.transfers import TransferEngine
from fuelman.services.validation import resolve_lot


class Fuel:
    """
    Single interface for all fuel ledger operations.

    Parameter convention: (unit, volume, ...) for ledger writes.
    Units are accepted as StorageUnit, pk or code; lots as FuelLot or pk.

    IMPORTANT: All state-changing methods use atomic transactions
    with appropriate locking. See each delegate's docstring.
    """

    # ══════════════════════════════════════════════════════════════
    # BALANCES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def balance(cls, lot) -> LotBalance:
        """Ledger-derived inbound/outbound/testing/remaining of a lot."""
        return balance.balance(resolve_lot(lot))

    @classmethod
    def remaining(cls, lot) -> Decimal:
        """Live remaining liters of a lot."""
        return balance.remaining(resolve_lot(lot))

    @classmethod
    def recalculate(cls, lot) -> bool:
        """Rebuild a lot's cached counters. True if they had drifted."""
        lot = resolve_lot(lot)
        return balance.recalculate(lot)

    # ══════════════════════════════════════════════════════════════
    # LOTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create_lot(cls, unit, load_date: date, loaded_liters, **kwargs) -> FuelLot:
        return LotRegistry.create_lot(unit, load_date, loaded_liters, **kwargs)

    @classmethod
    def preview_next_code(cls, unit, load_date: date) -> str:
        return LotRegistry.preview_next_code(unit, load_date)

    # ══════════════════════════════════════════════════════════════
    # LEDGER WRITES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def transfer(cls, from_unit, to_unit, volume, **kwargs):
        return TransferEngine.transfer(from_unit, to_unit, volume, **kwargs)

    @classmethod
    def sell(cls, from_unit, volume, to_vehicle: str, **kwargs):
        return TransferEngine.sell(from_unit, volume, to_vehicle, **kwargs)

    @classmethod
    def test_draw(cls, from_unit, volume, **kwargs):
        return TransferEngine.test_draw(from_unit, volume, **kwargs)

    @classmethod
    def record(cls, activity, from_unit, volume, **kwargs):
        """Dispatch a ledger write by activity. See TransferEngine.record."""
        return TransferEngine.record(activity, from_unit, volume, **kwargs)

    @classmethod
    def allocate(cls, unit, volume, span_lots: bool = True):
        """Dry FIFO plan. Must run inside transaction.atomic()."""
        return TransferEngine.allocate(unit, volume, span_lots=span_lots)

    @classmethod
    def correct_transfer(cls, transfer, **kwargs):
        return TransferEngine.correct_transfer(transfer, **kwargs)

    # ══════════════════════════════════════════════════════════════
    # READINGS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def record_day_opening(cls, unit, reading_date: date, opening_liters, **kwargs):
        return FuelReadings.record_day_opening(unit, reading_date, opening_liters, **kwargs)

    @classmethod
    def record_day_closing(cls, unit, reading_date: date, closing_liters, **kwargs):
        return FuelReadings.record_day_closing(unit, reading_date, closing_liters, **kwargs)

    @classmethod
    def start_trip(cls, unit, trip_date: date, number: int, **kwargs):
        return FuelReadings.start_trip(unit, trip_date, number, **kwargs)

    @classmethod
    def end_trip(cls, trip, **kwargs):
        return FuelReadings.end_trip(trip, **kwargs)

    @classmethod
    def record_snapshot(cls, unit, reading_liters, **kwargs):
        return FuelReadings.record_snapshot(unit, reading_liters, **kwargs)

    # ══════════════════════════════════════════════════════════════
    # RECONCILIATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def reconcile(cls, unit, *, day=None, trip=None, start=None, end=None):
        return ReconciliationEngine.reconcile(unit, day=day, trip=trip, start=start, end=end)

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def current_lot(cls, unit) -> FuelLot | None:
        return FuelQueries.current_lot(unit)

    @classmethod
    def list_lots(cls, unit=None, in_stock_only: bool = True):
        return FuelQueries.list_lots(unit, in_stock_only=in_stock_only)

    @classmethod
    def unit_stock(cls, unit) -> Decimal:
        return FuelQueries.unit_stock(unit)

    @classmethod
    def stock_summary(cls):
        return FuelQueries.stock_summary()
