"""
Fuel queries — read-only operations.

All methods are classmethod on FuelQueries and use no locking.
"""

from dataclasses import dataclass
from decimal import Decimal

from django.db.models import Count, Q

from fuelman.models.enums import StockStatus
from fuelman.models.lot import FuelLot
from fuelman.models.unit import StorageUnit
from fuelman.services import balance
from fuelman.services.balance import ZERO
from fuelman.services.validation import resolve_unit


@dataclass(frozen=True)
class UnitStock:
    """Live stock position of one storage unit."""

    code: str
    unit_type: str
    capacity: Decimal
    remaining: Decimal
    lot_count: int

    @property
    def free_capacity(self) -> Decimal:
        return max(ZERO, self.capacity - self.remaining)

    def as_dict(self) -> dict:
        return {
            'code': self.code,
            'unit_type': self.unit_type,
            'capacity': str(self.capacity),
            'remaining': str(self.remaining),
            'free_capacity': str(self.free_capacity),
            'lot_count': self.lot_count,
        }


def _live_remaining(lot_ids) -> Decimal:
    return sum((b.remaining for b in balance.balances(lot_ids).values()), ZERO)


class FuelQueries:
    """Read-only fuel query methods."""

    @classmethod
    def current_lot(cls, unit) -> FuelLot | None:
        """Newest INSTOCK lot of the unit, or None when the unit is empty."""
        unit = resolve_unit(unit, require_active=False)
        return FuelLot.objects.for_unit(unit).in_stock().newest_first().first()

    @classmethod
    def list_lots(cls, unit=None, in_stock_only: bool = True):
        """List lots, oldest first within each unit."""
        qs = FuelLot.objects.select_related('unit')
        if unit is not None:
            qs = qs.for_unit(resolve_unit(unit, require_active=False))
        if in_stock_only:
            qs = qs.in_stock()
        return qs.order_by('unit__code', 'unit_seq')

    @classmethod
    def unit_stock(cls, unit) -> Decimal:
        """Σ live remaining of the unit's INSTOCK lots."""
        unit = resolve_unit(unit, require_active=False)
        ids = FuelLot.objects.for_unit(unit).in_stock().values_list('pk', flat=True)
        return _live_remaining(ids)

    @classmethod
    def stock_summary(cls) -> list[UnitStock]:
        """One UnitStock per active unit, ordered by code."""
        units = StorageUnit.objects.active().annotate(
            in_stock_lots=Count('lots', filter=Q(lots__stock_status=StockStatus.INSTOCK)),
        ).order_by('code')

        in_stock = FuelLot.objects.in_stock().filter(unit__active=True).values_list('pk', 'unit_id')
        by_unit: dict[int, list[int]] = {}
        for lot_id, unit_id in in_stock:
            by_unit.setdefault(unit_id, []).append(lot_id)
        live = balance.balances(lot_id for ids in by_unit.values() for lot_id in ids)

        summary = []
        for unit in units:
            remaining = sum((live[pk].remaining for pk in by_unit.get(unit.pk, [])), ZERO)
            summary.append(UnitStock(
                code=unit.code,
                unit_type=unit.unit_type,
                capacity=unit.capacity_liters,
                remaining=remaining,
                lot_count=unit.in_stock_lots,
            ))
        return summary
