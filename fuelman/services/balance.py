"""
Balance Calculator — lot balances derived from the ledger.

    inbound  = Σ internal transfers into the lot   (seeding rows and TESTING excluded)
    outbound = Σ sales + Σ internal transfers out  (TESTING excluded)
    testing  = Σ testing draws                     (never touches stock)
    remaining = max(0, loaded + inbound - outbound)

Every function here reads the ledger tables only. The cached counters on
FuelLot are written by refresh() and never read back.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db.models import DecimalField, OuterRef, Subquery, Sum, Value
from django.db.models.functions import Coalesce

from fuelman.lotcodes import after_code
from fuelman.models.enums import Activity, StockStatus
from fuelman.models.lot import FuelLot
from fuelman.models.transfer import InternalTransfer, SaleTransfer, TestingTransfer

logger = logging.getLogger('fuelman')

ZERO = Decimal('0')
_LITERS = DecimalField(max_digits=14, decimal_places=3)


@dataclass(frozen=True)
class LotBalance:
    """Ledger-derived state of one lot."""

    lot_id: int
    loaded: Decimal
    inbound: Decimal
    outbound: Decimal
    testing: Decimal

    @property
    def net(self) -> Decimal:
        """Unclamped loaded + inbound - outbound. Negative means overdrawn."""
        return self.loaded + self.inbound - self.outbound

    @property
    def remaining(self) -> Decimal:
        return max(ZERO, self.net)

    @property
    def stock_status(self) -> str:
        return StockStatus.INSTOCK if self.remaining > 0 else StockStatus.SOLD


def sum_liters(qs, field: str) -> Decimal:
    """Σ field over qs, zero when empty."""
    return qs.aggregate(t=Coalesce(Sum(field), Value(ZERO), output_field=_LITERS))['t']


def _inbound_rows(lot_filter):
    return InternalTransfer.objects.filter(
        transfer_to_empty=False, **lot_filter
    ).exclude(activity=Activity.TESTING)


def _outbound_rows(lot_filter):
    return InternalTransfer.objects.filter(**lot_filter).exclude(activity=Activity.TESTING)


def inbound_added(lot: FuelLot) -> Decimal:
    """Liters added to the lot by transfers after it was created."""
    return sum_liters(_inbound_rows({'to_lot': lot}), 'transfer_volume')


def outbound_used(lot: FuelLot) -> Decimal:
    """Liters drawn from the lot by sales and internal transfers."""
    sold = sum_liters(SaleTransfer.objects.filter(lot=lot), 'sale_volume_liters')
    moved = sum_liters(_outbound_rows({'from_lot': lot}), 'transfer_volume')
    return sold + moved


def testing_drawn(lot: FuelLot) -> Decimal:
    """Liters pumped through the meter for testing."""
    return sum_liters(TestingTransfer.objects.filter(lot=lot), 'transfer_volume_liters')


def balance(lot: FuelLot) -> LotBalance:
    """Full ledger-derived balance of a single lot."""
    return LotBalance(
        lot_id=lot.pk,
        loaded=lot.loaded_liters,
        inbound=inbound_added(lot),
        outbound=outbound_used(lot),
        testing=testing_drawn(lot),
    )


def remaining(lot: FuelLot) -> Decimal:
    """Live remaining volume of a lot."""
    return balance(lot).remaining


def _sum_subquery(qs, lot_field: str, volume_field: str):
    totals = (
        qs.filter(**{lot_field: OuterRef('pk')})
        .order_by()
        .values(lot_field)
        .annotate(total=Sum(volume_field))
        .values('total')
    )
    return Coalesce(Subquery(totals, output_field=_LITERS), Value(ZERO), output_field=_LITERS)


def annotate_balances(queryset):
    """
    Annotate a FuelLot queryset with ledger sums in one query.

    Adds _inbound, _sold, _moved and _testing. Do not combine with
    select_for_update(); lock rows first, then read balances.
    """
    return queryset.annotate(
        _inbound=_sum_subquery(
            InternalTransfer.objects.filter(transfer_to_empty=False).exclude(activity=Activity.TESTING),
            'to_lot', 'transfer_volume',
        ),
        _moved=_sum_subquery(
            InternalTransfer.objects.exclude(activity=Activity.TESTING),
            'from_lot', 'transfer_volume',
        ),
        _sold=_sum_subquery(SaleTransfer.objects.all(), 'lot', 'sale_volume_liters'),
        _testing=_sum_subquery(TestingTransfer.objects.all(), 'lot', 'transfer_volume_liters'),
    )


def balances(lot_ids) -> dict[int, LotBalance]:
    """Balances for many lots, keyed by lot id."""
    rows = annotate_balances(FuelLot.objects.filter(pk__in=list(lot_ids))).values(
        'pk', 'loaded_liters', '_inbound', '_sold', '_moved', '_testing',
    )
    return {
        row['pk']: LotBalance(
            lot_id=row['pk'],
            loaded=row['loaded_liters'],
            inbound=row['_inbound'],
            outbound=row['_sold'] + row['_moved'],
            testing=row['_testing'],
        )
        for row in rows
    }


def snapshot(lot: FuelLot, current: LotBalance | None = None) -> str:
    """After-code of a lot from its live balance."""
    current = current or balance(lot)
    return after_code(lot.lot_code_created, current.outbound, current.inbound)


def refresh(lot: FuelLot) -> LotBalance:
    """
    Write the ledger-derived counters back to the lot cache.

    Call inside the transaction that appended ledger rows.

    Returns:
        The balance that was written
    """
    current = balance(lot)
    changed = (
        lot.used_liters != current.outbound
        or lot.cumulative_testing_liters != current.testing
        or lot.stock_status != current.stock_status
    )
    if changed:
        lot.used_liters = current.outbound
        lot.cumulative_testing_liters = current.testing
        lot.stock_status = current.stock_status
        lot.save(update_fields=['used_liters', 'cumulative_testing_liters', 'stock_status', 'updated_at'])
    return current


def recalculate(lot: FuelLot) -> bool:
    """
    Rebuild a lot's cache and report drift.

    Use for:
    - Integrity audit
    - Correction after detected inconsistency

    Returns:
        True if the cache disagreed with the ledger
    """
    old = (lot.used_liters, lot.cumulative_testing_liters, lot.stock_status)
    current = refresh(lot)
    new = (current.outbound, current.testing, current.stock_status)
    if old != new:
        logger.warning(
            "fuel.lot.recalculated",
            extra={
                "lot_id": lot.pk,
                "lot_code": lot.lot_code_created,
                "old": [str(v) for v in old],
                "new": [str(v) for v in new],
            },
        )
        return True
    return False
