"""
Transfer Engine — every operation that writes the fuel ledger.

- allocate(): the one lot allocator (FIFO across lots, or current lot only)
- transfer(): unit-to-unit, FIFO, seeds empty destinations
- sell(): unit to customer vehicle, current lot only
- test_draw(): testing through the meter, net-zero on stock
- correct_transfer(): admin correction of an internal transfer

All methods use transaction.atomic() with select_for_update() on every lot
they touch. Lots are locked in primary-key order.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal

from django.db import OperationalError, transaction
from django.utils import timezone

from fuelman.adapters.drivers import driver_label
from fuelman.conf import fuelman_settings
from fuelman.exceptions import FuelError
from fuelman.lotcodes import after_code
from fuelman.models.enums import (
    INTERNAL_ACTIVITIES,
    SALE_ACTIVITIES,
    Activity,
    LoadType,
    StockStatus,
    UnitType,
)
from fuelman.models.lot import FuelLot
from fuelman.models.sequence import add_outflow
from fuelman.models.transfer import InternalTransfer, SaleTransfer, TestingTransfer
from fuelman.models.unit import StorageUnit
from fuelman.services import audit, balance
from fuelman.services.balance import ZERO, LotBalance
from fuelman.services.lots import LotRegistry
from fuelman.services.readings import FuelReadings
from fuelman.services.validation import resolve_lot, resolve_unit, to_liters

logger = logging.getLogger('fuelman')

# Unit type each activity draws from / delivers to
SOURCE_TYPES = {
    Activity.TANKER_TO_TANKER: UnitType.TRUCK,
    Activity.TANKER_TO_DATUM: UnitType.TRUCK,
    Activity.TANKER_TO_VEHICLE: UnitType.TRUCK,
    Activity.DATUM_TO_VEHICLE: UnitType.DATUM,
}
DESTINATION_TYPES = {
    Activity.TANKER_TO_TANKER: UnitType.TRUCK,
    Activity.TANKER_TO_DATUM: UnitType.DATUM,
}


@dataclass(frozen=True)
class Allocation:
    """Volume taken from one lot, with the lot's balance before the draw."""

    lot: FuelLot
    amount: Decimal
    before: LotBalance


@dataclass(frozen=True)
class TransferResult:
    """Outcome of an internal transfer."""

    transfers: list
    to_lot: FuelLot
    seeded: bool
    volume: Decimal


def _internal_activity(source, destination, activity):
    if activity is None:
        activity = (
            Activity.TANKER_TO_DATUM if destination.unit_type == UnitType.DATUM
            else Activity.TANKER_TO_TANKER
        )
    if activity not in INTERNAL_ACTIVITIES:
        raise FuelError('VALIDATION', field='activity', value=activity)
    if source.pk == destination.pk:
        raise FuelError('VALIDATION', field='to_unit', reason='same_unit', unit=source.code)
    if source.unit_type != SOURCE_TYPES[activity]:
        raise FuelError('VALIDATION', field='from_unit', activity=activity, unit_type=source.unit_type)
    if destination.unit_type != DESTINATION_TYPES[activity]:
        raise FuelError('VALIDATION', field='to_unit', activity=activity, unit_type=destination.unit_type)
    return Activity(activity)


def _sale_activity(unit, activity):
    if activity is None:
        activity = (
            Activity.DATUM_TO_VEHICLE if unit.unit_type == UnitType.DATUM
            else Activity.TANKER_TO_VEHICLE
        )
    if activity not in SALE_ACTIVITIES:
        raise FuelError('VALIDATION', field='activity', value=activity)
    if unit.unit_type != SOURCE_TYPES[activity]:
        raise FuelError('VALIDATION', field='from_unit', activity=activity, unit_type=unit.unit_type)
    return Activity(activity)


def _lock_units(*units, nowait: bool = False) -> dict[int, StorageUnit]:
    """
    Lock storage units (instances or pks) in pk order.

    Every ledger write takes its units' locks before touching lots, so
    writers into an empty unit are serialized too.
    """
    ids = {unit.pk if isinstance(unit, StorageUnit) else unit for unit in units}
    locked = StorageUnit.objects.select_for_update(nowait=nowait).filter(pk__in=ids).order_by('pk')
    return {unit.pk: unit for unit in locked}


def _lock_in_stock(*units) -> list[FuelLot]:
    """Lock the INSTOCK lots of the given units, in pk order."""
    return list(
        FuelLot.objects.select_for_update()
        .filter(unit__in=[u.pk for u in units], stock_status=StockStatus.INSTOCK)
        .order_by('pk')
    )


class TransferEngine:
    """Ledger-writing operations."""

    # ══════════════════════════════════════════════════════════════
    # ALLOCATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def allocate(cls, unit, volume: Decimal, span_lots: bool = True) -> list[Allocation]:
        """
        Decide which lots a draw of `volume` comes from.

        span_lots=True:  oldest INSTOCK lot first, spilling into newer ones
        span_lots=False: the current lot (newest INSTOCK) only

        Remaining volumes are computed live from the ledger; cached lot
        counters are not consulted.

        Raises:
            FuelError('INSUFFICIENT_STOCK'): If the volume does not fit

        Concurrency:
            - Call inside transaction.atomic()
            - Locks the unit's INSTOCK lots with select_for_update()
        """
        lots = list(
            FuelLot.objects.select_for_update()
            .filter(unit=unit, stock_status=StockStatus.INSTOCK)
            .order_by('unit_seq')
        )
        if not span_lots:
            lots = lots[-1:]

        live = balance.balances(lot.pk for lot in lots)
        available = sum((live[lot.pk].remaining for lot in lots), ZERO)

        if volume > available:
            raise FuelError(
                'INSUFFICIENT_STOCK',
                unit=unit.code,
                available=available,
                requested=volume,
            )

        plan = []
        left = volume
        for lot in lots:
            if left <= 0:
                break
            take = min(live[lot.pk].remaining, left)
            if take > 0:
                plan.append(Allocation(lot=lot, amount=take, before=live[lot.pk]))
                left -= take
        return plan

    # ══════════════════════════════════════════════════════════════
    # INTERNAL TRANSFERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def transfer(cls, from_unit, to_unit, volume, activity=None, driver_id=None,
                 performed_at=None, trip=None, performed_by: str = '') -> TransferResult:
        """
        Move fuel between storage units.

        1. Validates units, activity and the source's opening reading
        2. Checks destination capacity against its live stock
        3. Allocates FIFO across the source's lots
        4. Uses the destination's current lot, or seeds a new one
           (EMPTY_TRANSFER) when the destination is empty
        5. Writes one InternalTransfer per source lot and refreshes caches

        Raises:
            FuelError('VALIDATION'): Bad volume, activity or unit types
            FuelError('NOT_FOUND'): Unknown or inactive unit
            FuelError('OPENING_MISSING'): No opening reading for the day
            FuelError('CAPACITY_EXCEEDED'): Destination would overflow
            FuelError('INSUFFICIENT_STOCK'): Source does not hold the volume

        Concurrency:
            - Runs under transaction.atomic()
            - Locks both units, then their INSTOCK lots (pk order), so an
              empty destination is serialized as well
            - Nothing is written unless every check passes
        """
        liters = to_liters(volume)
        source = resolve_unit(from_unit)
        destination = resolve_unit(to_unit)
        activity = _internal_activity(source, destination, activity)
        performed_at = performed_at or timezone.now()
        transfer_date = timezone.localdate(performed_at)

        if fuelman_settings.REQUIRE_OPENING_READING and not FuelReadings.has_opening(source, transfer_date):
            raise FuelError('OPENING_MISSING', unit=source.code, date=str(transfer_date))

        driver_name = driver_label(driver_id)

        with transaction.atomic():
            units = _lock_units(source, destination)
            source, destination = units[source.pk], units[destination.pk]
            locked = _lock_in_stock(source, destination)

            dest_lots = sorted(
                (lot for lot in locked if lot.unit_id == destination.pk),
                key=lambda lot: lot.unit_seq,
            )
            dest_live = balance.balances(lot.pk for lot in dest_lots)
            dest_stock = sum((b.remaining for b in dest_live.values()), ZERO)
            if dest_stock + liters > destination.capacity_liters:
                raise FuelError(
                    'CAPACITY_EXCEEDED',
                    unit=destination.code,
                    capacity=destination.capacity_liters,
                    current=dest_stock,
                    requested=liters,
                )

            plan = cls.allocate(source, liters)

            seeded = not dest_lots
            if seeded:
                if not destination.can_receive_seeded_lot:
                    raise FuelError('VALIDATION', field='to_unit', reason='no_lot', unit=destination.code)
                to_lot = LotRegistry.create_lot(
                    destination,
                    transfer_date,
                    liters,
                    load_type=LoadType.EMPTY_TRANSFER,
                    load_time=performed_at,
                    performed_by=performed_by,
                )
                to_balance = LotBalance(
                    lot_id=to_lot.pk, loaded=to_lot.loaded_liters,
                    inbound=ZERO, outbound=ZERO, testing=ZERO,
                )
            else:
                to_lot = dest_lots[-1]
                to_balance = dest_live[to_lot.pk]

            rows = []
            for allocation in plan:
                from_after = replace(allocation.before, outbound=allocation.before.outbound + allocation.amount)
                if not seeded:
                    to_balance = replace(to_balance, inbound=to_balance.inbound + allocation.amount)

                row = InternalTransfer.objects.create(
                    from_lot=allocation.lot,
                    to_lot=to_lot,
                    from_unit=source,
                    to_unit=destination,
                    from_unit_code=source.code,
                    to_unit_code=destination.code,
                    transfer_volume=allocation.amount,
                    from_lot_code_after=after_code(
                        allocation.lot.lot_code_created, from_after.outbound, from_after.inbound,
                    ),
                    to_lot_code_after=after_code(
                        to_lot.lot_code_created, to_balance.outbound, to_balance.inbound,
                    ),
                    transfer_to_empty=seeded,
                    activity=activity,
                    transfer_date=transfer_date,
                    outflow_counter=add_outflow(source, allocation.amount),
                    driver_id=driver_id,
                    driver_name=driver_name,
                    trip=trip,
                    performed_by=performed_by,
                    performed_at=performed_at,
                )
                balance.refresh(allocation.lot)
                audit.record_create(
                    row,
                    unit=source,
                    op_date=transfer_date,
                    amount=allocation.amount,
                    performed_by=performed_by,
                )
                rows.append(row)

            balance.refresh(to_lot)

            logger.info(
                "fuel.transfer",
                extra={
                    "from_unit": source.code,
                    "to_unit": destination.code,
                    "liters": str(liters),
                    "slices": len(rows),
                    "seeded": seeded,
                    "to_lot": to_lot.lot_code_created,
                },
            )
            return TransferResult(transfers=rows, to_lot=to_lot, seeded=seeded, volume=liters)

    # ══════════════════════════════════════════════════════════════
    # SALES AND TESTING
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def sell(cls, from_unit, volume, to_vehicle: str, activity=None, driver_id=None,
             performed_at=None, trip=None, performed_by: str = '') -> SaleTransfer:
        """
        Sell fuel from a unit's current lot into a vehicle.

        Raises:
            FuelError('VALIDATION'): Bad volume, vehicle or activity
            FuelError('NOT_FOUND'): Unknown or inactive unit
            FuelError('INSUFFICIENT_STOCK'): Volume > current lot remaining

        Concurrency:
            - Runs under transaction.atomic()
            - Locks the unit, then its INSTOCK lots; verifies remaining after lock
        """
        liters = to_liters(volume)
        unit = resolve_unit(from_unit)
        if not to_vehicle or not str(to_vehicle).strip():
            raise FuelError('VALIDATION', field='to_vehicle', value=to_vehicle)
        activity = _sale_activity(unit, activity)
        performed_at = performed_at or timezone.now()
        driver_name = driver_label(driver_id)

        with transaction.atomic():
            unit = _lock_units(unit)[unit.pk]
            [allocation] = cls.allocate(unit, liters, span_lots=False)
            lot = allocation.lot
            before = allocation.before

            sale = SaleTransfer.objects.create(
                lot=lot,
                from_unit=unit,
                from_unit_code=unit.code,
                to_vehicle=str(to_vehicle).strip(),
                sale_volume_liters=liters,
                lot_code_after=after_code(lot.lot_code_created, before.outbound + liters, before.inbound),
                activity=activity,
                sale_date=timezone.localdate(performed_at),
                driver_id=driver_id,
                driver_name=driver_name,
                trip=trip,
                performed_by=performed_by,
                performed_at=performed_at,
            )
            balance.refresh(lot)
            audit.record_create(
                sale,
                unit=unit,
                op_date=sale.sale_date,
                amount=liters,
                performed_by=performed_by,
            )
            logger.info(
                "fuel.sale",
                extra={
                    "unit": unit.code,
                    "lot": lot.lot_code_created,
                    "liters": str(liters),
                    "vehicle": sale.to_vehicle,
                },
            )
            return sale

    @classmethod
    def test_draw(cls, from_unit, volume, to_vehicle: str = '', driver_id=None,
                  performed_at=None, trip=None, performed_by: str = '') -> TestingTransfer:
        """
        Record a testing draw on a unit's current lot.

        Only cumulative_testing_liters moves; sellable stock is unchanged.

        Raises:
            FuelError('VALIDATION'): If volume <= 0
            FuelError('INSUFFICIENT_STOCK'): Volume > current lot remaining
        """
        liters = to_liters(volume)
        unit = resolve_unit(from_unit)
        performed_at = performed_at or timezone.now()
        driver_name = driver_label(driver_id)

        with transaction.atomic():
            unit = _lock_units(unit)[unit.pk]
            [allocation] = cls.allocate(unit, liters, span_lots=False)
            lot = allocation.lot

            row = TestingTransfer.objects.create(
                lot=lot,
                from_unit=unit,
                from_unit_code=unit.code,
                to_vehicle=to_vehicle or '',
                transfer_volume_liters=liters,
                lot_code=balance.snapshot(lot, allocation.before),
                test_date=timezone.localdate(performed_at),
                driver_id=driver_id,
                driver_name=driver_name,
                trip=trip,
                performed_by=performed_by,
                performed_at=performed_at,
            )
            balance.refresh(lot)
            audit.record_create(
                row,
                unit=unit,
                op_date=row.test_date,
                amount=liters,
                performed_by=performed_by,
            )
            logger.info(
                "fuel.testing",
                extra={"unit": unit.code, "lot": lot.lot_code_created, "liters": str(liters)},
            )
            return row

    @classmethod
    def record(cls, activity, from_unit, volume, to_unit=None, to_vehicle: str = '', **kwargs):
        """
        Dispatch an operation by activity.

        TANKER_TO_TANKER / TANKER_TO_DATUM → transfer()
        TANKER_TO_VEHICLE / DATUM_TO_VEHICLE → sell()
        TESTING → test_draw()
        """
        if activity in INTERNAL_ACTIVITIES:
            if to_unit is None:
                raise FuelError('VALIDATION', field='to_unit', value=None)
            return cls.transfer(from_unit, to_unit, volume, activity=activity, **kwargs)
        if activity in SALE_ACTIVITIES:
            return cls.sell(from_unit, volume, to_vehicle, activity=activity, **kwargs)
        if activity == Activity.TESTING:
            return cls.test_draw(from_unit, volume, to_vehicle=to_vehicle, **kwargs)
        raise FuelError('VALIDATION', field='activity', value=activity)

    # ══════════════════════════════════════════════════════════════
    # ADMIN CORRECTION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def correct_transfer(cls, transfer, from_lot=None, to_lot=None, volume=None,
                         updated_by: str = '', reason: str = '') -> InternalTransfer:
        """
        Rewrite an internal transfer's lots and/or volume.

        The only operation allowed to move historical lot pointers.
        Every touched lot is re-validated and its cache recomputed; the
        row's code snapshots are rebuilt from the new balances.

        Raises:
            FuelError('NOT_FOUND'): Unknown transfer or lot
            FuelError('VALIDATION'): Same unit on both sides, bad volume,
                wrong unit types, or a volume or destination change on a
                seeding row
            FuelError('INSUFFICIENT_STOCK'): A touched lot would go negative
            FuelError('CAPACITY_EXCEEDED'): Destination unit would overflow
            FuelError('CONCURRENT_CONFLICT'): Rows locked by another operation

        Concurrency:
            - Runs under transaction.atomic()
            - select_for_update(nowait=CORRECTION_LOCK_NOWAIT) on the row, then
              every old/new unit, then every old/new lot, each in pk order
        """
        nowait = fuelman_settings.CORRECTION_LOCK_NOWAIT
        transfer_pk = transfer.pk if isinstance(transfer, InternalTransfer) else transfer
        new_volume = to_liters(volume) if volume is not None else None

        try:
            with transaction.atomic():
                try:
                    row = InternalTransfer.objects.select_for_update(nowait=nowait).get(pk=transfer_pk)
                except InternalTransfer.DoesNotExist:
                    raise FuelError('NOT_FOUND', entity='internal_transfer', transfer=transfer_pk)

                moved = {
                    side: resolve_lot(lot)
                    for side, lot in (('from', from_lot), ('to', to_lot))
                    if lot is not None
                }
                new_from_id = moved['from'].pk if 'from' in moved else row.from_lot_id
                new_to_id = moved['to'].pk if 'to' in moved else row.to_lot_id
                _lock_units(
                    row.from_unit_id, row.to_unit_id,
                    *(lot.unit_id for lot in moved.values()),
                    nowait=nowait,
                )
                touched = sorted({row.from_lot_id, row.to_lot_id, new_from_id, new_to_id})
                lots = {
                    lot.pk: lot
                    for lot in FuelLot.objects.select_for_update(nowait=nowait)
                    .select_related('unit')
                    .filter(pk__in=touched)
                    .order_by('pk')
                }
                new_from = lots[new_from_id]
                new_to = lots[new_to_id]

                activity = row.activity
                if activity != Activity.TESTING:
                    activity = _internal_activity(new_from.unit, new_to.unit, None)
                elif new_from.unit_id == new_to.unit_id:
                    raise FuelError('VALIDATION', field='to_lot', reason='same_unit')

                if row.transfer_to_empty and new_volume is not None and new_volume != row.transfer_volume:
                    raise FuelError('VALIDATION', field='volume', reason='seed_volume_fixed', transfer=row.pk)
                if row.transfer_to_empty and new_to.pk != row.to_lot_id:
                    raise FuelError('VALIDATION', field='to_lot', reason='seed_lot_fixed', transfer=row.pk)

                old = audit.payload(row)
                row.from_lot = new_from
                row.to_lot = new_to
                row.from_unit = new_from.unit
                row.to_unit = new_to.unit
                row.from_unit_code = new_from.unit.code
                row.to_unit_code = new_to.unit.code
                row.activity = activity
                if new_volume is not None:
                    row.transfer_volume = new_volume
                row.updated_by = updated_by or ''
                row.save()

                live = {lot.pk: balance.balance(lot) for lot in lots.values()}
                for lot_id, current in live.items():
                    if current.net < 0:
                        raise FuelError(
                            'INSUFFICIENT_STOCK',
                            lot=lots[lot_id].lot_code_created,
                            available=current.loaded + current.inbound,
                            requested=current.outbound,
                        )

                destination = new_to.unit
                dest_ids = set(
                    FuelLot.objects.filter(unit=destination, stock_status=StockStatus.INSTOCK)
                    .values_list('pk', flat=True)
                ) | {new_to.pk}
                dest_stock = sum((b.remaining for b in balance.balances(dest_ids).values()), ZERO)
                if dest_stock > destination.capacity_liters:
                    raise FuelError(
                        'CAPACITY_EXCEEDED',
                        unit=destination.code,
                        capacity=destination.capacity_liters,
                        current=dest_stock,
                    )

                row.from_lot_code_after = balance.snapshot(new_from, live[new_from.pk])
                row.to_lot_code_after = balance.snapshot(new_to, live[new_to.pk])
                row.save(update_fields=['from_lot_code_after', 'to_lot_code_after', 'updated_at'])

                for lot in lots.values():
                    balance.refresh(lot)

                audit.record_update(
                    row, old,
                    unit=row.from_unit,
                    op_date=row.transfer_date,
                    amount=row.transfer_volume,
                    performed_by=updated_by,
                    reason=reason,
                )
                logger.info(
                    "fuel.transfer.corrected",
                    extra={
                        "transfer_id": row.pk,
                        "from_lot": new_from.lot_code_created,
                        "to_lot": new_to.lot_code_created,
                        "liters": str(row.transfer_volume),
                        "updated_by": updated_by,
                    },
                )
                return row
        except OperationalError as exc:
            logger.warning(
                "fuel.transfer.correction_conflict",
                extra={"transfer_id": transfer_pk, "error": str(exc)},
            )
            raise FuelError('CONCURRENT_CONFLICT', transfer=transfer_pk) from exc
