"""
Tests for ledger writes: transfers, sales and testing draws.
"""

from decimal import Decimal

import pytest
from django.utils import timezone

from fuelman import fuel, FuelError
from fuelman.models import (
    Activity,
    FuelLot,
    InternalTransfer,
    LoadType,
    MeterSource,
    SaleTransfer,
    StockStatus,
    TestingTransfer,
)
from fuelman.protocols import DriverInfo
from fuelman.services import balance, transfers


pytestmark = pytest.mark.django_db


class StaticDriverDirectory:
    """Knows exactly one driver."""

    def get_driver(self, driver_id):
        if driver_id == 7:
            return DriverInfo(driver_id=7, name='João Motorista')
        return None


class BrokenDriverDirectory:
    def get_driver(self, driver_id):
        raise RuntimeError('fleet system down')


@pytest.fixture
def two_lots(t1, today):
    """T1 with L1 (older, 1,000 L left) and L2 (4,000 L)."""
    l1 = fuel.create_lot(t1, today, Decimal('2000'))
    fuel.sell(t1, Decimal('1000'), to_vehicle='XYZ1234')
    l2 = fuel.create_lot(t1, today, Decimal('4000'))
    return l1, l2


class TestSell:
    """Tests for fuel.sell()."""

    def test_sell_then_oversell(self, t1, t1_lot):
        """5,000 L lot: sell 3,000 then 2,500 fails and writes nothing."""
        fuel.sell(t1, Decimal('3000'), to_vehicle='XYZ1234')

        t1_lot.refresh_from_db()
        assert fuel.remaining(t1_lot) == Decimal('2000')
        assert t1_lot.stock_status == StockStatus.INSTOCK

        with pytest.raises(FuelError) as exc:
            fuel.sell(t1, Decimal('2500'), to_vehicle='XYZ1234')

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('2000')
        assert exc.value.requested == Decimal('2500')
        assert SaleTransfer.objects.count() == 1
        assert fuel.remaining(t1_lot) == Decimal('2000')

    def test_sale_row(self, t1, t1_lot, today):
        sale = fuel.sell(t1, Decimal('3000'), to_vehicle=' XYZ1234 ', performed_by='ana')

        assert sale.lot == t1_lot
        assert sale.from_unit_code == '4T1'
        assert sale.to_vehicle == 'XYZ1234'
        assert sale.activity == Activity.TANKER_TO_VEHICLE
        assert sale.sale_date == today
        assert sale.lot_code_after == f"{t1_lot.lot_code_created}-3000"

    def test_selling_out_flips_to_sold(self, t1, t1_lot):
        fuel.sell(t1, Decimal('5000'), to_vehicle='XYZ1234')

        t1_lot.refresh_from_db()
        assert t1_lot.stock_status == StockStatus.SOLD
        assert t1_lot.used_liters == Decimal('5000')
        assert fuel.current_lot(t1) is None

    def test_sale_uses_current_lot_only(self, t1, two_lots):
        """Sales draw the newest lot and never spill into older ones."""
        l1, l2 = two_lots

        with pytest.raises(FuelError) as exc:
            fuel.sell(t1, Decimal('4500'), to_vehicle='XYZ1234')

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('4000')

        sale = fuel.sell(t1, Decimal('500'), to_vehicle='XYZ1234')
        assert sale.lot == l2
        assert fuel.remaining(l1) == Decimal('1000')

    def test_datum_sale_activity(self, d1, today):
        fuel.create_lot(d1, today, Decimal('3000'))

        sale = fuel.sell(d1, Decimal('100'), to_vehicle='XYZ1234')

        assert sale.activity == Activity.DATUM_TO_VEHICLE

    def test_activity_must_match_unit(self, t1, t1_lot):
        with pytest.raises(FuelError) as exc:
            fuel.sell(t1, Decimal('100'), to_vehicle='XYZ1234', activity=Activity.DATUM_TO_VEHICLE)

        assert exc.value.code == 'VALIDATION'

    def test_vehicle_required(self, t1, t1_lot):
        with pytest.raises(FuelError) as exc:
            fuel.sell(t1, Decimal('100'), to_vehicle='  ')

        assert exc.value.code == 'VALIDATION'

    @pytest.mark.parametrize('volume', [
        Decimal('0'), Decimal('-5'), 'abc', None, Decimal('0.0004'), Decimal('1000.0006'),
    ])
    def test_bad_volume(self, t1, t1_lot, volume):
        with pytest.raises(FuelError) as exc:
            fuel.sell(t1, volume, to_vehicle='XYZ1234')

        assert exc.value.code == 'VALIDATION'
        assert SaleTransfer.objects.count() == 0

    def test_millilitre_volume_stored_exactly(self, t1, t1_lot):
        sale = fuel.sell(t1, Decimal('12.3450'), to_vehicle='XYZ1234')

        sale.refresh_from_db()
        assert sale.sale_volume_liters == Decimal('12.345')
        assert sale.lot_code_after == f"{t1_lot.lot_code_created}-12.345"
        assert fuel.remaining(t1_lot) == Decimal('4987.655')

    def test_empty_unit(self, t1):
        with pytest.raises(FuelError) as exc:
            fuel.sell(t1, Decimal('1'), to_vehicle='XYZ1234')

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('0')


class TestTestDraw:
    """Tests for fuel.test_draw()."""

    def test_testing_is_net_zero(self, t1, t1_lot):
        row = fuel.test_draw(t1, Decimal('25'))

        t1_lot.refresh_from_db()
        assert isinstance(row, TestingTransfer)
        assert row.lot_code == f"{t1_lot.lot_code_created}-0"
        assert t1_lot.cumulative_testing_liters == Decimal('25')
        assert t1_lot.used_liters == Decimal('0')
        assert fuel.remaining(t1_lot) == Decimal('5000')

    def test_testing_limited_to_remaining(self, t1, t1_lot):
        with pytest.raises(FuelError) as exc:
            fuel.test_draw(t1, Decimal('5001'))

        assert exc.value.code == 'INSUFFICIENT_STOCK'


class TestTransfer:
    """Tests for fuel.transfer()."""

    def test_fifo_across_two_lots(self, opened, t1, d1, two_lots):
        """3,000 L from L1 (1,000 left) + L2: L1 empties, L2 keeps 2,000."""
        l1, l2 = two_lots

        result = fuel.transfer(t1, d1, Decimal('3000'))

        rows = list(InternalTransfer.objects.order_by('pk'))
        assert len(rows) == 2
        assert [r.from_lot_id for r in rows] == [l1.pk, l2.pk]
        assert [r.transfer_volume for r in rows] == [Decimal('1000'), Decimal('2000')]

        l1.refresh_from_db()
        l2.refresh_from_db()
        assert l1.stock_status == StockStatus.SOLD
        assert l2.stock_status == StockStatus.INSTOCK
        assert fuel.remaining(l1) == Decimal('0')
        assert fuel.remaining(l2) == Decimal('2000')
        assert result.transfers == rows
        assert result.volume == Decimal('3000')

    def test_after_codes_per_slice(self, opened, t1, d1, two_lots):
        l1, l2 = two_lots

        result = fuel.transfer(t1, d1, Decimal('3000'))
        first, second = result.transfers

        assert first.from_lot_code_after == f"{l1.lot_code_created}-2000"
        assert second.from_lot_code_after == f"{l2.lot_code_created}-2000"
        assert first.to_lot_code_after == f"{result.to_lot.lot_code_created}-0"

    def test_seeds_empty_destination(self, opened, t1, d1, t1_lot):
        """Transfer into an empty D1 founds a lot holding the full volume."""
        before = timezone.now()

        result = fuel.transfer(t1, d1, Decimal('5000'))

        seeded = result.to_lot
        assert result.seeded is True
        assert seeded.unit == d1
        assert seeded.loaded_liters == Decimal('5000')
        assert seeded.load_type == LoadType.EMPTY_TRANSFER
        assert seeded.load_time >= before
        assert seeded.lot_code_created.startswith('D1')
        assert all(row.transfer_to_empty for row in result.transfers)
        assert balance.inbound_added(seeded) == Decimal('0')
        assert fuel.remaining(seeded) == Decimal('5000')
        assert result.transfers[0].activity == Activity.TANKER_TO_DATUM

    def test_seeding_slices_all_flagged(self, opened, t1, d1, two_lots):
        """A seeding transfer spanning two source lots is not double-counted."""
        result = fuel.transfer(t1, d1, Decimal('3000'))

        assert result.seeded is True
        assert [r.transfer_to_empty for r in result.transfers] == [True, True]
        assert fuel.remaining(result.to_lot) == Decimal('3000')

    def test_existing_destination_lot_receives(self, opened, t1, t2, today, t1_lot):
        target = fuel.create_lot(t2, today, Decimal('1000'))

        result = fuel.transfer(t1, t2, Decimal('1500'))

        row = result.transfers[0]
        assert result.seeded is False
        assert result.to_lot == target
        assert row.transfer_to_empty is False
        assert row.activity == Activity.TANKER_TO_TANKER
        assert row.to_lot_code_after == f"{target.lot_code_created}-0+(1500)"
        assert fuel.remaining(target) == Decimal('2500')

    def test_capacity_exceeded_writes_nothing(self, opened, t1, d1, today, t1_lot):
        fuel.create_lot(d1, today, Decimal('7000'))

        with pytest.raises(FuelError) as exc:
            fuel.transfer(t1, d1, Decimal('1500'))

        assert exc.value.code == 'CAPACITY_EXCEEDED'
        assert InternalTransfer.objects.count() == 0
        assert FuelLot.objects.filter(unit=d1).count() == 1
        assert fuel.remaining(t1_lot) == Decimal('5000')

    def test_second_seed_into_empty_unit_respects_capacity(self, opened, t1, t2, d1, today):
        """Only the first of two transfers into empty D1 (8,000 L) can seed it."""
        fuel.create_lot(t1, today, Decimal('5000'))
        fuel.create_lot(t2, today, Decimal('5000'))
        fuel.transfer(t1, d1, Decimal('5000'))

        with pytest.raises(FuelError) as exc:
            fuel.transfer(t2, d1, Decimal('5000'))

        assert exc.value.code == 'CAPACITY_EXCEEDED'
        assert FuelLot.objects.filter(unit=d1).count() == 1
        assert fuel.unit_stock(d1) == Decimal('5000')

    def test_units_locked_before_lots(self, opened, t1, d1, t1_lot, monkeypatch):
        """An empty destination has no lots to lock; its unit row is the lock."""
        calls = []
        lock_units = transfers._lock_units
        lock_in_stock = transfers._lock_in_stock

        def spy_units(*units, **kwargs):
            locked = lock_units(*units, **kwargs)
            calls.append(('units', list(locked)))
            return locked

        def spy_lots(*units):
            calls.append(('lots', [unit.pk for unit in units]))
            return lock_in_stock(*units)

        monkeypatch.setattr(transfers, '_lock_units', spy_units)
        monkeypatch.setattr(transfers, '_lock_in_stock', spy_lots)

        fuel.transfer(t1, d1, Decimal('1000'))

        assert calls[0] == ('units', sorted([t1.pk, d1.pk]))
        assert calls[1][0] == 'lots'

    def test_sale_locks_unit(self, t1, t1_lot, monkeypatch):
        locked = []
        lock_units = transfers._lock_units

        def spy_units(*units, **kwargs):
            result = lock_units(*units, **kwargs)
            locked.extend(result)
            return result

        monkeypatch.setattr(transfers, '_lock_units', spy_units)

        fuel.sell(t1, Decimal('10'), to_vehicle='XYZ1234')
        fuel.test_draw(t1, Decimal('5'))

        assert locked == [t1.pk, t1.pk]

    def test_insufficient_source_writes_nothing(self, opened, t1, d1, two_lots):
        with pytest.raises(FuelError) as exc:
            fuel.transfer(t1, d1, Decimal('5001'))

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('5000')
        assert InternalTransfer.objects.count() == 0
        assert not FuelLot.objects.filter(unit=d1).exists()

    def test_opening_reading_required(self, t1, d1, t1_lot):
        with pytest.raises(FuelError) as exc:
            fuel.transfer(t1, d1, Decimal('100'))

        assert exc.value.code == 'OPENING_MISSING'
        assert InternalTransfer.objects.count() == 0

    def test_trip_opening_satisfies_precondition(self, t1, d1, today, t1_lot):
        fuel.start_trip(t1, today, 1, opening_reading=Decimal('1000'))

        result = fuel.transfer(t1, d1, Decimal('100'))

        assert len(result.transfers) == 1

    def test_opening_snapshot_satisfies_precondition(self, t1, d1, t1_lot):
        fuel.record_snapshot(t1, Decimal('1000'), source=MeterSource.OPENING)

        result = fuel.transfer(t1, d1, Decimal('100'))

        assert len(result.transfers) == 1

    def test_precondition_can_be_disabled(self, t1, d1, t1_lot, settings):
        settings.FUELMAN = {'REQUIRE_OPENING_READING': False}

        result = fuel.transfer(t1, d1, Decimal('100'))

        assert len(result.transfers) == 1

    def test_same_unit_rejected(self, opened, t1, t1_lot):
        with pytest.raises(FuelError) as exc:
            fuel.transfer(t1, t1, Decimal('100'))

        assert exc.value.code == 'VALIDATION'

    def test_datum_cannot_be_transfer_source(self, opened, t1, d1, today):
        fuel.create_lot(d1, today, Decimal('1000'))

        with pytest.raises(FuelError) as exc:
            fuel.transfer(d1, t1, Decimal('100'))

        assert exc.value.code == 'VALIDATION'

    def test_dispenser_is_not_a_destination(self, opened, t1, dispenser, t1_lot):
        with pytest.raises(FuelError) as exc:
            fuel.transfer(t1, dispenser, Decimal('100'))

        assert exc.value.code == 'VALIDATION'
        assert not FuelLot.objects.filter(unit=dispenser).exists()

    def test_outflow_counter_accumulates(self, opened, t1, d1, two_lots):
        first = fuel.transfer(t1, d1, Decimal('3000'))
        second = fuel.transfer(t1, d1, Decimal('500'))

        counters = [r.outflow_counter for r in first.transfers + second.transfers]
        assert counters == [Decimal('1000'), Decimal('3000'), Decimal('3500')]

    def test_driver_name_from_directory(self, opened, t1, d1, t1_lot, settings):
        settings.FUELMAN = {'DRIVER_DIRECTORY': f'{__name__}.StaticDriverDirectory'}

        known = fuel.transfer(t1, d1, Decimal('100'), driver_id=7)
        unknown = fuel.transfer(t1, d1, Decimal('100'), driver_id=8)

        assert known.transfers[0].driver_name == 'João Motorista'
        assert unknown.transfers[0].driver_id == 8
        assert unknown.transfers[0].driver_name == ''

    def test_driver_lookup_failure_does_not_block(self, t1, t1_lot, settings):
        settings.FUELMAN = {'DRIVER_DIRECTORY': f'{__name__}.BrokenDriverDirectory'}

        sale = fuel.sell(t1, Decimal('100'), to_vehicle='XYZ1234', driver_id=7)

        assert sale.driver_id == 7
        assert sale.driver_name == ''


class TestAllocate:
    """Tests for the shared allocator."""

    def test_plan_is_fifo(self, t1, two_lots):
        l1, l2 = two_lots

        plan = fuel.allocate(t1, Decimal('1500'))

        assert [(a.lot.pk, a.amount) for a in plan] == [(l1.pk, Decimal('1000')), (l2.pk, Decimal('500'))]

    def test_current_lot_only(self, t1, two_lots):
        _, l2 = two_lots

        plan = fuel.allocate(t1, Decimal('1500'), span_lots=False)

        assert [(a.lot.pk, a.amount) for a in plan] == [(l2.pk, Decimal('1500'))]

    def test_never_exceeds_available(self, t1, two_lots):
        with pytest.raises(FuelError) as exc:
            fuel.allocate(t1, Decimal('5000.001'))

        assert exc.value.code == 'INSUFFICIENT_STOCK'


class TestRecord:
    """Tests for activity dispatch."""

    def test_sale_activity(self, t1, t1_lot):
        row = fuel.record(Activity.TANKER_TO_VEHICLE, t1, Decimal('100'), to_vehicle='XYZ1234')

        assert isinstance(row, SaleTransfer)

    def test_testing_activity(self, t1, t1_lot):
        row = fuel.record(Activity.TESTING, t1, Decimal('5'))

        assert isinstance(row, TestingTransfer)

    def test_internal_activity(self, opened, t1, d1, t1_lot):
        result = fuel.record(Activity.TANKER_TO_DATUM, t1, Decimal('100'), to_unit=d1)

        assert result.transfers[0].to_unit == d1

    def test_internal_activity_needs_destination(self, opened, t1, t1_lot):
        with pytest.raises(FuelError) as exc:
            fuel.record(Activity.TANKER_TO_TANKER, t1, Decimal('100'))

        assert exc.value.code == 'VALIDATION'

    def test_unknown_activity(self, t1, t1_lot):
        with pytest.raises(FuelError) as exc:
            fuel.record('TELEPORT', t1, Decimal('100'))

        assert exc.value.code == 'VALIDATION'
