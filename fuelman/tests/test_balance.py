"""
Tests for ledger-derived balances.
"""

from decimal import Decimal

import pytest

from fuelman import fuel
from fuelman.models import FuelLot, StockStatus
from fuelman.services import balance


pytestmark = pytest.mark.django_db


class TestBalance:
    """Tests for balance derivation."""

    def test_fresh_lot(self, t1_lot):
        current = fuel.balance(t1_lot)

        assert current.loaded == Decimal('5000')
        assert current.inbound == Decimal('0')
        assert current.outbound == Decimal('0')
        assert current.testing == Decimal('0')
        assert current.remaining == Decimal('5000')
        assert current.stock_status == StockStatus.INSTOCK

    def test_sales_count_as_outbound(self, t1, t1_lot):
        fuel.sell(t1, Decimal('1200'), to_vehicle='XYZ1234')
        fuel.sell(t1, Decimal('300'), to_vehicle='XYZ1234')

        assert balance.outbound_used(t1_lot) == Decimal('1500')
        assert fuel.remaining(t1_lot) == Decimal('3500')

    def test_testing_never_touches_stock(self, t1, t1_lot):
        fuel.test_draw(t1, Decimal('20'))

        current = fuel.balance(t1_lot)
        assert current.testing == Decimal('20')
        assert current.remaining == Decimal('5000')

    def test_inbound_adds_to_remaining(self, opened, t1, t2, today):
        source = fuel.create_lot(t1, today, Decimal('4000'))
        target = fuel.create_lot(t2, today, Decimal('1000'))

        fuel.transfer(t1, t2, Decimal('1500'))

        assert balance.inbound_added(target) == Decimal('1500')
        assert fuel.remaining(target) == Decimal('2500')
        assert fuel.remaining(source) == Decimal('2500')

    def test_remaining_ignores_cached_counters(self, t1, t1_lot):
        """Corrupting the cache does not change the live balance."""
        fuel.sell(t1, Decimal('1000'), to_vehicle='XYZ1234')
        FuelLot.objects.filter(pk=t1_lot.pk).update(
            used_liters=Decimal('4999'), stock_status=StockStatus.SOLD,
        )

        assert fuel.remaining(t1_lot) == Decimal('4000')

    def test_bulk_matches_single(self, opened, t1, t2, today):
        """balances() agrees with balance() lot by lot."""
        a = fuel.create_lot(t1, today, Decimal('1000'))
        b = fuel.create_lot(t1, today, Decimal('3000'))
        c = fuel.create_lot(t2, today, Decimal('500'))
        fuel.transfer(t1, t2, Decimal('1800'))
        fuel.sell(t2, Decimal('200'), to_vehicle='XYZ1234')
        fuel.test_draw(t1, Decimal('10'))

        bulk = balance.balances([a.pk, b.pk, c.pk])

        for lot in (a, b, c):
            assert bulk[lot.pk] == balance.balance(lot)

    def test_net_is_unclamped(self):
        current = balance.LotBalance(
            lot_id=1,
            loaded=Decimal('100'),
            inbound=Decimal('0'),
            outbound=Decimal('150'),
            testing=Decimal('0'),
        )

        assert current.net == Decimal('-50')
        assert current.remaining == Decimal('0')
        assert current.stock_status == StockStatus.SOLD


class TestRecalculate:
    """Tests for cache rebuild."""

    def test_clean_lot_reports_no_drift(self, t1, t1_lot):
        fuel.sell(t1, Decimal('1000'), to_vehicle='XYZ1234')

        assert fuel.recalculate(t1_lot) is False

    def test_drift_is_repaired(self, t1, t1_lot):
        fuel.sell(t1, Decimal('1000'), to_vehicle='XYZ1234')
        FuelLot.objects.filter(pk=t1_lot.pk).update(used_liters=Decimal('7'))

        assert fuel.recalculate(t1_lot) is True

        t1_lot.refresh_from_db()
        assert t1_lot.used_liters == Decimal('1000')
        assert t1_lot.stock_status == StockStatus.INSTOCK
