"""
Tests for lot creation.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from fuelman import fuel, FuelError, lotcodes
from fuelman.models import FuelLot, FuelOpsAudit, LoadType, StockStatus


pytestmark = pytest.mark.django_db


class TestCreateLot:
    """Tests for fuel.create_lot()."""

    def test_create_purchase_lot(self, t1, today):
        """A purchase lot starts INSTOCK with nothing used."""
        lot = fuel.create_lot(t1, today, Decimal('5000'))

        assert lot.unit == t1
        assert lot.unit_code == '4T1'
        assert lot.unit_capacity == Decimal('10000')
        assert lot.loaded_liters == Decimal('5000')
        assert lot.load_type == LoadType.PURCHASE
        assert lot.stock_status == StockStatus.INSTOCK
        assert lot.used_liters == Decimal('0')
        assert lot.seq_index == 1
        assert lot.seq_letters == 'A'
        assert lot.unit_seq == 1

    def test_code_follows_grammar(self, t1, today):
        """Code is unit + DDMONYY + letters."""
        lot = fuel.create_lot(t1, today, Decimal('1000'))
        month = lotcodes.MONTHS[today.month - 1]

        assert lot.lot_code_created == f"4T1{today:%d}{month}{today:%y}A"

    def test_sequence_per_unit_and_day(self, t1, t2, today):
        """Each (unit, day) counts its own lots; unit_seq never resets."""
        a = fuel.create_lot(t1, today, Decimal('1000'))
        b = fuel.create_lot(t1, today, Decimal('1000'))
        other = fuel.create_lot(t2, today, Decimal('1000'))
        tomorrow = fuel.create_lot(t1, today + timedelta(days=1), Decimal('1000'))

        assert (a.seq_letters, b.seq_letters, other.seq_letters) == ('A', 'B', 'A')
        assert tomorrow.seq_letters == 'A'
        assert [a.unit_seq, b.unit_seq, tomorrow.unit_seq] == [1, 2, 3]
        assert other.unit_seq == 1

    def test_codes_unique(self, t1, today):
        """Twenty-eight lots on one day all get distinct codes."""
        codes = {fuel.create_lot(t1, today, Decimal('10')).lot_code_created for _ in range(28)}

        assert len(codes) == 28
        assert any(code.endswith('AB') for code in codes)

    def test_accepts_unit_code(self, t1, today):
        """Units may be passed by code."""
        lot = fuel.create_lot('4T1', today, Decimal('100'))

        assert lot.unit_id == t1.pk

    def test_zero_volume_rejected(self, t1, today):
        with pytest.raises(FuelError) as exc:
            fuel.create_lot(t1, today, Decimal('0'))

        assert exc.value.code == 'VALIDATION'
        assert FuelLot.objects.count() == 0

    def test_over_capacity_rejected(self, t1, today):
        """A lot bigger than its unit cannot exist."""
        with pytest.raises(FuelError) as exc:
            fuel.create_lot(t1, today, Decimal('10001'))

        assert exc.value.code == 'CAPACITY_EXCEEDED'
        assert FuelLot.objects.count() == 0

    def test_unknown_unit(self, db, today):
        with pytest.raises(FuelError) as exc:
            fuel.create_lot('NOPE', today, Decimal('100'))

        assert exc.value.code == 'NOT_FOUND'

    def test_inactive_unit(self, t1, today):
        t1.active = False
        t1.save()

        with pytest.raises(FuelError) as exc:
            fuel.create_lot(t1, today, Decimal('100'))

        assert exc.value.code == 'NOT_FOUND'

    def test_create_writes_audit_row(self, t1, today):
        lot = fuel.create_lot(t1, today, Decimal('5000'), performed_by='ana')

        row = FuelOpsAudit.objects.get(entity_type='lot', entity_id=lot.pk)
        assert row.action == 'CREATE'
        assert row.amount_liters == Decimal('5000')
        assert row.performed_by == 'ana'
        assert row.payload_new['lot_code_created'] == lot.lot_code_created

    def test_audit_disabled(self, t1, today, settings):
        settings.FUELMAN = {'AUDIT_ENABLED': False}

        fuel.create_lot(t1, today, Decimal('5000'))

        assert FuelOpsAudit.objects.count() == 0

    def test_lots_cannot_be_deleted(self, t1_lot):
        with pytest.raises(ValueError):
            t1_lot.delete()


class TestPreviewNextCode:
    """Tests for fuel.preview_next_code()."""

    def test_preview_does_not_allocate(self, t1, today):
        first = fuel.preview_next_code(t1, today)
        again = fuel.preview_next_code(t1, today)
        lot = fuel.create_lot(t1, today, Decimal('100'))

        assert first == again == lot.lot_code_created
        assert fuel.preview_next_code(t1, today).endswith('B')
