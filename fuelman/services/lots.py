"""
Lot Registry — creation of purchase and seeded lots.

All methods use transaction.atomic(); sequence numbers come from atomic
counter rows (see fuelman.models.sequence).
"""

import logging
from datetime import date

from django.db import transaction

from fuelman import lotcodes
from fuelman.exceptions import FuelError
from fuelman.models.enums import LoadType, StockStatus
from fuelman.models.lot import FuelLot
from fuelman.models.sequence import next_day_index, next_unit_seq, peek_day_index
from fuelman.models.unit import StorageUnit
from fuelman.services import audit
from fuelman.services.validation import resolve_unit, to_liters

logger = logging.getLogger('fuelman')


class LotRegistry:
    """Lot creation methods."""

    @classmethod
    def create_lot(cls, unit, load_date: date, loaded_liters,
                   load_type=LoadType.PURCHASE, load_time=None,
                   performed_by: str = '') -> FuelLot:
        """
        Register a lot on a storage unit.

        Raises:
            FuelError('VALIDATION'): If loaded_liters <= 0
            FuelError('NOT_FOUND'): If the unit is unknown or inactive
            FuelError('CAPACITY_EXCEEDED'): If loaded_liters > unit capacity

        Concurrency:
            - Runs under transaction.atomic() with the unit row locked
            - seq_index and unit_seq are allocated by atomic UPDATEs,
              so concurrent creations never share a code
        """
        liters = to_liters(loaded_liters, field='loaded_liters')
        unit = resolve_unit(unit)

        with transaction.atomic():
            unit = StorageUnit.objects.select_for_update().get(pk=unit.pk)
            if liters > unit.capacity_liters:
                raise FuelError(
                    'CAPACITY_EXCEEDED',
                    unit=unit.code,
                    capacity=unit.capacity_liters,
                    requested=liters,
                )

            seq_index = next_day_index(unit, load_date)
            unit_seq = next_unit_seq(unit)

            lot = FuelLot.objects.create(
                unit=unit,
                unit_code=unit.code,
                unit_capacity=unit.capacity_liters,
                load_date=load_date,
                seq_index=seq_index,
                seq_letters=lotcodes.seq_to_letters(seq_index),
                unit_seq=unit_seq,
                lot_code_created=lotcodes.base_code(unit.code, load_date, seq_index),
                loaded_liters=liters,
                load_type=load_type,
                load_time=load_time,
                stock_status=StockStatus.INSTOCK,
                created_by=performed_by or '',
            )

            audit.record_create(
                lot,
                unit=unit,
                op_date=load_date,
                amount=liters,
                performed_by=performed_by,
            )
            logger.info(
                "fuel.lot.create",
                extra={
                    "lot_id": lot.pk,
                    "lot_code": lot.lot_code_created,
                    "unit": unit.code,
                    "liters": str(liters),
                    "load_type": str(load_type),
                },
            )
            return lot

    @classmethod
    def preview_next_code(cls, unit, load_date: date) -> str:
        """Code the next lot on (unit, load_date) would get. Allocates nothing."""
        unit = resolve_unit(unit)
        return lotcodes.base_code(unit.code, load_date, peek_day_index(unit, load_date))
