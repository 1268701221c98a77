"""
Input normalization shared by the ledger services.
"""

from decimal import Decimal, InvalidOperation

from fuelman.exceptions import FuelError
from fuelman.models.lot import FuelLot
from fuelman.models.unit import StorageUnit

# Precision of every liters column
MILLILITRE = Decimal('0.001')


def to_liters(value, field: str = 'volume', allow_zero: bool = False) -> Decimal:
    """
    Coerce a volume/reading to Decimal liters.

    Volumes are stored with millilitre precision; finer values are
    rejected rather than rounded.

    Raises:
        FuelError('VALIDATION'): If missing, not numeric, negative, finer
            than 0.001, or zero when allow_zero is False
    """
    if value is None or isinstance(value, bool):
        raise FuelError('VALIDATION', field=field, value=value)
    try:
        liters = Decimal(str(value))
    except InvalidOperation as exc:
        raise FuelError('VALIDATION', field=field, value=value) from exc
    if not liters.is_finite():
        raise FuelError('VALIDATION', field=field, value=value)
    if liters != liters.quantize(MILLILITRE):
        raise FuelError('VALIDATION', field=field, value=value, reason='precision')
    if liters < 0 or (liters == 0 and not allow_zero):
        raise FuelError('VALIDATION', field=field, value=liters)
    return liters


def resolve_unit(unit, require_active: bool = True) -> StorageUnit:
    """
    Accept a StorageUnit, its pk, or its code.

    Raises:
        FuelError('NOT_FOUND'): If unknown (or inactive when require_active)
    """
    if isinstance(unit, StorageUnit):
        found = unit
    else:
        lookup = {'code': unit} if isinstance(unit, str) else {'pk': unit}
        try:
            found = StorageUnit.objects.get(**lookup)
        except (StorageUnit.DoesNotExist, ValueError, TypeError):
            raise FuelError('NOT_FOUND', entity='storage_unit', unit=unit)
    if require_active and not found.active:
        raise FuelError('NOT_FOUND', entity='storage_unit', unit=found.code, active=False)
    return found


def resolve_lot(lot) -> FuelLot:
    """
    Accept a FuelLot or its pk.

    Raises:
        FuelError('NOT_FOUND'): If unknown
    """
    pk = lot.pk if isinstance(lot, FuelLot) else lot
    try:
        return FuelLot.objects.select_related('unit').get(pk=pk)
    except (FuelLot.DoesNotExist, ValueError, TypeError):
        raise FuelError('NOT_FOUND', entity='fuel_lot', lot=pk)
