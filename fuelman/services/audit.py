"""
Fuel ops audit — append audit rows next to ledger operations.

Audit rows are a side effect: they run in their own savepoint and a
failure is logged, never raised.
"""

import logging
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.forms.models import model_to_dict

from fuelman.conf import fuelman_settings
from fuelman.models.audit import FuelOpsAudit
from fuelman.models.enums import AuditAction

logger = logging.getLogger('fuelman')

ENTITY_TYPES = {
    'fuellot': 'lot',
    'internaltransfer': 'transfer',
    'saletransfer': 'sale',
    'testingtransfer': 'testing',
    'dayreading': 'day_reading',
    'trip': 'trip',
    'metersnapshot': 'snapshot',
}


def payload(instance, fields=None) -> dict:
    """JSON-safe snapshot of a model instance."""
    data = model_to_dict(instance, fields=fields)
    data['id'] = instance.pk
    return {
        k: str(v) if isinstance(v, Decimal) or hasattr(v, 'isoformat') else v
        for k, v in data.items()
    }


def record_event(action, entity, *, unit=None, op_date=None, amount=None,
                 meter_reading=None, old=None, performed_by='', reason='') -> FuelOpsAudit | None:
    """
    Write one FuelOpsAudit row.

    Args:
        action: AuditAction
        entity: Model instance the event is about
        unit: StorageUnit the event belongs to
        old: Payload before the change (UPDATE only)

    Returns:
        The audit row, or None if auditing is disabled or the write failed
    """
    if not fuelman_settings.AUDIT_ENABLED:
        return None

    model_name = entity._meta.model_name
    entity_type = ENTITY_TYPES.get(model_name, model_name)
    try:
        with transaction.atomic():
            return FuelOpsAudit.objects.create(
                action=action,
                entity_type=entity_type,
                entity_id=entity.pk,
                unit=unit,
                op_date=op_date,
                amount_liters=amount,
                meter_reading=meter_reading,
                payload_old=old,
                payload_new=payload(entity),
                performed_by=performed_by or '',
                reason=reason,
            )
    except DatabaseError as exc:
        logger.warning(
            "fuel.audit.failed",
            extra={
                "action": str(action),
                "entity_type": entity_type,
                "entity_id": entity.pk,
                "error": str(exc),
            },
        )
        return None


def record_create(entity, **kwargs):
    return record_event(AuditAction.CREATE, entity, **kwargs)


def record_update(entity, old, **kwargs):
    return record_event(AuditAction.UPDATE, entity, old=old, **kwargs)
