"""
Atomic counters for lot numbering and per-unit outflow.

Counters are bumped with a single UPDATE ... SET x = x + n statement, which
holds the row lock until the surrounding transaction commits. Always call
the bump helpers inside transaction.atomic().
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class LotSequence(models.Model):
    """Last sequence index handed out for (unit, load_date)."""

    unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.CASCADE,
        related_name='+',
    )
    load_date = models.DateField()
    last_index = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = _('Sequência de Lote')
        verbose_name_plural = _('Sequências de Lote')
        constraints = [
            models.UniqueConstraint(
                fields=['unit', 'load_date'],
                name='fuelman_lot_sequence_unique',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id}@{self.load_date}: {self.last_index}"


class UnitCounter(models.Model):
    """Per-unit monotonic counters."""

    unit = models.OneToOneField(
        'fuelman.StorageUnit',
        on_delete=models.CASCADE,
        related_name='+',
    )
    last_lot_seq = models.PositiveIntegerField(default=0)
    outflow_liters = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal('0'),
        help_text=_('Soma acumulada das transferências internas de saída'),
    )

    class Meta:
        verbose_name = _('Contador da Unidade')
        verbose_name_plural = _('Contadores das Unidades')

    def __str__(self) -> str:
        return f"{self.unit_id}: lot#{self.last_lot_seq} out={self.outflow_liters}"


def _bump(model, lookup: dict, field: str, by):
    counter, _ = model.objects.get_or_create(**lookup)
    model.objects.filter(pk=counter.pk).update(**{field: models.F(field) + by})
    counter.refresh_from_db(fields=[field])
    return getattr(counter, field)


def next_day_index(unit, load_date) -> int:
    """Allocate the next seq_index for (unit, load_date)."""
    return _bump(LotSequence, {'unit': unit, 'load_date': load_date}, 'last_index', 1)


def next_unit_seq(unit) -> int:
    """Allocate the next per-unit lot ordinal."""
    return _bump(UnitCounter, {'unit': unit}, 'last_lot_seq', 1)


def add_outflow(unit, liters: Decimal) -> Decimal:
    """Add liters to the unit's cumulative outflow and return the new total."""
    return _bump(UnitCounter, {'unit': unit}, 'outflow_liters', liters)


def peek_day_index(unit, load_date) -> int:
    """Next seq_index without allocating it (for previews)."""
    current = LotSequence.objects.filter(
        unit=unit, load_date=load_date
    ).values_list('last_index', flat=True).first()
    return (current or 0) + 1
