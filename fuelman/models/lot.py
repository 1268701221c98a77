"""
FuelLot model — a discrete quantity of fuel received into a storage unit.

A lot is created by a purchase (explicit) or by the first transfer into an
empty tank (seeded). It is never deleted; once consumed it flips to SOLD and
newer lots on the same unit take over.

Usage:
    lot = fuel.create_lot(t1, date.today(), Decimal('5000'))
    lot.lot_code_created      # '4T105MAR26A'
    fuel.remaining(lot)       # live, derived from the ledger
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from fuelman.models.enums import LoadType, StockStatus


class FuelLotQuerySet(models.QuerySet):
    """Custom QuerySet for FuelLot with convenience filters."""

    def in_stock(self):
        return self.filter(stock_status=StockStatus.INSTOCK)

    def for_unit(self, unit):
        return self.filter(unit=unit)

    def fifo(self):
        """Oldest first, by the per-unit ordinal (not by timestamps)."""
        return self.order_by('unit_seq')

    def newest_first(self):
        return self.order_by('-unit_seq')


class FuelLot(models.Model):
    """
    Purchase lot tracked independently for FIFO consumption and audit.

    Cached fields:
    - used_liters, cumulative_testing_liters and stock_status are a
      materialized view of the ledger, refreshed by the Balance Calculator
      inside the same transaction that appends ledger rows
    - Never read them for multi-lot math; use fuelman.services.balance
    """

    unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.PROTECT,
        related_name='lots',
        verbose_name=_('Unidade'),
    )

    # Snapshot of the unit at creation
    unit_code = models.CharField(max_length=20, verbose_name=_('Código da Unidade'))
    unit_capacity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Capacidade da Unidade (L)'),
    )

    # Identity
    load_date = models.DateField(db_index=True, verbose_name=_('Data de Carga'))
    seq_index = models.PositiveIntegerField(verbose_name=_('Sequência do Dia'))
    seq_letters = models.CharField(max_length=10, verbose_name=_('Letras da Sequência'))
    unit_seq = models.PositiveIntegerField(
        verbose_name=_('Ordem na Unidade'),
        help_text=_('Ordinal monotônico por unidade. Define FIFO e o lote atual.'),
    )
    lot_code_created = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Código do Lote'),
    )

    loaded_liters = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Volume Carregado (L)'),
    )
    load_type = models.CharField(
        max_length=20,
        choices=LoadType.choices,
        default=LoadType.PURCHASE,
        verbose_name=_('Tipo de Carga'),
    )
    load_time = models.DateTimeField(null=True, blank=True, verbose_name=_('Hora da Carga'))

    # Cache (refreshed from the ledger)
    used_liters = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Volume Usado (L)'),
    )
    cumulative_testing_liters = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Volume em Testes (L)'),
    )
    stock_status = models.CharField(
        max_length=10,
        choices=StockStatus.choices,
        default=StockStatus.INSTOCK,
        db_index=True,
        verbose_name=_('Situação'),
    )

    created_by = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Criado por'))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_('Criado em'))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('Atualizado em'))

    objects = FuelLotQuerySet.as_manager()

    class Meta:
        verbose_name = _('Lote de Combustível')
        verbose_name_plural = _('Lotes de Combustível')
        ordering = ['unit', 'unit_seq']
        constraints = [
            models.UniqueConstraint(
                fields=['unit', 'load_date', 'seq_index'],
                name='fuelman_lot_unique_per_unit_day_seq',
            ),
            models.UniqueConstraint(
                fields=['unit', 'unit_seq'],
                name='fuelman_lot_unique_unit_seq',
            ),
            models.CheckConstraint(
                condition=models.Q(loaded_liters__gt=0),
                name='fuelman_lot_loaded_positive',
            ),
            models.CheckConstraint(
                condition=models.Q(used_liters__gte=0),
                name='fuelman_lot_used_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['unit', 'stock_status', 'unit_seq'], name='fuelman_fue_unit_st_idx'),
        ]

    @property
    def is_in_stock(self) -> bool:
        return self.stock_status == StockStatus.INSTOCK

    def delete(self, *args, **kwargs):
        """Prevent deletion — lots are part of the ledger."""
        raise ValueError(
            "Lotes não podem ser excluídos. "
            "Lotes esgotados permanecem como histórico."
        )

    def __str__(self) -> str:
        return f"{self.lot_code_created} [{self.stock_status}]"
