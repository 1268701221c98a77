"""
Ledger rows — internal transfers, sales and testing draws.

These three tables are the source of truth for lot balances. Lot counters
are derived from them (see fuelman.services.balance).

Rules:
- NEVER delete a ledger row
- Only the admin correction path may change lot pointers or volumes
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from fuelman.models.enums import Activity


class _LedgerRow(models.Model):
    """Attribution fields shared by every ledger row."""

    driver_id = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('ID do Motorista'))
    driver_name = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Motorista'))
    trip = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Viagem'))
    performed_by = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Realizado por'))
    performed_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Data/Hora'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    def delete(self, *args, **kwargs):
        """Prevent deletion — ledger rows are permanent."""
        raise ValueError(
            "Lançamentos do livro de combustível não podem ser excluídos. "
            "Use a correção administrativa."
        )


class InternalTransfer(_LedgerRow):
    """
    One slice of a unit-to-unit transfer.

    A transfer that spans several source lots (FIFO) writes one row per
    source lot. ``transfer_to_empty`` marks the rows that founded the
    destination lot; they are excluded from the destination's inbound sum.
    """

    from_lot = models.ForeignKey(
        'fuelman.FuelLot',
        on_delete=models.PROTECT,
        related_name='outbound_transfers',
        verbose_name=_('Lote de Origem'),
    )
    to_lot = models.ForeignKey(
        'fuelman.FuelLot',
        on_delete=models.PROTECT,
        related_name='inbound_transfers',
        verbose_name=_('Lote de Destino'),
    )
    from_unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.PROTECT,
        related_name='outbound_transfers',
        verbose_name=_('Unidade de Origem'),
    )
    to_unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.PROTECT,
        related_name='inbound_transfers',
        verbose_name=_('Unidade de Destino'),
    )
    from_unit_code = models.CharField(max_length=20)
    to_unit_code = models.CharField(max_length=20)

    transfer_volume = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Volume (L)'),
    )
    from_lot_code_after = models.CharField(max_length=80, verbose_name=_('Lote de Origem (após)'))
    to_lot_code_after = models.CharField(max_length=80, verbose_name=_('Lote de Destino (após)'))
    transfer_to_empty = models.BooleanField(
        default=False,
        verbose_name=_('Transferência para vazio'),
        help_text=_('Linha que originou o lote de destino.'),
    )
    activity = models.CharField(max_length=20, choices=Activity.choices, verbose_name=_('Atividade'))
    transfer_date = models.DateField(db_index=True, verbose_name=_('Data'))
    outflow_counter = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        verbose_name=_('Saída acumulada (L)'),
        help_text=_('Soma acumulada das saídas internas da unidade de origem.'),
    )

    updated_by = models.CharField(max_length=150, blank=True, default='')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Transferência Interna')
        verbose_name_plural = _('Transferências Internas')
        ordering = ['performed_at', 'pk']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(transfer_volume__gt=0),
                name='fuelman_internal_volume_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['from_unit', 'performed_at'], name='fuelman_int_from_un_idx'),
            models.Index(fields=['to_lot', 'transfer_to_empty'], name='fuelman_int_to_lot_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.from_unit_code} → {self.to_unit_code}: {self.transfer_volume} L"


class SaleTransfer(_LedgerRow):
    """Fuel dispensed from a storage unit into a customer vehicle."""

    lot = models.ForeignKey(
        'fuelman.FuelLot',
        on_delete=models.PROTECT,
        related_name='sales',
        verbose_name=_('Lote'),
    )
    from_unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.PROTECT,
        related_name='sales',
        verbose_name=_('Unidade de Origem'),
    )
    from_unit_code = models.CharField(max_length=20)
    to_vehicle = models.CharField(max_length=50, verbose_name=_('Veículo'))
    sale_volume_liters = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Volume (L)'),
    )
    lot_code_after = models.CharField(max_length=80, verbose_name=_('Lote (após)'))
    activity = models.CharField(max_length=20, choices=Activity.choices, verbose_name=_('Atividade'))
    sale_date = models.DateField(db_index=True, verbose_name=_('Data'))

    class Meta:
        verbose_name = _('Venda')
        verbose_name_plural = _('Vendas')
        ordering = ['performed_at', 'pk']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(sale_volume_liters__gt=0),
                name='fuelman_sale_volume_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['from_unit', 'performed_at'], name='fuelman_sal_from_un_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.from_unit_code} → {self.to_vehicle}: {self.sale_volume_liters} L"


class TestingTransfer(_LedgerRow):
    """
    Testing draw: fuel pumped through the meter and returned to the tank.

    Does not change sellable stock; counted in meter reconciliation.
    """

    # Keep pytest from collecting this model as a test class
    __test__ = False

    lot = models.ForeignKey(
        'fuelman.FuelLot',
        on_delete=models.PROTECT,
        related_name='testing_draws',
        verbose_name=_('Lote'),
    )
    from_unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.PROTECT,
        related_name='testing_draws',
        verbose_name=_('Unidade'),
    )
    from_unit_code = models.CharField(max_length=20)
    to_vehicle = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Veículo'))
    transfer_volume_liters = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Volume (L)'),
    )
    lot_code = models.CharField(max_length=80, verbose_name=_('Lote'))
    test_date = models.DateField(db_index=True, verbose_name=_('Data'))

    class Meta:
        verbose_name = _('Teste')
        verbose_name_plural = _('Testes')
        ordering = ['performed_at', 'pk']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(transfer_volume_liters__gt=0),
                name='fuelman_testing_volume_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['from_unit', 'performed_at'], name='fuelman_tes_from_un_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.from_unit_code} teste: {self.transfer_volume_liters} L"
