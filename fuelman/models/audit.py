"""
FuelOpsAudit model — who did what to the fuel ledger, and when.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from fuelman.models.enums import AuditAction


class FuelOpsAudit(models.Model):
    """
    Audit trail row for fuel operations.

    Written alongside ledger operations but never required for them:
    a failure here is logged and the ledger write proceeds.
    """

    event_ts = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Data/Hora'))
    action = models.CharField(max_length=10, choices=AuditAction.choices, verbose_name=_('Ação'))
    entity_type = models.CharField(
        max_length=30,
        verbose_name=_('Entidade'),
        help_text=_('lot | transfer | sale | testing | day_reading | trip | snapshot'),
    )
    entity_id = models.BigIntegerField(null=True, blank=True)
    unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Unidade'),
    )
    op_date = models.DateField(null=True, blank=True, verbose_name=_('Dia Operacional'))
    amount_liters = models.DecimalField(max_digits=12, decimal_places=3, null=True, blank=True)
    meter_reading = models.DecimalField(max_digits=14, decimal_places=3, null=True, blank=True)
    payload_old = models.JSONField(null=True, blank=True)
    payload_new = models.JSONField(null=True, blank=True)
    performed_by = models.CharField(max_length=150, blank=True, default='')
    reason = models.TextField(blank=True, default='')

    class Meta:
        verbose_name = _('Auditoria de Combustível')
        verbose_name_plural = _('Auditoria de Combustível')
        ordering = ['-event_ts']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id'], name='fuelman_fue_entity__idx'),
            models.Index(fields=['unit', 'op_date'], name='fuelman_fue_unit_id_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}#{self.entity_id}"
