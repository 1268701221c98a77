"""
Meter readings — ground truth for reconciliation.

- MeterSnapshot: any dispenser meter reading, tagged by source
- DayReading: operator-entered opening/closing for a unit and day
- Trip: opening/closing for one trip within a day
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from fuelman.models.enums import MeterSource


class MeterSnapshot(models.Model):
    """Point-in-time dispenser meter reading."""

    unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.PROTECT,
        related_name='meter_snapshots',
        verbose_name=_('Unidade'),
    )
    reading_at = models.DateTimeField(verbose_name=_('Data/Hora da Leitura'))
    reading_liters = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        verbose_name=_('Leitura (L)'),
    )
    source = models.CharField(
        max_length=10,
        choices=MeterSource.choices,
        default=MeterSource.SNAPSHOT,
        verbose_name=_('Origem'),
    )
    note = models.TextField(blank=True, default='', verbose_name=_('Observações'))
    created_by = models.CharField(max_length=150, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Leitura do Medidor')
        verbose_name_plural = _('Leituras do Medidor')
        ordering = ['unit', '-reading_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(reading_liters__gte=0),
                name='fuelman_snapshot_reading_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['unit', 'reading_at'], name='fuelman_met_unit_id_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id} @ {self.reading_at:%Y-%m-%d %H:%M}: {self.reading_liters}"


class DayReading(models.Model):
    """Opening and closing meter readings of a unit for one day."""

    unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.PROTECT,
        related_name='day_readings',
        verbose_name=_('Unidade'),
    )
    reading_date = models.DateField(verbose_name=_('Data'))
    opening_liters = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        verbose_name=_('Abertura (L)'),
    )
    closing_liters = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('Fechamento (L)'),
    )
    opening_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Hora da Abertura'))
    closing_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Hora do Fechamento'))
    driver_name = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Motorista'))
    note = models.TextField(blank=True, default='', verbose_name=_('Observações'))
    created_by = models.CharField(max_length=150, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Leitura Diária')
        verbose_name_plural = _('Leituras Diárias')
        ordering = ['unit', '-reading_date']
        constraints = [
            models.UniqueConstraint(
                fields=['unit', 'reading_date'],
                name='fuelman_day_reading_unique',
            ),
        ]

    @property
    def is_closed(self) -> bool:
        return self.closing_liters is not None

    def __str__(self) -> str:
        closing = self.closing_liters if self.is_closed else '…'
        return f"{self.unit_id} {self.reading_date}: {self.opening_liters} → {closing}"


class Trip(models.Model):
    """One trip of a unit within a day, with its own meter bounds."""

    unit = models.ForeignKey(
        'fuelman.StorageUnit',
        on_delete=models.PROTECT,
        related_name='trips',
        verbose_name=_('Unidade'),
    )
    trip_date = models.DateField(verbose_name=_('Data'))
    number = models.PositiveIntegerField(verbose_name=_('Número'))
    started_at = models.DateTimeField(verbose_name=_('Início'))
    ended_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Fim'))
    opening_reading = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('Leitura Inicial (L)'),
    )
    closing_reading = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('Leitura Final (L)'),
    )
    note = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Viagem')
        verbose_name_plural = _('Viagens')
        ordering = ['unit', '-trip_date', 'number']
        constraints = [
            models.UniqueConstraint(
                fields=['unit', 'trip_date', 'number'],
                name='fuelman_trip_unique',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.unit_id} {self.trip_date} #{self.number}"
