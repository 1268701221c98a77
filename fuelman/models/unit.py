"""
StorageUnit model — Where fuel is held.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from fuelman.models.enums import UnitType


class StorageUnitQuerySet(models.QuerySet):
    """Custom QuerySet for StorageUnit."""

    def active(self):
        return self.filter(active=True)

    def of_type(self, *unit_types):
        return self.filter(unit_type__in=unit_types)


class StorageUnit(models.Model):
    """
    Tanker, fixed tank or dispenser.

    Storage units are registered by fleet management; the ledger only
    reads them. ``code`` is embedded in every lot code, so it should be
    short and uppercase (ex: 4T1, D1).

    Examples:
        StorageUnit.objects.create(code='4T1', unit_type=UnitType.TRUCK, capacity_liters=10000)
        StorageUnit.objects.create(code='D1', unit_type=UnitType.DATUM, capacity_liters=8000)
    """

    code = models.CharField(
        unique=True,
        max_length=20,
        verbose_name=_('Código'),
        help_text=_('Código curto usado nos códigos de lote (ex: 4T1)'),
    )
    unit_type = models.CharField(
        max_length=20,
        choices=UnitType.choices,
        verbose_name=_('Tipo'),
    )
    capacity_liters = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Capacidade (L)'),
    )
    active = models.BooleanField(default=True, verbose_name=_('Ativo'))
    vehicle_number = models.CharField(
        max_length=30,
        null=True,
        blank=True,
        unique=True,
        verbose_name=_('Placa'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StorageUnitQuerySet.as_manager()

    class Meta:
        verbose_name = _('Unidade de Armazenamento')
        verbose_name_plural = _('Unidades de Armazenamento')
        ordering = ['code']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(capacity_liters__gt=0),
                name='fuelman_unit_capacity_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['unit_type'], name='fuelman_sto_unit_ty_idx'),
        ]

    @property
    def can_receive_seeded_lot(self) -> bool:
        """Empty destinations of these types get a lot created on transfer."""
        return self.unit_type in (UnitType.DATUM, UnitType.TRUCK)

    def __str__(self) -> str:
        return f"{self.code} ({self.get_unit_type_display()})"
