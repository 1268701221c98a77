"""
Enums for Fuelman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class UnitType(models.TextChoices):
    """
    Kind of storage unit.

    TRUCK:     Tanker truck, carries fuel and sells straight to vehicles.
    DATUM:     Fixed storage tank at a depot.
    DISPENSER: Dispensing pump; never receives auto-seeded lots.
    """
    TRUCK = 'TRUCK', _('Caminhão-tanque')
    DATUM = 'DATUM', _('Tanque fixo')
    DISPENSER = 'DISPENSER', _('Bomba')


class StockStatus(models.TextChoices):
    """Lot status, derived from the ledger."""
    INSTOCK = 'INSTOCK', _('Em estoque')  # Sellable remainder exists
    SOLD = 'SOLD', _('Esgotado')          # Fully consumed


class LoadType(models.TextChoices):
    """How a lot came into existence."""
    PURCHASE = 'PURCHASE', _('Compra')
    EMPTY_TRANSFER = 'EMPTY_TRANSFER', _('Transferência para tanque vazio')


class Activity(models.TextChoices):
    """Ledger activity kinds."""
    TANKER_TO_TANKER = 'TANKER_TO_TANKER', _('Caminhão → Caminhão')
    TANKER_TO_DATUM = 'TANKER_TO_DATUM', _('Caminhão → Tanque')
    TANKER_TO_VEHICLE = 'TANKER_TO_VEHICLE', _('Caminhão → Veículo')
    DATUM_TO_VEHICLE = 'DATUM_TO_VEHICLE', _('Tanque → Veículo')
    TESTING = 'TESTING', _('Teste')


INTERNAL_ACTIVITIES = frozenset({Activity.TANKER_TO_TANKER, Activity.TANKER_TO_DATUM})
SALE_ACTIVITIES = frozenset({Activity.TANKER_TO_VEHICLE, Activity.DATUM_TO_VEHICLE})


class MeterSource(models.TextChoices):
    """Origin of a dispenser meter reading."""
    SNAPSHOT = 'SNAPSHOT', _('Leitura avulsa')
    OPENING = 'OPENING', _('Abertura')
    CLOSING = 'CLOSING', _('Fechamento')


class AuditAction(models.TextChoices):
    """Audit trail actions."""
    CREATE = 'CREATE', _('Criação')
    UPDATE = 'UPDATE', _('Alteração')
