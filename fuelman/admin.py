"""
Fuelman Admin.

Provides views for operations and production debugging:
- StorageUnit: list + edit
- FuelLot: read-only with live remaining and "recalculate" action
- InternalTransfer / SaleTransfer / TestingTransfer: read-only ledger
- DayReading / Trip / MeterSnapshot: editable operator readings
- FuelOpsAudit: read-only audit trail

Lots and ledger rows only change through the fuel service.
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from fuelman.exceptions import FuelError
from fuelman.models import (
    DayReading,
    FuelLot,
    FuelOpsAudit,
    InternalTransfer,
    MeterSnapshot,
    SaleTransfer,
    StorageUnit,
    TestingTransfer,
    Trip,
)
from fuelman.services import balance

logger = logging.getLogger(__name__)


class ReadOnlyAdmin(admin.ModelAdmin):
    """No add, change or delete. Rows are written by the fuel service."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# STORAGE UNIT ADMIN
# =========================================================================

@admin.register(StorageUnit)
class StorageUnitAdmin(admin.ModelAdmin):
    """StorageUnit admin — editable."""

    list_display = ['code', 'unit_type', 'capacity_liters', 'vehicle_number', 'active']
    list_filter = ['unit_type', 'active']
    search_fields = ['code', 'vehicle_number']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# LOT ADMIN (read-only with recalculate action)
# =========================================================================

@admin.register(FuelLot)
class FuelLotAdmin(ReadOnlyAdmin):
    """FuelLot admin — read-only with recalculate action."""

    list_display = ['lot_code_created', 'unit', 'load_date', 'load_type', 'loaded_liters',
                    'used_liters', 'remaining_display', 'stock_status']
    list_filter = ['stock_status', 'load_type', 'unit']
    search_fields = ['lot_code_created', 'unit_code']
    readonly_fields = ['unit', 'unit_code', 'unit_capacity', 'load_date', 'seq_index',
                       'seq_letters', 'unit_seq', 'lot_code_created', 'loaded_liters',
                       'load_type', 'load_time', 'used_liters', 'cumulative_testing_liters',
                       'stock_status', 'created_by', 'created_at', 'updated_at']
    date_hierarchy = 'load_date'
    ordering = ['unit', '-unit_seq']
    actions = ['recalculate_lots']

    @admin.display(description=_('Restante (L)'))
    def remaining_display(self, obj):
        return balance.remaining(obj)

    @admin.action(description=_('Recalcular lotes selecionados'))
    def recalculate_lots(self, request, queryset):
        from fuelman import fuel

        drifted = 0
        for lot in queryset:
            try:
                if fuel.recalculate(lot):
                    drifted += 1
            except FuelError as exc:
                logger.warning("recalculate_lots: failed for %s: %s", lot.lot_code_created, exc)

        self.message_user(request, _('{count} lote(s) corrigido(s).').format(count=drifted))


# =========================================================================
# LEDGER ADMINS (read-only)
# =========================================================================

@admin.register(InternalTransfer)
class InternalTransferAdmin(ReadOnlyAdmin):
    """InternalTransfer admin — read-only ledger."""

    list_display = ['performed_at', 'activity', 'from_unit_code', 'to_unit_code',
                    'transfer_volume', 'from_lot_code_after', 'to_lot_code_after',
                    'transfer_to_empty', 'driver_name']
    list_filter = ['activity', 'transfer_to_empty', 'transfer_date']
    search_fields = ['from_unit_code', 'to_unit_code', 'from_lot_code_after', 'to_lot_code_after']
    date_hierarchy = 'transfer_date'


@admin.register(SaleTransfer)
class SaleTransferAdmin(ReadOnlyAdmin):
    """SaleTransfer admin — read-only ledger."""

    list_display = ['performed_at', 'activity', 'from_unit_code', 'to_vehicle',
                    'sale_volume_liters', 'lot_code_after', 'driver_name']
    list_filter = ['activity', 'sale_date']
    search_fields = ['from_unit_code', 'to_vehicle', 'lot_code_after']
    date_hierarchy = 'sale_date'


@admin.register(TestingTransfer)
class TestingTransferAdmin(ReadOnlyAdmin):
    """TestingTransfer admin — read-only ledger."""

    list_display = ['performed_at', 'from_unit_code', 'transfer_volume_liters', 'lot_code']
    list_filter = ['test_date']
    search_fields = ['from_unit_code', 'lot_code']
    date_hierarchy = 'test_date'


# =========================================================================
# READINGS ADMINS
# =========================================================================

@admin.register(DayReading)
class DayReadingAdmin(admin.ModelAdmin):
    """DayReading admin — editable."""

    list_display = ['unit', 'reading_date', 'opening_liters', 'closing_liters', 'driver_name']
    list_filter = ['unit', 'reading_date']
    readonly_fields = ['created_by', 'created_at', 'updated_at']
    date_hierarchy = 'reading_date'


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    """Trip admin — editable."""

    list_display = ['unit', 'trip_date', 'number', 'started_at', 'ended_at',
                    'opening_reading', 'closing_reading']
    list_filter = ['unit', 'trip_date']
    readonly_fields = ['created_at']


@admin.register(MeterSnapshot)
class MeterSnapshotAdmin(admin.ModelAdmin):
    """MeterSnapshot admin — editable."""

    list_display = ['unit', 'reading_at', 'reading_liters', 'source']
    list_filter = ['source', 'unit']
    readonly_fields = ['created_by', 'created_at']


# =========================================================================
# AUDIT ADMIN (read-only)
# =========================================================================

@admin.register(FuelOpsAudit)
class FuelOpsAuditAdmin(ReadOnlyAdmin):
    """FuelOpsAudit admin — immutable audit trail."""

    list_display = ['event_ts', 'action', 'entity_type', 'entity_id', 'unit',
                    'amount_liters', 'meter_reading', 'performed_by']
    list_filter = ['action', 'entity_type']
    search_fields = ['performed_by', 'reason']
    date_hierarchy = 'event_ts'
