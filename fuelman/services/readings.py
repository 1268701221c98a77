"""
Meter readings — day logs, trips and snapshots entered by operators.

These rows bound reconciliation windows and satisfy the opening-reading
precondition of internal transfers.
"""

import logging
from datetime import date

from django.db import transaction
from django.utils import timezone

from fuelman.exceptions import FuelError
from fuelman.models.enums import AuditAction, MeterSource
from fuelman.models.readings import DayReading, MeterSnapshot, Trip
from fuelman.services import audit
from fuelman.services.validation import resolve_unit, to_liters

logger = logging.getLogger('fuelman')


class FuelReadings:
    """Operator-entered meter readings."""

    @classmethod
    def record_day_opening(cls, unit, reading_date: date, opening_liters,
                           opening_at=None, driver_name: str = '',
                           performed_by: str = '') -> DayReading:
        """
        Open (or re-open) the day log of a unit.

        Also stores an OPENING MeterSnapshot when opening_at is given.
        """
        liters = to_liters(opening_liters, field='opening_liters', allow_zero=True)
        unit = resolve_unit(unit)

        with transaction.atomic():
            reading, created = DayReading.objects.select_for_update().get_or_create(
                unit=unit,
                reading_date=reading_date,
                defaults={
                    'opening_liters': liters,
                    'opening_at': opening_at,
                    'driver_name': driver_name,
                    'created_by': performed_by,
                },
            )
            old = None
            if not created:
                old = audit.payload(reading)
                reading.opening_liters = liters
                reading.opening_at = opening_at or reading.opening_at
                reading.driver_name = driver_name or reading.driver_name
                reading.save(update_fields=['opening_liters', 'opening_at', 'driver_name', 'updated_at'])

            if opening_at is not None:
                MeterSnapshot.objects.create(
                    unit=unit,
                    reading_at=opening_at,
                    reading_liters=liters,
                    source=MeterSource.OPENING,
                    created_by=performed_by,
                )

            audit.record_event(
                AuditAction.CREATE if created else AuditAction.UPDATE,
                reading,
                unit=unit,
                op_date=reading_date,
                meter_reading=liters,
                old=old,
                performed_by=performed_by,
            )
            logger.info(
                "fuel.reading.opening",
                extra={"unit": unit.code, "date": str(reading_date), "liters": str(liters)},
            )
            return reading

    @classmethod
    def record_day_closing(cls, unit, reading_date: date, closing_liters,
                           closing_at=None, performed_by: str = '') -> DayReading:
        """
        Close the day log of a unit.

        Raises:
            FuelError('OPENING_MISSING'): If the day was never opened
        """
        liters = to_liters(closing_liters, field='closing_liters', allow_zero=True)
        unit = resolve_unit(unit)

        with transaction.atomic():
            try:
                reading = DayReading.objects.select_for_update().get(
                    unit=unit, reading_date=reading_date,
                )
            except DayReading.DoesNotExist:
                raise FuelError('OPENING_MISSING', unit=unit.code, date=str(reading_date))

            old = audit.payload(reading)
            reading.closing_liters = liters
            reading.closing_at = closing_at or reading.closing_at
            reading.save(update_fields=['closing_liters', 'closing_at', 'updated_at'])

            if closing_at is not None:
                MeterSnapshot.objects.create(
                    unit=unit,
                    reading_at=closing_at,
                    reading_liters=liters,
                    source=MeterSource.CLOSING,
                    created_by=performed_by,
                )

            audit.record_update(
                reading, old,
                unit=unit,
                op_date=reading_date,
                meter_reading=liters,
                performed_by=performed_by,
            )
            logger.info(
                "fuel.reading.closing",
                extra={"unit": unit.code, "date": str(reading_date), "liters": str(liters)},
            )
            return reading

    @classmethod
    def start_trip(cls, unit, trip_date: date, number: int, started_at=None,
                   opening_reading=None, note: str = '') -> Trip:
        """Start trip #number of a unit on trip_date."""
        unit = resolve_unit(unit)
        if number is None or number < 1:
            raise FuelError('VALIDATION', field='number', value=number)
        opening = None
        if opening_reading is not None:
            opening = to_liters(opening_reading, field='opening_reading', allow_zero=True)

        with transaction.atomic():
            if Trip.objects.filter(unit=unit, trip_date=trip_date, number=number).exists():
                raise FuelError('VALIDATION', field='number', value=number, reason='duplicate')
            trip = Trip.objects.create(
                unit=unit,
                trip_date=trip_date,
                number=number,
                started_at=started_at or timezone.now(),
                opening_reading=opening,
                note=note,
            )
            audit.record_create(trip, unit=unit, op_date=trip_date, meter_reading=opening)
            return trip

    @classmethod
    def end_trip(cls, trip: Trip, ended_at=None, closing_reading=None) -> Trip:
        """Close a trip with its end time and final meter reading."""
        closing = None
        if closing_reading is not None:
            closing = to_liters(closing_reading, field='closing_reading', allow_zero=True)

        with transaction.atomic():
            trip = Trip.objects.select_for_update().get(pk=trip.pk)
            old = audit.payload(trip)
            trip.ended_at = ended_at or timezone.now()
            trip.closing_reading = closing
            trip.save(update_fields=['ended_at', 'closing_reading'])
            audit.record_update(trip, old, unit=trip.unit, op_date=trip.trip_date, meter_reading=closing)
            return trip

    @classmethod
    def record_snapshot(cls, unit, reading_liters, reading_at=None,
                        source=MeterSource.SNAPSHOT, note: str = '',
                        performed_by: str = '') -> MeterSnapshot:
        """Store a point-in-time meter reading."""
        liters = to_liters(reading_liters, field='reading_liters', allow_zero=True)
        unit = resolve_unit(unit, require_active=False)
        if source not in MeterSource.values:
            raise FuelError('VALIDATION', field='source', value=source)

        with transaction.atomic():
            snapshot = MeterSnapshot.objects.create(
                unit=unit,
                reading_at=reading_at or timezone.now(),
                reading_liters=liters,
                source=source,
                note=note,
                created_by=performed_by,
            )
            audit.record_create(
                snapshot,
                unit=unit,
                op_date=timezone.localdate(snapshot.reading_at),
                meter_reading=liters,
                performed_by=performed_by,
            )
            return snapshot

    @classmethod
    def has_opening(cls, unit, on_date: date) -> bool:
        """Does the unit have an opening meter reading for on_date?"""
        if DayReading.objects.filter(unit=unit, reading_date=on_date).exists():
            return True
        if Trip.objects.filter(unit=unit, trip_date=on_date, opening_reading__isnull=False).exists():
            return True
        return MeterSnapshot.objects.filter(
            unit=unit, source=MeterSource.OPENING, reading_at__date=on_date,
        ).exists()
