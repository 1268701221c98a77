"""
Reconciliation Engine — ledger versus meter.

    expected    = Σ sales + Σ internal transfers out + Σ testing draws
    actual      = closing reading - opening reading
    discrepancy = actual - expected

A positive discrepancy means the meter moved more than the ledger explains
(possible unlogged dispense); a negative one means the ledger holds more than
the meter saw (possible over-logging or meter reset).

Detection only. Nothing here writes to the ledger.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from fuelman.exceptions import FuelError
from fuelman.models.enums import Activity
from fuelman.models.readings import DayReading, MeterSnapshot, Trip
from fuelman.models.transfer import InternalTransfer, SaleTransfer, TestingTransfer
from fuelman.services.balance import sum_liters
from fuelman.services.validation import resolve_unit

logger = logging.getLogger('fuelman')


class Classification(models.TextChoices):
    MATCHES = 'MATCHES', _('Confere')
    METER_ABOVE_LEDGER = 'METER_ABOVE_LEDGER', _('Medidor acima do registrado')
    METER_BELOW_LEDGER = 'METER_BELOW_LEDGER', _('Medidor abaixo do registrado')
    UNAVAILABLE = 'UNAVAILABLE', _('Leituras indisponíveis')


MESSAGES = {
    Classification.MATCHES: 'meter matches logged activity',
    Classification.METER_ABOVE_LEDGER: 'meter reads more than logged activity',
    Classification.METER_BELOW_LEDGER: 'meter reads less than logged activity',
    Classification.UNAVAILABLE: 'opening or closing reading unavailable',
}


@dataclass(frozen=True)
class Window:
    """Time bounds and meter endpoints of a reconciliation."""

    start: datetime
    end: datetime
    opening: Decimal | None = None
    closing: Decimal | None = None


@dataclass(frozen=True)
class ReconciliationResult:
    """Expected versus actual consumption of one unit over one window."""

    unit_code: str
    start: datetime
    end: datetime
    opening: Decimal | None
    closing: Decimal | None
    sales: Decimal
    transfers_out: Decimal
    testing: Decimal
    classification: str

    @property
    def expected(self) -> Decimal:
        return self.sales + self.transfers_out + self.testing

    @property
    def actual(self) -> Decimal | None:
        if self.opening is None or self.closing is None:
            return None
        return self.closing - self.opening

    @property
    def discrepancy(self) -> Decimal | None:
        actual = self.actual
        return None if actual is None else actual - self.expected

    @property
    def message(self) -> str:
        return MESSAGES[Classification(self.classification)]

    def as_dict(self) -> dict:
        def _str(value):
            return None if value is None else str(value)

        return {
            'unit': self.unit_code,
            'start': self.start.isoformat(),
            'end': self.end.isoformat(),
            'opening': _str(self.opening),
            'closing': _str(self.closing),
            'actual': _str(self.actual),
            'expected': str(self.expected),
            'sales': str(self.sales),
            'transfers_out': str(self.transfers_out),
            'testing': str(self.testing),
            'discrepancy': _str(self.discrepancy),
            'classification': self.classification,
            'message': self.message,
        }


def classify(discrepancy: Decimal | None) -> str:
    if discrepancy is None:
        return Classification.UNAVAILABLE
    if discrepancy > 0:
        return Classification.METER_ABOVE_LEDGER
    if discrepancy < 0:
        return Classification.METER_BELOW_LEDGER
    return Classification.MATCHES


def _day_bounds(on_date: date) -> tuple[datetime, datetime]:
    tz = timezone.get_current_timezone()
    return (
        timezone.make_aware(datetime.combine(on_date, time.min), tz),
        timezone.make_aware(datetime.combine(on_date, time.max), tz),
    )


def _opening_snapshot(unit, start: datetime) -> Decimal | None:
    snap = (
        MeterSnapshot.objects.filter(unit=unit, reading_at__lte=start)
        .order_by('-reading_at', '-pk')
        .first()
    )
    return snap.reading_liters if snap else None


def _closing_snapshot(unit, start: datetime, end: datetime) -> Decimal | None:
    snap = (
        MeterSnapshot.objects.filter(unit=unit, reading_at__gt=start, reading_at__lte=end)
        .order_by('-reading_at', '-pk')
        .first()
    )
    return snap.reading_liters if snap else None


class ReconciliationEngine:
    """Compare logged consumption against meter readings."""

    @classmethod
    def window(cls, unit, day=None, trip=None, start=None, end=None) -> Window:
        """
        Resolve the window of a reconciliation.

        Exactly one of day, trip, or start+end must be given. day accepts a
        DayReading or a date (the unit's day log for that date, if any).
        """
        chosen = [arg is not None for arg in (day, trip)] + [start is not None or end is not None]
        if sum(chosen) != 1:
            raise FuelError('VALIDATION', field='window', reason='one_of_day_trip_bounds')

        if trip is not None:
            if not isinstance(trip, Trip):
                try:
                    trip = Trip.objects.get(pk=trip, unit=unit)
                except Trip.DoesNotExist:
                    raise FuelError('NOT_FOUND', entity='trip', trip=trip)
            elif trip.unit_id != unit.pk:
                raise FuelError('VALIDATION', field='trip', reason='other_unit', trip=trip.pk)
            return Window(
                start=trip.started_at,
                end=trip.ended_at or _day_bounds(trip.trip_date)[1],
                opening=trip.opening_reading,
                closing=trip.closing_reading,
            )

        if day is not None:
            if isinstance(day, DayReading):
                if day.unit_id != unit.pk:
                    raise FuelError('VALIDATION', field='day', reason='other_unit', day=day.pk)
                reading = day
            else:
                reading = DayReading.objects.filter(unit=unit, reading_date=day).first()
            if reading is None:
                start, end = _day_bounds(day)
                return Window(start=start, end=end)
            day_start, day_end = _day_bounds(reading.reading_date)
            return Window(
                start=reading.opening_at or day_start,
                end=reading.closing_at or day_end,
                opening=reading.opening_liters,
                closing=reading.closing_liters,
            )

        if start is None or end is None:
            raise FuelError('VALIDATION', field='window', reason='start_and_end_required')
        if end < start:
            raise FuelError('VALIDATION', field='end', reason='before_start')
        return Window(start=start, end=end)

    @classmethod
    def reconcile(cls, unit, *, day=None, trip=None, start=None, end=None) -> ReconciliationResult:
        """
        Reconcile a unit over a day, a trip, or explicit bounds.

        Readings missing from the day log or trip fall back to meter
        snapshots: the latest at or before the window start opens it, the
        latest inside the window closes it.

        Raises:
            FuelError('VALIDATION'): Ambiguous or inverted window
            FuelError('NOT_FOUND'): Unknown unit or trip
        """
        unit = resolve_unit(unit, require_active=False)
        window = cls.window(unit, day=day, trip=trip, start=start, end=end)

        opening = window.opening
        if opening is None:
            opening = _opening_snapshot(unit, window.start)
        closing = window.closing
        if closing is None:
            closing = _closing_snapshot(unit, window.start, window.end)

        in_window = {'performed_at__gte': window.start, 'performed_at__lte': window.end}
        sales = sum_liters(SaleTransfer.objects.filter(from_unit=unit, **in_window), 'sale_volume_liters')
        transfers_out = sum_liters(
            InternalTransfer.objects.filter(from_unit=unit, **in_window).exclude(activity=Activity.TESTING),
            'transfer_volume',
        )
        testing = sum_liters(TestingTransfer.objects.filter(from_unit=unit, **in_window), 'transfer_volume_liters')

        actual = None if opening is None or closing is None else closing - opening
        expected = sales + transfers_out + testing
        discrepancy = None if actual is None else actual - expected

        result = ReconciliationResult(
            unit_code=unit.code,
            start=window.start,
            end=window.end,
            opening=opening,
            closing=closing,
            sales=sales,
            transfers_out=transfers_out,
            testing=testing,
            classification=classify(discrepancy),
        )

        if result.classification in (Classification.METER_ABOVE_LEDGER, Classification.METER_BELOW_LEDGER):
            logger.warning(
                "fuel.reconcile.discrepancy",
                extra={
                    "unit": unit.code,
                    "start": window.start.isoformat(),
                    "end": window.end.isoformat(),
                    "discrepancy": str(discrepancy),
                    "classification": result.classification,
                },
            )
        return result
