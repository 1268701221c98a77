"""
Management command to backfill load_time of seeded lots.

A lot seeded by a transfer into an empty unit takes the performed_at of
its seeding transfer. Lots that already have a load_time are left alone.

Usage:
    python manage.py backfill_load_time
    python manage.py backfill_load_time --dry-run
"""

from django.core.management.base import BaseCommand
from django.db.models import Min

from fuelman.models import FuelLot, InternalTransfer, LoadType


class Command(BaseCommand):
    """Backfill seeded lot load_time command."""

    help = 'Preenche a hora de carga dos lotes criados por transferência'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Mostra o que seria preenchido sem gravar'
        )

    def handle(self, *args, **options):
        pending = FuelLot.objects.filter(
            load_type=LoadType.EMPTY_TRANSFER,
            load_time__isnull=True,
        ).order_by('pk')

        seeded_at = dict(
            InternalTransfer.objects.filter(
                to_lot__in=pending,
                transfer_to_empty=True,
            ).order_by().values('to_lot').annotate(first=Min('performed_at')).values_list('to_lot', 'first')
        )

        filled = 0
        missing = 0
        for lot in pending:
            when = seeded_at.get(lot.pk)
            if when is None:
                missing += 1
                self.stdout.write(
                    self.style.WARNING(f'{lot.lot_code_created}: transferência de origem não encontrada')
                )
                continue
            if not options['dry_run']:
                FuelLot.objects.filter(pk=lot.pk, load_time__isnull=True).update(load_time=when)
            filled += 1

        if options['dry_run']:
            self.stdout.write(f'{filled} lote(s) seria(m) preenchido(s), {missing} sem origem')
        else:
            self.stdout.write(
                self.style.SUCCESS(f'{filled} lote(s) preenchido(s), {missing} sem origem')
            )
