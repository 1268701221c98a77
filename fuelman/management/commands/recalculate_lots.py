"""
Management command to rebuild cached lot counters from the ledger.

Usage:
    python manage.py recalculate_lots
    python manage.py recalculate_lots --unit 4T1
    python manage.py recalculate_lots --dry-run
"""

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from fuelman.models import FuelLot, StorageUnit
from fuelman.services import balance


class Command(BaseCommand):
    """Recalculate lot caches command."""

    help = 'Recalcula os contadores dos lotes a partir do razão'

    def add_arguments(self, parser):
        parser.add_argument(
            '--unit',
            help='Código da unidade (padrão: todas)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Mostra os lotes divergentes sem gravar'
        )

    def handle(self, *args, **options):
        lots = FuelLot.objects.select_related('unit').order_by('unit__code', 'unit_seq')
        if options['unit']:
            if not StorageUnit.objects.filter(code=options['unit']).exists():
                raise CommandError(f"Unidade '{options['unit']}' não encontrada")
            lots = lots.filter(unit__code=options['unit'])

        drifted = 0
        for lot in lots.iterator():
            if options['dry_run']:
                current = balance.balance(lot)
                cached = (lot.used_liters, lot.cumulative_testing_liters, lot.stock_status)
                if cached != (current.outbound, current.testing, current.stock_status):
                    drifted += 1
                    self.stdout.write(
                        f'{lot.lot_code_created}: usado {lot.used_liters} → {current.outbound}, '
                        f'testes {lot.cumulative_testing_liters} → {current.testing}, '
                        f'situação {lot.stock_status} → {current.stock_status}'
                    )
                continue

            with transaction.atomic():
                locked = FuelLot.objects.select_for_update().get(pk=lot.pk)
                if balance.recalculate(locked):
                    drifted += 1
                    self.stdout.write(f'{locked.lot_code_created}: corrigido')

        if options['dry_run']:
            self.stdout.write(f'{drifted} lote(s) divergente(s)')
        else:
            self.stdout.write(
                self.style.SUCCESS(f'{drifted} lote(s) recalculado(s)')
            )
