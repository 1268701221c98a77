"""
Initial migration for Fuelman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


UNIT_TYPES = [('TRUCK', 'Caminhão-tanque'), ('DATUM', 'Tanque fixo'), ('DISPENSER', 'Bomba')]
STOCK_STATUSES = [('INSTOCK', 'Em estoque'), ('SOLD', 'Esgotado')]
LOAD_TYPES = [('PURCHASE', 'Compra'), ('EMPTY_TRANSFER', 'Transferência para tanque vazio')]
ACTIVITIES = [
    ('TANKER_TO_TANKER', 'Caminhão → Caminhão'),
    ('TANKER_TO_DATUM', 'Caminhão → Tanque'),
    ('TANKER_TO_VEHICLE', 'Caminhão → Veículo'),
    ('DATUM_TO_VEHICLE', 'Tanque → Veículo'),
    ('TESTING', 'Teste'),
]
METER_SOURCES = [('SNAPSHOT', 'Leitura avulsa'), ('OPENING', 'Abertura'), ('CLOSING', 'Fechamento')]
AUDIT_ACTIONS = [('CREATE', 'Criação'), ('UPDATE', 'Alteração')]


def ledger_fields():
    return [
        ('driver_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='ID do Motorista')),
        ('driver_name', models.CharField(blank=True, default='', max_length=150, verbose_name='Motorista')),
        ('trip', models.PositiveIntegerField(blank=True, null=True, verbose_name='Viagem')),
        ('performed_by', models.CharField(blank=True, default='', max_length=150, verbose_name='Realizado por')),
        ('performed_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Data/Hora')),
        ('created_at', models.DateTimeField(auto_now_add=True)),
    ]


class Migration(migrations.Migration):
    """Create Fuelman models: units, lots, counters, ledger, readings, audit."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='StorageUnit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(help_text='Código curto usado nos códigos de lote (ex: 4T1)', max_length=20, unique=True, verbose_name='Código')),
                ('unit_type', models.CharField(choices=UNIT_TYPES, max_length=20, verbose_name='Tipo')),
                ('capacity_liters', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Capacidade (L)')),
                ('active', models.BooleanField(default=True, verbose_name='Ativo')),
                ('vehicle_number', models.CharField(blank=True, max_length=30, null=True, unique=True, verbose_name='Placa')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Unidade de Armazenamento',
                'verbose_name_plural': 'Unidades de Armazenamento',
                'ordering': ['code'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(capacity_liters__gt=0), name='fuelman_unit_capacity_positive'),
                ],
                'indexes': [
                    models.Index(fields=['unit_type'], name='fuelman_sto_unit_ty_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FuelLot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('unit_code', models.CharField(max_length=20, verbose_name='Código da Unidade')),
                ('unit_capacity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Capacidade da Unidade (L)')),
                ('load_date', models.DateField(db_index=True, verbose_name='Data de Carga')),
                ('seq_index', models.PositiveIntegerField(verbose_name='Sequência do Dia')),
                ('seq_letters', models.CharField(max_length=10, verbose_name='Letras da Sequência')),
                ('unit_seq', models.PositiveIntegerField(help_text='Ordinal monotônico por unidade. Define FIFO e o lote atual.', verbose_name='Ordem na Unidade')),
                ('lot_code_created', models.CharField(max_length=50, unique=True, verbose_name='Código do Lote')),
                ('loaded_liters', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Volume Carregado (L)')),
                ('load_type', models.CharField(choices=LOAD_TYPES, default='PURCHASE', max_length=20, verbose_name='Tipo de Carga')),
                ('load_time', models.DateTimeField(blank=True, null=True, verbose_name='Hora da Carga')),
                ('used_liters', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Volume Usado (L)')),
                ('cumulative_testing_liters', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Volume em Testes (L)')),
                ('stock_status', models.CharField(choices=STOCK_STATUSES, db_index=True, default='INSTOCK', max_length=10, verbose_name='Situação')),
                ('created_by', models.CharField(blank=True, default='', max_length=150, verbose_name='Criado por')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Criado em')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Atualizado em')),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='fuelman.storageunit', verbose_name='Unidade')),
            ],
            options={
                'verbose_name': 'Lote de Combustível',
                'verbose_name_plural': 'Lotes de Combustível',
                'ordering': ['unit', 'unit_seq'],
                'constraints': [
                    models.UniqueConstraint(fields=('unit', 'load_date', 'seq_index'), name='fuelman_lot_unique_per_unit_day_seq'),
                    models.UniqueConstraint(fields=('unit', 'unit_seq'), name='fuelman_lot_unique_unit_seq'),
                    models.CheckConstraint(condition=models.Q(loaded_liters__gt=0), name='fuelman_lot_loaded_positive'),
                    models.CheckConstraint(condition=models.Q(used_liters__gte=0), name='fuelman_lot_used_non_negative'),
                ],
                'indexes': [
                    models.Index(fields=['unit', 'stock_status', 'unit_seq'], name='fuelman_fue_unit_st_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LotSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('load_date', models.DateField()),
                ('last_index', models.PositiveIntegerField(default=0)),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='fuelman.storageunit')),
            ],
            options={
                'verbose_name': 'Sequência de Lote',
                'verbose_name_plural': 'Sequências de Lote',
                'constraints': [
                    models.UniqueConstraint(fields=('unit', 'load_date'), name='fuelman_lot_sequence_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='UnitCounter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('last_lot_seq', models.PositiveIntegerField(default=0)),
                ('outflow_liters', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Soma acumulada das transferências internas de saída', max_digits=14)),
                ('unit', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='fuelman.storageunit')),
            ],
            options={
                'verbose_name': 'Contador da Unidade',
                'verbose_name_plural': 'Contadores das Unidades',
            },
        ),
        migrations.CreateModel(
            name='InternalTransfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *ledger_fields(),
                ('from_unit_code', models.CharField(max_length=20)),
                ('to_unit_code', models.CharField(max_length=20)),
                ('transfer_volume', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Volume (L)')),
                ('from_lot_code_after', models.CharField(max_length=80, verbose_name='Lote de Origem (após)')),
                ('to_lot_code_after', models.CharField(max_length=80, verbose_name='Lote de Destino (após)')),
                ('transfer_to_empty', models.BooleanField(default=False, help_text='Linha que originou o lote de destino.', verbose_name='Transferência para vazio')),
                ('activity', models.CharField(choices=ACTIVITIES, max_length=20, verbose_name='Atividade')),
                ('transfer_date', models.DateField(db_index=True, verbose_name='Data')),
                ('outflow_counter', models.DecimalField(decimal_places=3, help_text='Soma acumulada das saídas internas da unidade de origem.', max_digits=14, verbose_name='Saída acumulada (L)')),
                ('updated_by', models.CharField(blank=True, default='', max_length=150)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('from_lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outbound_transfers', to='fuelman.fuellot', verbose_name='Lote de Origem')),
                ('to_lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inbound_transfers', to='fuelman.fuellot', verbose_name='Lote de Destino')),
                ('from_unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outbound_transfers', to='fuelman.storageunit', verbose_name='Unidade de Origem')),
                ('to_unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inbound_transfers', to='fuelman.storageunit', verbose_name='Unidade de Destino')),
            ],
            options={
                'verbose_name': 'Transferência Interna',
                'verbose_name_plural': 'Transferências Internas',
                'ordering': ['performed_at', 'pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(transfer_volume__gt=0), name='fuelman_internal_volume_positive'),
                ],
                'indexes': [
                    models.Index(fields=['from_unit', 'performed_at'], name='fuelman_int_from_un_idx'),
                    models.Index(fields=['to_lot', 'transfer_to_empty'], name='fuelman_int_to_lot_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SaleTransfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *ledger_fields(),
                ('from_unit_code', models.CharField(max_length=20)),
                ('to_vehicle', models.CharField(max_length=50, verbose_name='Veículo')),
                ('sale_volume_liters', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Volume (L)')),
                ('lot_code_after', models.CharField(max_length=80, verbose_name='Lote (após)')),
                ('activity', models.CharField(choices=ACTIVITIES, max_length=20, verbose_name='Atividade')),
                ('sale_date', models.DateField(db_index=True, verbose_name='Data')),
                ('lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales', to='fuelman.fuellot', verbose_name='Lote')),
                ('from_unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sales', to='fuelman.storageunit', verbose_name='Unidade de Origem')),
            ],
            options={
                'verbose_name': 'Venda',
                'verbose_name_plural': 'Vendas',
                'ordering': ['performed_at', 'pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(sale_volume_liters__gt=0), name='fuelman_sale_volume_positive'),
                ],
                'indexes': [
                    models.Index(fields=['from_unit', 'performed_at'], name='fuelman_sal_from_un_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TestingTransfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *ledger_fields(),
                ('from_unit_code', models.CharField(max_length=20)),
                ('to_vehicle', models.CharField(blank=True, default='', max_length=50, verbose_name='Veículo')),
                ('transfer_volume_liters', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Volume (L)')),
                ('lot_code', models.CharField(max_length=80, verbose_name='Lote')),
                ('test_date', models.DateField(db_index=True, verbose_name='Data')),
                ('lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='testing_draws', to='fuelman.fuellot', verbose_name='Lote')),
                ('from_unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='testing_draws', to='fuelman.storageunit', verbose_name='Unidade')),
            ],
            options={
                'verbose_name': 'Teste',
                'verbose_name_plural': 'Testes',
                'ordering': ['performed_at', 'pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(transfer_volume_liters__gt=0), name='fuelman_testing_volume_positive'),
                ],
                'indexes': [
                    models.Index(fields=['from_unit', 'performed_at'], name='fuelman_tes_from_un_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MeterSnapshot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reading_at', models.DateTimeField(verbose_name='Data/Hora da Leitura')),
                ('reading_liters', models.DecimalField(decimal_places=3, max_digits=14, verbose_name='Leitura (L)')),
                ('source', models.CharField(choices=METER_SOURCES, default='SNAPSHOT', max_length=10, verbose_name='Origem')),
                ('note', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('created_by', models.CharField(blank=True, default='', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='meter_snapshots', to='fuelman.storageunit', verbose_name='Unidade')),
            ],
            options={
                'verbose_name': 'Leitura do Medidor',
                'verbose_name_plural': 'Leituras do Medidor',
                'ordering': ['unit', '-reading_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(reading_liters__gte=0), name='fuelman_snapshot_reading_non_negative'),
                ],
                'indexes': [
                    models.Index(fields=['unit', 'reading_at'], name='fuelman_met_unit_id_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DayReading',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reading_date', models.DateField(verbose_name='Data')),
                ('opening_liters', models.DecimalField(decimal_places=3, max_digits=14, verbose_name='Abertura (L)')),
                ('closing_liters', models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True, verbose_name='Fechamento (L)')),
                ('opening_at', models.DateTimeField(blank=True, null=True, verbose_name='Hora da Abertura')),
                ('closing_at', models.DateTimeField(blank=True, null=True, verbose_name='Hora do Fechamento')),
                ('driver_name', models.CharField(blank=True, default='', max_length=150, verbose_name='Motorista')),
                ('note', models.TextField(blank=True, default='', verbose_name='Observações')),
                ('created_by', models.CharField(blank=True, default='', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='day_readings', to='fuelman.storageunit', verbose_name='Unidade')),
            ],
            options={
                'verbose_name': 'Leitura Diária',
                'verbose_name_plural': 'Leituras Diárias',
                'ordering': ['unit', '-reading_date'],
                'constraints': [
                    models.UniqueConstraint(fields=('unit', 'reading_date'), name='fuelman_day_reading_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Trip',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('trip_date', models.DateField(verbose_name='Data')),
                ('number', models.PositiveIntegerField(verbose_name='Número')),
                ('started_at', models.DateTimeField(verbose_name='Início')),
                ('ended_at', models.DateTimeField(blank=True, null=True, verbose_name='Fim')),
                ('opening_reading', models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True, verbose_name='Leitura Inicial (L)')),
                ('closing_reading', models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True, verbose_name='Leitura Final (L)')),
                ('note', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='trips', to='fuelman.storageunit', verbose_name='Unidade')),
            ],
            options={
                'verbose_name': 'Viagem',
                'verbose_name_plural': 'Viagens',
                'ordering': ['unit', '-trip_date', 'number'],
                'constraints': [
                    models.UniqueConstraint(fields=('unit', 'trip_date', 'number'), name='fuelman_trip_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FuelOpsAudit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_ts', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Data/Hora')),
                ('action', models.CharField(choices=AUDIT_ACTIONS, max_length=10, verbose_name='Ação')),
                ('entity_type', models.CharField(help_text='lot | transfer | sale | testing | day_reading | trip | snapshot', max_length=30, verbose_name='Entidade')),
                ('entity_id', models.BigIntegerField(blank=True, null=True)),
                ('op_date', models.DateField(blank=True, null=True, verbose_name='Dia Operacional')),
                ('amount_liters', models.DecimalField(blank=True, decimal_places=3, max_digits=12, null=True)),
                ('meter_reading', models.DecimalField(blank=True, decimal_places=3, max_digits=14, null=True)),
                ('payload_old', models.JSONField(blank=True, null=True)),
                ('payload_new', models.JSONField(blank=True, null=True)),
                ('performed_by', models.CharField(blank=True, default='', max_length=150)),
                ('reason', models.TextField(blank=True, default='')),
                ('unit', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='fuelman.storageunit', verbose_name='Unidade')),
            ],
            options={
                'verbose_name': 'Auditoria de Combustível',
                'verbose_name_plural': 'Auditoria de Combustível',
                'ordering': ['-event_ts'],
                'indexes': [
                    models.Index(fields=['entity_type', 'entity_id'], name='fuelman_fue_entity__idx'),
                    models.Index(fields=['unit', 'op_date'], name='fuelman_fue_unit_id_idx'),
                ],
            },
        ),
    ]
