"""
Initial migration for Storeman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


APPROVAL_CHOICES = [('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')]


class Migration(migrations.Migration):
    """Create Storeman models: StockItem, StockMove, movement documents, RRP, sequences, config."""

    initial = True

    dependencies = [
        ('contenttypes', '0002_remove_content_type_name'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='StockItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nac_code', models.CharField(max_length=50, unique=True, verbose_name='NAC code')),
                ('item_name', models.TextField(blank=True, default='', verbose_name='Item name')),
                ('part_numbers', models.TextField(blank=True, default='', verbose_name='Part numbers')),
                ('applicable_equipments', models.TextField(blank=True, default='', verbose_name='Applicable equipments')),
                ('location', models.CharField(blank=True, default='', max_length=100, verbose_name='Location')),
                ('card_number', models.CharField(blank=True, default='', max_length=50, verbose_name='Card number')),
                ('unit', models.CharField(blank=True, default='', max_length=20, verbose_name='Unit')),
                ('current_balance', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Current balance')),
                ('open_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Opening quantity')),
                ('open_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=14, verbose_name='Opening amount')),
                ('open_remaining_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Part of the opening lot not yet consumed (FIFO).', max_digits=12, verbose_name='Opening quantity remaining')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Stock item',
                'verbose_name_plural': 'Stock items',
                'ordering': ['nac_code'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('current_balance__gte', 0)), name='stock_item_balance_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('request_number', models.CharField(db_index=True, max_length=50, verbose_name='Request number')),
                ('request_date', models.DateField(verbose_name='Request date')),
                ('nac_code', models.CharField(max_length=50, verbose_name='NAC code')),
                ('item_name', models.CharField(blank=True, default='', max_length=255, verbose_name='Item name')),
                ('part_number', models.CharField(blank=True, default='', max_length=100, verbose_name='Part number')),
                ('equipment_number', models.CharField(blank=True, default='', max_length=255, verbose_name='Equipment number')),
                ('unit', models.CharField(blank=True, default='', max_length=20, verbose_name='Unit')),
                ('requested_quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Requested quantity')),
                ('requested_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Requested by')),
                ('approval_status', models.CharField(choices=APPROVAL_CHOICES, default='pending', max_length=20, verbose_name='Approval status')),
                ('is_received', models.BooleanField(default=False, verbose_name='Received')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Stock request',
                'verbose_name_plural': 'Stock requests',
                'ordering': ['-request_date', 'request_number'],
            },
        ),
        migrations.CreateModel(
            name='ConfigEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('config_type', models.CharField(max_length=50, verbose_name='Type')),
                ('config_name', models.CharField(max_length=100, verbose_name='Name')),
                ('config_value', models.TextField(verbose_name='Value')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Config entry',
                'verbose_name_plural': 'Config entries',
                'ordering': ['config_type', 'config_name'],
                'constraints': [
                    models.UniqueConstraint(fields=('config_type', 'config_name'), name='unique_config_entry'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DocumentSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50, verbose_name='Sequence')),
                ('key', models.CharField(max_length=100, verbose_name='Key')),
                ('anchor_date', models.DateField(blank=True, null=True, verbose_name='Anchor date')),
                ('current_value', models.PositiveIntegerField(default=0, verbose_name='Current value')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Document sequence',
                'verbose_name_plural': 'Document sequences',
                'constraints': [
                    models.UniqueConstraint(fields=('name', 'key'), name='unique_document_sequence'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReceiveDetail',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('receive_date', models.DateField(db_index=True, verbose_name='Receive date')),
                ('source', models.CharField(choices=[('request', 'Request'), ('direct', 'Direct'), ('fuel', 'Fuel'), ('transfer', 'Balance transfer')], default='direct', max_length=20, verbose_name='Source')),
                ('item_name', models.CharField(blank=True, default='', max_length=255, verbose_name='Item name')),
                ('part_number', models.CharField(blank=True, default='', max_length=100, verbose_name='Part number')),
                ('equipment_number', models.CharField(blank=True, default='', max_length=255, verbose_name='Equipment number')),
                ('location', models.CharField(blank=True, default='', max_length=100, verbose_name='Location')),
                ('card_number', models.CharField(blank=True, default='', max_length=50, verbose_name='Card number')),
                ('unit', models.CharField(blank=True, default='', max_length=20, verbose_name='Unit')),
                ('received_quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Received quantity')),
                ('remaining_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Not yet consumed by issues (FIFO).', max_digits=12, verbose_name='Remaining quantity')),
                ('transferred_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Transferred quantity')),
                ('approval_status', models.CharField(choices=APPROVAL_CHOICES, db_index=True, default='pending', max_length=20, verbose_name='Approval status')),
                ('received_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Received by')),
                ('approved_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Approved by')),
                ('rejected_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Rejected by')),
                ('rejection_reason', models.TextField(blank=True, default='', verbose_name='Rejection reason')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='receives', to='storeman.stockrequest', verbose_name='Request')),
                ('stock_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='receives', to='storeman.stockitem', verbose_name='Stock item')),
            ],
            options={
                'verbose_name': 'Receive',
                'verbose_name_plural': 'Receives',
                'ordering': ['receive_date', 'id'],
                'indexes': [
                    models.Index(fields=['stock_item', 'receive_date'], name='storeman_recv_item_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='IssueDetail',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('issue_date', models.DateField(db_index=True, verbose_name='Issue date')),
                ('source', models.CharField(choices=[('spare', 'Spare'), ('fuel', 'Fuel'), ('transfer', 'Balance transfer')], default='spare', max_length=20, verbose_name='Source')),
                ('part_number', models.CharField(blank=True, default='', max_length=100, verbose_name='Part number')),
                ('issued_for', models.CharField(blank=True, default='', max_length=255, verbose_name='Issued for')),
                ('issue_quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Issue quantity')),
                ('remaining_balance', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Balance of the NAC code right after this issue.', max_digits=12, verbose_name='Remaining balance')),
                ('issue_cost', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=16, verbose_name='Issue cost')),
                ('issue_slip_number', models.CharField(db_index=True, max_length=50, verbose_name='Issue slip number')),
                ('fiscal_year', models.CharField(max_length=20, verbose_name='Fiscal year')),
                ('approval_status', models.CharField(choices=APPROVAL_CHOICES, db_index=True, default='pending', max_length=20, verbose_name='Approval status')),
                ('issued_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Issued by')),
                ('approved_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Approved by')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('stock_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='issues', to='storeman.stockitem', verbose_name='Stock item')),
            ],
            options={
                'verbose_name': 'Issue',
                'verbose_name_plural': 'Issues',
                'ordering': ['issue_date', 'id'],
                'indexes': [
                    models.Index(fields=['stock_item', 'issue_date'], name='storeman_issue_item_date_idx'),
                    models.Index(fields=['fiscal_year', 'issue_date'], name='storeman_issue_fy_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FuelRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('fuel_type', models.CharField(choices=[('diesel', 'Diesel'), ('petrol', 'Petrol')], max_length=20, verbose_name='Fuel type')),
                ('kilometers', models.PositiveIntegerField(default=0, verbose_name='Kilometers')),
                ('is_kilometer_reset', models.BooleanField(default=False, verbose_name='Kilometer reset')),
                ('fuel_price', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=12, verbose_name='Fuel price')),
                ('week_number', models.PositiveSmallIntegerField(default=1, verbose_name='Week number')),
                ('fiscal_year', models.CharField(max_length=20, verbose_name='Fiscal year')),
                ('approval_status', models.CharField(choices=APPROVAL_CHOICES, default='pending', max_length=20, verbose_name='Approval status')),
                ('approved_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Approved by')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('issue', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='fuel_record', to='storeman.issuedetail', verbose_name='Issue')),
            ],
            options={
                'verbose_name': 'Fuel record',
                'verbose_name_plural': 'Fuel records',
                'ordering': ['issue__issue_date', 'id'],
            },
        ),
        migrations.CreateModel(
            name='RRPRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rrp_number', models.CharField(db_index=True, max_length=20, verbose_name='RRP number')),
                ('rrp_type', models.CharField(choices=[('local', 'Local'), ('foreign', 'Foreign')], default='local', max_length=20, verbose_name='Type')),
                ('rrp_date', models.DateField(verbose_name='RRP date')),
                ('supplier_name', models.CharField(max_length=255, verbose_name='Supplier')),
                ('invoice_number', models.CharField(blank=True, default='', max_length=100, verbose_name='Invoice number')),
                ('currency', models.CharField(default='NPR', max_length=10, verbose_name='Currency')),
                ('forex_rate', models.DecimalField(decimal_places=4, default=Decimal('1'), max_digits=12, verbose_name='Forex rate')),
                ('item_price', models.DecimalField(decimal_places=4, max_digits=16, verbose_name='Item price')),
                ('customs_charge', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=16, verbose_name='Customs charge')),
                ('customs_service_charge', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=16, verbose_name='Customs service charge')),
                ('freight_charge', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=16, verbose_name='Freight charge')),
                ('vat_percentage', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5, verbose_name='VAT %')),
                ('total_amount', models.DecimalField(decimal_places=4, max_digits=16, verbose_name='Total amount')),
                ('fiscal_year', models.CharField(max_length=20, verbose_name='Fiscal year')),
                ('approval_status', models.CharField(choices=APPROVAL_CHOICES, db_index=True, default='pending', max_length=20, verbose_name='Approval status')),
                ('created_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Created by')),
                ('approved_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Approved by')),
                ('rejected_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Rejected by')),
                ('rejection_reason', models.TextField(blank=True, default='', verbose_name='Rejection reason')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('receive', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='rrps', to='storeman.receivedetail', verbose_name='Receive')),
            ],
            options={
                'verbose_name': 'RRP line',
                'verbose_name_plural': 'RRP lines',
                'ordering': ['rrp_number', 'id'],
            },
        ),
        migrations.CreateModel(
            name='BalanceTransfer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantity')),
                ('transfer_date', models.DateField(verbose_name='Transfer date')),
                ('transfer_cost', models.DecimalField(decimal_places=4, default=Decimal('0'), max_digits=16, verbose_name='Transfer cost')),
                ('slip_number', models.CharField(max_length=30, unique=True, verbose_name='Slip number')),
                ('transferred_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Transferred by')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('from_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers_out', to='storeman.stockitem', verbose_name='From')),
                ('to_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transfers_in', to='storeman.stockitem', verbose_name='To')),
                ('issue', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='transfer', to='storeman.issuedetail', verbose_name='Debit leg')),
                ('receive', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='transfer', to='storeman.receivedetail', verbose_name='Credit leg')),
                ('source_receive', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='transfers_from_lot', to='storeman.receivedetail', verbose_name='Costing lot')),
            ],
            options={
                'verbose_name': 'Balance transfer',
                'verbose_name_plural': 'Balance transfers',
                'ordering': ['-transfer_date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='StockMove',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('delta', models.DecimalField(decimal_places=3, help_text='Positive = in, negative = out', max_digits=12, verbose_name='Delta')),
                ('balance_after', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Balance after')),
                ('kind', models.CharField(choices=[('receive', 'Receive'), ('issue', 'Issue'), ('transfer', 'Transfer'), ('adjust', 'Adjustment'), ('reversal', 'Reversal')], default='adjust', max_length=20, verbose_name='Kind')),
                ('reference_id', models.PositiveBigIntegerField(blank=True, null=True, verbose_name='Reference ID')),
                ('reason', models.CharField(help_text='Required. E.g. "Receive #12", "Reversal of issue #7"', max_length=255, verbose_name='Reason')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
                ('reference_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='contenttypes.contenttype', verbose_name='Reference type')),
                ('stock_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='moves', to='storeman.stockitem', verbose_name='Stock item')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Stock move',
                'verbose_name_plural': 'Stock moves',
                'ordering': ['timestamp', 'id'],
                'indexes': [
                    models.Index(fields=['stock_item', 'timestamp'], name='storeman_move_item_ts_idx'),
                    models.Index(fields=['reference_type', 'reference_id'], name='storeman_move_ref_idx'),
                ],
            },
        ),
    ]
