"""
Store approval statuses uppercase, and add unit conversions and borrow receives.

Approval statuses are stored as PENDING / APPROVED / REJECTED, the values
other clients of the same tables read and write.

Also:
- UnitConversion: received units per requested unit, per NAC code
- BorrowSource: stores goods are borrowed from
- ReceiveDetail: conversion base and borrow fields
- StockRequest.is_closed: closed on a partial receive
"""

from decimal import Decimal
import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


APPROVAL_CHOICES = [('PENDING', 'Pending'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected')]

STATUS_MODELS = ['StockRequest', 'ReceiveDetail', 'IssueDetail', 'FuelRecord', 'RRPRecord']


def uppercase_statuses(apps, schema_editor):
    """pending -> PENDING, and so on, on every movement document."""
    for model_name in STATUS_MODELS:
        Model = apps.get_model('storeman', model_name)
        for value in ('pending', 'approved', 'rejected'):
            Model.objects.filter(approval_status=value).update(approval_status=value.upper())


def lowercase_statuses(apps, schema_editor):
    """Back to the lowercase values of 0001."""
    for model_name in STATUS_MODELS:
        Model = apps.get_model('storeman', model_name)
        for value in ('PENDING', 'APPROVED', 'REJECTED'):
            Model.objects.filter(approval_status=value).update(approval_status=value.lower())


def approval_field(db_index=False):
    return models.CharField(
        choices=APPROVAL_CHOICES,
        db_index=db_index,
        default='PENDING',
        max_length=20,
        verbose_name='Approval status',
    )


class Migration(migrations.Migration):
    """Uppercase approval statuses; add UnitConversion, BorrowSource and borrow fields."""

    dependencies = [
        ('storeman', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(uppercase_statuses, lowercase_statuses),
        migrations.AlterField(model_name='stockrequest', name='approval_status', field=approval_field()),
        migrations.AlterField(model_name='receivedetail', name='approval_status', field=approval_field(db_index=True)),
        migrations.AlterField(model_name='issuedetail', name='approval_status', field=approval_field(db_index=True)),
        migrations.AlterField(model_name='fuelrecord', name='approval_status', field=approval_field()),
        migrations.AlterField(model_name='rrprecord', name='approval_status', field=approval_field(db_index=True)),
        migrations.AlterField(
            model_name='receivedetail',
            name='source',
            field=models.CharField(
                choices=[('request', 'Request'), ('direct', 'Direct'), ('fuel', 'Fuel'),
                         ('transfer', 'Balance transfer'), ('borrow', 'Borrow')],
                default='direct',
                max_length=20,
                verbose_name='Source',
            ),
        ),
        migrations.AlterField(
            model_name='stockmove',
            name='kind',
            field=models.CharField(
                choices=[('receive', 'Receive'), ('issue', 'Issue'), ('transfer', 'Transfer'),
                         ('adjust', 'Adjustment'), ('reversal', 'Reversal'), ('return', 'Borrow return')],
                default='adjust',
                max_length=20,
                verbose_name='Kind',
            ),
        ),
        migrations.CreateModel(
            name='UnitConversion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nac_code', models.CharField(max_length=50, verbose_name='NAC code')),
                ('requested_unit', models.CharField(max_length=20, verbose_name='Requested unit')),
                ('received_unit', models.CharField(max_length=20, verbose_name='Received unit')),
                ('conversion_base', models.DecimalField(decimal_places=4, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.0001'))], verbose_name='Conversion base')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Unit conversion',
                'verbose_name_plural': 'Unit conversions',
                'ordering': ['nac_code', 'requested_unit', 'received_unit'],
                'constraints': [
                    models.UniqueConstraint(fields=('nac_code', 'requested_unit', 'received_unit'), name='unique_unit_conversion'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BorrowSource',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('source_name', models.CharField(max_length=255, unique=True, verbose_name='Source name')),
                ('source_code', models.CharField(blank=True, default='', max_length=50, verbose_name='Source code')),
                ('contact_person', models.CharField(blank=True, default='', max_length=100, verbose_name='Contact person')),
                ('contact_phone', models.CharField(blank=True, default='', max_length=50, verbose_name='Contact phone')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Borrow source',
                'verbose_name_plural': 'Borrow sources',
                'ordering': ['source_name'],
            },
        ),
        migrations.AddField(
            model_name='receivedetail',
            name='conversion_base',
            field=models.DecimalField(decimal_places=4, default=Decimal('1'), help_text='Received units per stock unit.', max_digits=12, verbose_name='Conversion base'),
        ),
        migrations.AddField(
            model_name='receivedetail',
            name='borrow_source',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='receives', to='storeman.borrowsource', verbose_name='Borrow source'),
        ),
        migrations.AddField(
            model_name='receivedetail',
            name='borrow_status',
            field=models.CharField(blank=True, choices=[('ACTIVE', 'Active'), ('RETURNED', 'Returned')], default='', max_length=20, verbose_name='Borrow status'),
        ),
        migrations.AddField(
            model_name='receivedetail',
            name='borrow_reference_number',
            field=models.CharField(blank=True, default='', max_length=100, verbose_name='Borrow reference'),
        ),
        migrations.AddField(
            model_name='receivedetail',
            name='return_date',
            field=models.DateField(blank=True, null=True, verbose_name='Return date'),
        ),
        migrations.AddField(
            model_name='stockrequest',
            name='is_closed',
            field=models.BooleanField(default=False, help_text='Closed on a partial receive; no further receives expected.', verbose_name='Closed'),
        ),
    ]
