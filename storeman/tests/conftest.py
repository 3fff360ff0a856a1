"""
Pytest fixtures for Storeman tests.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from storeman import stock
from storeman.models import ApprovalStatus, ConfigEntry, StockRequest


User = get_user_model()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='storekeeper',
        password='testpass123'
    )


@pytest.fixture
def today():
    """Today's date (UTC, same clock as move timestamps)."""
    return timezone.now().date()


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


@pytest.fixture
def tomorrow(today):
    return today + timedelta(days=1)


@pytest.fixture
def fiscal_year(db):
    """Current fiscal year stored the way the app reads it."""
    ConfigEntry.objects.create(config_type='rrp', config_name='current_fy', config_value='2081/82')
    return '2081/82'


@pytest.fixture
def item(db):
    """Spare part with an opening balance of 100."""
    return stock.create_item(
        'GT 12345',
        current_balance=Decimal('100'),
        item_name='Hydraulic filter',
        part_numbers='HF-100',
        unit='pcs',
        open_amount=Decimal('5000'),
    )


@pytest.fixture
def other_item(db):
    """Second spare part, empty."""
    return stock.create_item('GT 99999', item_name='Oil seal', unit='pcs')


@pytest.fixture
def diesel(db):
    """Diesel stock row (default fuel NAC code) holding 500 litres."""
    return stock.create_item('GT 07986', current_balance=Decimal('500'), item_name='Diesel', unit='ltr')


@pytest.fixture
def petrol(db):
    return stock.create_item('GT 00000', current_balance=Decimal('200'), item_name='Petrol', unit='ltr')


@pytest.fixture
def stock_request(db, today):
    """Approved request for 50 units of a new part."""
    return StockRequest.objects.create(
        request_number='REQ-001',
        request_date=today - timedelta(days=10),
        nac_code='GT 55555',
        item_name='Brake pad',
        part_number='BP-9',
        equipment_number='101-103',
        unit='set',
        requested_quantity=Decimal('50'),
        requested_by='workshop',
        approval_status=ApprovalStatus.APPROVED,
    )
