"""
Tests for the FIFO valuation rebuild.
"""

from decimal import Decimal

import pytest

from storeman import stock
from storeman.models import ReceiveDetail, StockItem
from storeman.valuation import lot_unit_cost, rebuild_all, rebuild_item_state


pytestmark = pytest.mark.django_db


@pytest.fixture
def rrp_lot(item, today):
    """20 units received today at 60 each (approved RRP of 1200)."""
    receive = stock.receive('GT 12345', 20, today)
    (rrp,) = stock.create_rrp('L001', today, 'Himal Traders', [{'receive_id': receive.pk, 'price': 1200}])
    stock.approve_rrp(rrp.rrp_number)
    return receive


class TestFIFO:

    def test_consumes_opening_lot_first(self, rrp_lot, item, tomorrow):
        """100 @ 50 opening, 20 @ 60 received: issuing 110 costs 5600."""
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 110}], tomorrow)

        item.refresh_from_db()
        rrp_lot.refresh_from_db()
        assert issue.issue_cost == Decimal('5600.0000')
        assert issue.remaining_balance == Decimal('10')
        assert item.open_remaining_quantity == Decimal('0')
        assert rrp_lot.remaining_quantity == Decimal('10')

    def test_lot_unit_cost(self, rrp_lot):
        assert lot_unit_cost(rrp_lot) == Decimal('60')

    def test_uncosted_receive(self, item, today):
        receive = stock.receive('GT 12345', 5, today)
        assert lot_unit_cost(receive) == Decimal('0')

    def test_adjustment_consumes_lots(self, item, tomorrow):
        stock.adjust('GT 12345', 90, reason='Count')
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 10}], tomorrow)

        item.refresh_from_db()
        assert issue.issue_cost == Decimal('500.0000')
        assert issue.remaining_balance == Decimal('80')
        assert item.open_remaining_quantity == Decimal('80')

    def test_pending_receive_not_a_lot(self, item, today, tomorrow):
        pending = stock.submit_receive('GT 12345', 50, today)
        stock.issue([{'nac_code': 'GT 12345', 'quantity': 10}], tomorrow)

        pending.refresh_from_db()
        assert pending.remaining_quantity == Decimal('50')

    def test_rebuild_all(self, item, other_item, today):
        stock.issue([{'nac_code': 'GT 12345', 'quantity': 10}], today)
        StockItem.objects.filter(pk=item.pk).update(open_remaining_quantity=Decimal('0'))

        assert rebuild_all() == 2
        item.refresh_from_db()
        assert item.open_remaining_quantity == Decimal('90')

    def test_rebuild_selected_codes(self, item, other_item):
        assert rebuild_all(['GT 99999']) == 1

    def test_switched_off(self, item, today, settings):
        settings.STOREMAN = {'FISCAL_YEAR': '2081/82', 'REBUILD_VALUATION': False}

        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)

        assert issue.issue_cost == Decimal('0')
        assert issue.remaining_balance == Decimal('70')

    def test_rebuild_is_repeatable(self, rrp_lot, item, tomorrow):
        stock.issue([{'nac_code': 'GT 12345', 'quantity': 110}], tomorrow)
        rebuild_item_state(item)
        rebuild_item_state(item)

        assert ReceiveDetail.objects.get(pk=rrp_lot.pk).remaining_quantity == Decimal('10')
