"""
Tests for stock item maintenance.
"""

from decimal import Decimal

import pytest

from storeman import stock, StockError
from storeman.models import MoveKind, StockItem


pytestmark = pytest.mark.django_db


class TestCreateItem:

    def test_initial_balance_is_opening_lot(self, item):
        assert item.current_balance == Decimal('100')
        assert item.open_quantity == Decimal('100')
        assert item.open_remaining_quantity == Decimal('100')
        assert item.open_unit_cost == Decimal('50')
        assert item.moves.count() == 0

    def test_duplicate_code(self, item):
        with pytest.raises(StockError) as exc:
            stock.create_item('GT 12345')

        assert exc.value.code == 'DUPLICATE_REFERENCE'

    def test_negative_balance(self, db):
        with pytest.raises(StockError) as exc:
            stock.create_item('GT 11111', current_balance=-1)

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_unknown_field(self, db):
        with pytest.raises(TypeError):
            stock.create_item('GT 11111', colour='red')


class TestUpdateItem:

    def test_descriptive_fields(self, item):
        updated = stock.update_item('GT 12345', location='Rack 2', card_number='C-17')

        assert updated.location == 'Rack 2'
        assert updated.card_number == 'C-17'
        assert updated.current_balance == Decimal('100')

    def test_balance_change_is_stock_take(self, item):
        updated = stock.update_item('GT 12345', current_balance=120, reason='Recount')

        move = item.moves.get()
        assert updated.current_balance == Decimal('120')
        assert move.kind == MoveKind.ADJUST
        assert move.delta == Decimal('20')
        assert move.reason == 'Adjustment: Recount'

    def test_rename_keeps_history(self, item, today):
        stock.issue([{'nac_code': 'GT 12345', 'quantity': 10}], today)
        updated = stock.update_item('GT 12345', new_nac_code='GT 12346')

        assert updated.nac_code == 'GT 12346'
        assert stock.get_balance('GT 12346') == Decimal('90')
        assert stock.ledger('GT 12346').count() == 1
        assert updated.issues.count() == 1

    def test_rename_onto_existing(self, item, other_item):
        with pytest.raises(StockError) as exc:
            stock.update_item('GT 12345', new_nac_code='GT 99999')

        assert exc.value.code == 'DUPLICATE_REFERENCE'

    def test_unknown(self, db):
        with pytest.raises(StockError) as exc:
            stock.update_item('GT 00404', location='Rack 2')

        assert exc.value.code == 'NOT_FOUND'


class TestDeleteItem:

    def test_unreferenced(self, item):
        stock.delete_item('GT 12345')
        assert not StockItem.objects.filter(nac_code='GT 12345').exists()

    def test_with_moves(self, item):
        stock.adjust_balance('GT 12345', 1, 'add')

        with pytest.raises(StockError) as exc:
            stock.delete_item('GT 12345')

        assert exc.value.code == 'DEPENDENT_RECORD_EXISTS'
        assert StockItem.objects.filter(nac_code='GT 12345').exists()

    def test_with_pending_receive(self, item, today):
        stock.submit_receive('GT 12345', 1, today)

        with pytest.raises(StockError) as exc:
            stock.delete_item('GT 12345')

        assert exc.value.code == 'DEPENDENT_RECORD_EXISTS'

    def test_unknown(self, db):
        with pytest.raises(StockError) as exc:
            stock.delete_item('GT 00404')

        assert exc.value.code == 'NOT_FOUND'
