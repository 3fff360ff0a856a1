"""
Tests for borrow receives and returns.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from storeman import stock, StockError
from storeman.models import (
    ApprovalStatus,
    BorrowSource,
    BorrowStatus,
    MoveKind,
    ReceiveDetail,
    ReceiveSource,
)


pytestmark = pytest.mark.django_db


@pytest.fixture
def lender(db):
    return BorrowSource.objects.create(source_name='Central Store', source_code='CS')


@pytest.fixture
def borrowed(item, lender, today):
    """10 units borrowed into GT 12345 and approved."""
    receive = stock.receive_borrowed('GT 12345', 10, today, lender, reference_number='BR-1')
    return stock.approve_receive(receive.pk)


class TestReceiveBorrowed:

    def test_pending_until_approved(self, item, lender, today):
        receive = stock.receive_borrowed(
            'GT 12345', 10, today, lender, received_by='storekeeper', reference_number='BR-1',
        )

        assert receive.source == ReceiveSource.BORROW
        assert receive.borrow_status == BorrowStatus.ACTIVE
        assert receive.borrow_source == lender
        assert receive.borrow_reference_number == 'BR-1'
        assert receive.approval_status == ApprovalStatus.PENDING
        assert stock.get_balance('GT 12345') == Decimal('100')

        stock.approve_receive(receive.pk)
        assert stock.get_balance('GT 12345') == Decimal('110')

    def test_source_by_id(self, item, lender, today):
        receive = stock.receive_borrowed('GT 12345', 3, today, lender.pk)
        assert receive.borrow_source_id == lender.pk

    def test_unknown_source(self, item, today):
        with pytest.raises(StockError) as exc:
            stock.receive_borrowed('GT 12345', 10, today, 424242)

        assert exc.value.code == 'NOT_FOUND'

    def test_inactive_source(self, item, lender, today):
        lender.is_active = False
        lender.save()

        with pytest.raises(StockError) as exc:
            stock.receive_borrowed('GT 12345', 10, today, lender)

        assert exc.value.code == 'INVALID_STATUS'
        assert not ReceiveDetail.objects.exists()

    def test_same_source_code_and_date_is_duplicate(self, item, lender, today, tomorrow):
        first = stock.receive_borrowed('GT 12345', 10, today, lender)

        with pytest.raises(StockError) as exc:
            stock.receive_borrowed('GT 12345', 5, today, lender)
        assert exc.value.code == 'DUPLICATE_REFERENCE'

        stock.receive_borrowed('GT 12345', 5, tomorrow, lender)
        stock.reject_receive(first.pk)
        stock.receive_borrowed('GT 12345', 5, today, lender)

    def test_invalid_quantity(self, item, lender, today):
        with pytest.raises(StockError) as exc:
            stock.receive_borrowed('GT 12345', 0, today, lender)

        assert exc.value.code == 'INVALID_QUANTITY'


class TestReturnBorrowed:

    def test_return_takes_goods_back(self, borrowed, tomorrow):
        stock.return_borrowed(borrowed.pk, tomorrow, returned_by='storekeeper')

        borrowed.refresh_from_db()
        assert borrowed.borrow_status == BorrowStatus.RETURNED
        assert borrowed.return_date == tomorrow
        assert stock.get_balance('GT 12345') == Decimal('100')

        move = borrowed.stock_item.moves.order_by('-id').first()
        assert move.kind == MoveKind.RETURN
        assert move.delta == Decimal('-10')
        assert move.metadata == {'returned_by': 'storekeeper'}

    def test_pending_borrow_cannot_be_returned(self, item, lender, today):
        receive = stock.receive_borrowed('GT 12345', 10, today, lender)

        with pytest.raises(StockError) as exc:
            stock.return_borrowed(receive.pk, today)

        assert exc.value.code == 'INVALID_STATUS'

    def test_return_twice(self, borrowed, today):
        stock.return_borrowed(borrowed.pk, today)

        with pytest.raises(StockError) as exc:
            stock.return_borrowed(borrowed.pk, today)

        assert exc.value.code == 'INVALID_STATUS'
        assert stock.get_balance('GT 12345') == Decimal('100')

    def test_ordinary_receive_cannot_be_returned(self, item, today):
        receive = stock.receive('GT 12345', 10, today)

        with pytest.raises(StockError) as exc:
            stock.return_borrowed(receive.pk, today)

        assert exc.value.code == 'INVALID_STATUS'

    def test_return_before_borrow_date(self, borrowed, yesterday):
        with pytest.raises(StockError) as exc:
            stock.return_borrowed(borrowed.pk, yesterday)

        assert exc.value.code == 'INVALID_DATE'

    def test_consumed_goods_cannot_be_returned(self, other_item, lender, today, tomorrow):
        receive = stock.receive_borrowed('GT 99999', 10, today, lender)
        stock.approve_receive(receive.pk)
        stock.issue([{'nac_code': 'GT 99999', 'quantity': 5}], today)

        with pytest.raises(StockError) as exc:
            stock.return_borrowed(receive.pk, tomorrow)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        receive.refresh_from_db()
        assert receive.borrow_status == BorrowStatus.ACTIVE
        assert stock.get_balance('GT 99999') == Decimal('5')

    def test_returned_borrow_is_frozen(self, borrowed, today):
        stock.return_borrowed(borrowed.pk, today)

        with pytest.raises(StockError) as exc:
            stock.delete_receive(borrowed.pk)
        assert exc.value.code == 'DEPENDENT_RECORD_EXISTS'

        with pytest.raises(StockError) as exc:
            stock.update_receive(borrowed.pk, quantity=20)
        assert exc.value.code == 'DEPENDENT_RECORD_EXISTS'

    def test_return_consumes_its_own_lot(self, other_item, lender, today):
        borrow = stock.receive_borrowed('GT 99999', 10, today, lender)
        stock.approve_receive(borrow.pk)
        bought = stock.receive('GT 99999', 5, today + timedelta(days=1))

        stock.return_borrowed(borrow.pk, today + timedelta(days=2))

        borrow.refresh_from_db()
        bought.refresh_from_db()
        assert borrow.remaining_quantity == Decimal('0')
        assert bought.remaining_quantity == Decimal('5')
        assert stock.get_balance('GT 99999') == Decimal('5')
