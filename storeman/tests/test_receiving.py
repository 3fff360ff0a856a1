"""
Tests for receives: booking against requests, approval, edit and delete.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from storeman import stock, StockError
from storeman.models import ApprovalStatus, MoveKind, ReceiveDetail, ReceiveSource, StockItem, UnitConversion


pytestmark = pytest.mark.django_db


class TestReceiveAgainstRequest:
    """Receives booked against a StockRequest."""

    def test_partial_then_complete(self, stock_request, today, tomorrow):
        """Request for 50: 30 in, 30 refused, 20 in completes it."""
        stock.receive('GT 55555', 30, today, request=stock_request)

        stock_request.refresh_from_db()
        assert stock.get_balance('GT 55555') == Decimal('30')
        assert not stock_request.is_received
        assert stock_request.outstanding_quantity == Decimal('20')

        with pytest.raises(StockError) as exc:
            stock.receive('GT 55555', 30, tomorrow, request=stock_request)
        assert exc.value.code == 'QUANTITY_EXCEEDS_REQUEST'
        assert exc.value.available == Decimal('20')
        assert stock.get_balance('GT 55555') == Decimal('30')

        stock.receive('GT 55555', 20, tomorrow, request=stock_request)

        stock_request.refresh_from_db()
        assert stock_request.is_received
        assert stock.get_balance('GT 55555') == Decimal('50')

    def test_same_request_code_and_date_is_duplicate(self, stock_request, today):
        stock.receive('GT 55555', 10, today, request=stock_request)

        with pytest.raises(StockError) as exc:
            stock.receive('GT 55555', 5, today, request=stock_request)

        assert exc.value.code == 'DUPLICATE_REFERENCE'
        assert exc.value.status_code == 409

    def test_pending_receives_count_against_request(self, stock_request, today, tomorrow):
        pending = stock.submit_receive('GT 55555', 30, today, request=stock_request)

        with pytest.raises(StockError) as exc:
            stock.receive('GT 55555', 25, tomorrow, request=stock_request)
        assert exc.value.code == 'QUANTITY_EXCEEDS_REQUEST'

        stock.reject_receive(pending.pk, rejected_by='supervisor', reason='Wrong part')
        stock.receive('GT 55555', 25, tomorrow, request=stock_request)
        assert stock.get_balance('GT 55555') == Decimal('25')

    def test_source_defaults_to_request(self, stock_request, today):
        receive = stock.receive('GT 55555', 10, today, request=stock_request)
        assert receive.source == ReceiveSource.REQUEST


class TestReceiveDetails:
    """Descriptive fields merge into the stock item."""

    def test_unknown_code_is_created(self, today):
        receive = stock.receive('GT 42424', 12, today, item_name='Bearing', unit='pcs', location='Rack 4')

        item = StockItem.objects.get(nac_code='GT 42424')
        assert item.current_balance == Decimal('12')
        assert item.location == 'Rack 4'
        assert receive.source == ReceiveSource.DIRECT
        assert receive.approval_status == ApprovalStatus.APPROVED

    def test_part_numbers_and_equipment_merge(self, item, today, tomorrow):
        stock.receive('GT 12345', 5, today, part_number='HF-200', equipment_number='101-103, 110')
        stock.receive('GT 12345', 5, tomorrow, part_number='HF-100', equipment_number='Crane,102')

        item.refresh_from_db()
        assert item.part_numbers == 'HF-100,HF-200'
        assert item.applicable_equipments == '101,102,103,110,Crane'

    def test_blank_location_filled_not_overwritten(self, item, today, tomorrow):
        stock.receive('GT 12345', 1, today, location='Rack 1')
        stock.receive('GT 12345', 1, tomorrow, location='Rack 9')

        item.refresh_from_db()
        assert item.location == 'Rack 1'

    def test_invalid_quantity(self, item, today):
        with pytest.raises(StockError) as exc:
            stock.receive('GT 12345', 0, today)

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_unknown_field_rejected(self, item, today):
        with pytest.raises(TypeError):
            stock.receive('GT 12345', 1, today, colour='red')

    def test_receive_fuel_uses_fuel_code(self, today):
        receive = stock.receive_fuel('diesel', 1000, today, received_by='depot')

        assert receive.stock_item.nac_code == 'GT 07986'
        assert receive.source == ReceiveSource.FUEL
        assert stock.get_balance('GT 07986') == Decimal('1000')


class TestReceiveApproval:
    """submit → approve / reject."""

    def test_pending_receive_leaves_stock_alone(self, item, today):
        stock.submit_receive('GT 12345', 40, today)
        assert stock.get_balance('GT 12345') == Decimal('100')

    def test_approve_adds_stock(self, item, today):
        receive = stock.submit_receive('GT 12345', 40, today)
        stock.approve_receive(receive.pk, approved_by='supervisor')

        receive.refresh_from_db()
        assert receive.approval_status == ApprovalStatus.APPROVED
        assert receive.approved_by == 'supervisor'
        assert stock.get_balance('GT 12345') == Decimal('140')
        assert item.moves.get().kind == MoveKind.RECEIVE

    def test_approve_twice(self, item, today):
        receive = stock.submit_receive('GT 12345', 40, today)
        stock.approve_receive(receive.pk)

        with pytest.raises(StockError) as exc:
            stock.approve_receive(receive.pk)

        assert exc.value.code == 'INVALID_STATUS'
        assert stock.get_balance('GT 12345') == Decimal('140')

    def test_reject_approved(self, item, today):
        receive = stock.receive('GT 12345', 40, today)

        with pytest.raises(StockError) as exc:
            stock.reject_receive(receive.pk)

        assert exc.value.code == 'INVALID_STATUS'

    def test_approve_missing(self, db):
        with pytest.raises(StockError) as exc:
            stock.approve_receive(424242)

        assert exc.value.code == 'NOT_FOUND'


class TestUpdateReceive:
    """Edits re-derive the ledger effect."""

    def test_quantity_change_applies_difference(self, item, today):
        receive = stock.receive('GT 12345', 30, today)
        stock.update_receive(receive.pk, quantity=45)

        assert stock.get_balance('GT 12345') == Decimal('145')

    def test_code_change_moves_whole_quantity(self, item, other_item, today):
        receive = stock.receive('GT 12345', 30, today)
        stock.update_receive(receive.pk, quantity=40, nac_code='GT 99999')

        assert stock.get_balance('GT 12345') == Decimal('100')
        assert stock.get_balance('GT 99999') == Decimal('40')
        receive.refresh_from_db()
        assert receive.stock_item.nac_code == 'GT 99999'

    def test_cannot_shrink_below_what_was_issued(self, today):
        receive = stock.receive('GT 42424', 30, today)
        stock.issue([{'nac_code': 'GT 42424', 'quantity': 25}], today)

        with pytest.raises(StockError) as exc:
            stock.update_receive(receive.pk, quantity=10)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert stock.get_balance('GT 42424') == Decimal('5')

    def test_request_ceiling_on_update(self, stock_request, today):
        receive = stock.receive('GT 55555', 30, today, request=stock_request)

        stock.update_receive(receive.pk, quantity=50)
        stock_request.refresh_from_db()
        assert stock_request.is_received

        with pytest.raises(StockError) as exc:
            stock.update_receive(receive.pk, quantity=51)
        assert exc.value.code == 'QUANTITY_EXCEEDS_REQUEST'

    def test_pending_update_leaves_stock_alone(self, item, today, tomorrow):
        receive = stock.submit_receive('GT 12345', 30, today)
        stock.update_receive(receive.pk, quantity=60, receive_date=tomorrow)

        receive.refresh_from_db()
        assert receive.received_quantity == Decimal('60')
        assert receive.receive_date == tomorrow
        assert stock.get_balance('GT 12345') == Decimal('100')


class TestDeleteReceive:
    """Deleting a receive reverses it."""

    def test_delete_approved(self, stock_request, today):
        receive = stock.receive('GT 55555', 50, today, request=stock_request)
        stock.delete_receive(receive.pk)

        stock_request.refresh_from_db()
        assert stock.get_balance('GT 55555') == Decimal('0')
        assert not stock_request.is_received
        assert not ReceiveDetail.objects.filter(pk=receive.pk).exists()

        reversal = StockItem.objects.get(nac_code='GT 55555').moves.last()
        assert reversal.kind == MoveKind.REVERSAL
        assert reversal.delta == Decimal('-50')

    def test_delete_pending(self, item, today):
        receive = stock.submit_receive('GT 12345', 30, today)
        stock.delete_receive(receive.pk)

        assert stock.get_balance('GT 12345') == Decimal('100')
        assert item.moves.count() == 0

    def test_delete_blocked_by_rrp(self, item, today):
        receive = stock.receive('GT 12345', 10, today)
        stock.create_rrp('L001', today, 'Himal Traders', [{'receive_id': receive.pk, 'price': 1000}])

        with pytest.raises(StockError) as exc:
            stock.delete_receive(receive.pk)

        assert exc.value.code == 'DEPENDENT_RECORD_EXISTS'
        assert stock.get_balance('GT 12345') == Decimal('110')

    def test_delete_after_consumption(self, today):
        receive = stock.receive('GT 42424', 30, today)
        stock.issue([{'nac_code': 'GT 42424', 'quantity': 10}], today + timedelta(days=1))

        with pytest.raises(StockError) as exc:
            stock.delete_receive(receive.pk)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert ReceiveDetail.objects.filter(pk=receive.pk).exists()


class TestUnitConversion:
    """Request in sets, receive in pieces: 4 pcs make one set."""

    @pytest.fixture
    def pieces_per_set(self, db):
        return stock.save_unit_conversion('GT 55555', 'set', 'pcs', 4)

    def test_receive_converted_to_request_unit(self, stock_request, pieces_per_set, today):
        receive = stock.receive('GT 55555', 40, today, request=stock_request, unit='pcs')

        assert receive.conversion_base == Decimal('4')
        assert receive.stock_quantity == Decimal('10')
        assert stock.get_balance('GT 55555') == Decimal('10')
        assert StockItem.objects.get(nac_code='GT 55555').unit == 'set'
        stock_request.refresh_from_db()
        assert stock_request.outstanding_quantity == Decimal('40')

    def test_approval_converts(self, stock_request, pieces_per_set, today):
        receive = stock.submit_receive('GT 55555', 40, today, request=stock_request, unit='pcs')
        assert stock.get_balance('GT 55555') == Decimal('0')

        stock.approve_receive(receive.pk)

        receive.refresh_from_db()
        assert stock.get_balance('GT 55555') == Decimal('10')
        assert receive.remaining_quantity == Decimal('10')

    def test_conversion_saved_after_booking_applies_on_approval(self, stock_request, today):
        receive = stock.submit_receive('GT 55555', 40, today, request=stock_request, unit='pcs')
        stock.save_unit_conversion('GT 55555', 'set', 'pcs', 4)

        stock.approve_receive(receive.pk)

        assert stock.get_balance('GT 55555') == Decimal('10')

    def test_request_ceiling_in_request_unit(self, stock_request, pieces_per_set, today):
        with pytest.raises(StockError) as exc:
            stock.receive('GT 55555', 204, today, request=stock_request, unit='pcs')

        assert exc.value.code == 'QUANTITY_EXCEEDS_REQUEST'
        assert exc.value.requested == Decimal('51')

        stock.receive('GT 55555', 200, today, request=stock_request, unit='pcs')
        stock_request.refresh_from_db()
        assert stock_request.is_received

    def test_same_unit_is_not_converted(self, stock_request, pieces_per_set, today):
        stock.receive('GT 55555', 40, today, request=stock_request, unit='set')
        assert stock.get_balance('GT 55555') == Decimal('40')

    def test_update_and_delete_use_stock_quantity(self, stock_request, pieces_per_set, today):
        receive = stock.receive('GT 55555', 40, today, request=stock_request, unit='pcs')

        stock.update_receive(receive.pk, quantity=80)
        assert stock.get_balance('GT 55555') == Decimal('20')

        stock.delete_receive(receive.pk)
        assert stock.get_balance('GT 55555') == Decimal('0')

    def test_get_and_replace(self, pieces_per_set):
        assert stock.get_unit_conversion('GT 55555', 'set', 'pcs') == Decimal('4')
        assert stock.get_unit_conversion('GT 55555', 'set', 'box') is None
        assert stock.get_unit_conversion('GT 55555', 'set', 'set') is None

        stock.save_unit_conversion('GT 55555', 'set', 'pcs', 6)

        assert UnitConversion.objects.count() == 1
        assert stock.get_unit_conversion('GT 55555', 'set', 'pcs') == Decimal('6')

    @pytest.mark.parametrize('base', [0, -2])
    def test_base_must_be_positive(self, db, base):
        with pytest.raises(StockError) as exc:
            stock.save_unit_conversion('GT 55555', 'set', 'pcs', base)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not UnitConversion.objects.exists()


class TestApproveAndClose:
    """Approving a partial receive can close its request."""

    def test_close_marks_request_received(self, stock_request, today, tomorrow):
        receive = stock.submit_receive('GT 55555', 20, today, request=stock_request)

        stock.approve_receive(receive.pk, approved_by='supervisor', close_request=True)

        stock_request.refresh_from_db()
        assert stock_request.is_closed
        assert stock_request.is_received
        assert stock_request.outstanding_quantity == Decimal('0')
        assert stock.get_balance('GT 55555') == Decimal('20')

        with pytest.raises(StockError) as exc:
            stock.receive('GT 55555', 5, tomorrow, request=stock_request)
        assert exc.value.code == 'QUANTITY_EXCEEDS_REQUEST'

    def test_plain_approve_keeps_request_open(self, stock_request, today):
        receive = stock.submit_receive('GT 55555', 20, today, request=stock_request)

        stock.approve_receive(receive.pk)

        stock_request.refresh_from_db()
        assert not stock_request.is_closed
        assert not stock_request.is_received
        assert stock_request.outstanding_quantity == Decimal('30')

    def test_close_without_request(self, item, today):
        receive = stock.submit_receive('GT 12345', 20, today)

        with pytest.raises(StockError) as exc:
            stock.approve_receive(receive.pk, close_request=True)

        assert exc.value.code == 'NOT_FOUND'
        receive.refresh_from_db()
        assert receive.approval_status == ApprovalStatus.PENDING
        assert stock.get_balance('GT 12345') == Decimal('100')


class TestStoredStatus:
    """Approval statuses are stored uppercase."""

    def test_pending_and_approved_values(self, item, today):
        pending = stock.submit_receive('GT 12345', 5, today)
        approved = stock.receive('GT 12345', 5, today)

        stored = dict(ReceiveDetail.objects.values_list('pk', 'approval_status'))

        assert stored[pending.pk] == 'PENDING'
        assert stored[approved.pk] == 'APPROVED'

    def test_rejected_value(self, item, today):
        receive = stock.submit_receive('GT 12345', 5, today)
        stock.reject_receive(receive.pk)

        assert ReceiveDetail.objects.filter(approval_status='REJECTED').count() == 1
