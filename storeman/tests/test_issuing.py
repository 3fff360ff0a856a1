"""
Tests for issues: multi-line slips, approval, rejection, edit and delete.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from storeman import stock, StockError
from storeman.models import ApprovalStatus, IssueDetail, IssueSource, MoveKind


pytestmark = pytest.mark.django_db


class TestIssue:
    """Tests for stock.issue()."""

    def test_issue_subtracts_and_records_balance(self, item, today):
        """100 in stock, issue 30: balance and remaining_balance both 70."""
        (issue,) = stock.issue(
            [{'nac_code': 'GT 12345', 'quantity': 30, 'issued_for': '101'}],
            today,
            issued_by='storekeeper',
        )

        assert stock.get_balance('GT 12345') == Decimal('70')
        assert issue.remaining_balance == Decimal('70')
        assert issue.approval_status == ApprovalStatus.PENDING
        assert issue.source == IssueSource.SPARE
        assert issue.fiscal_year == '2081/82'
        assert issue.issue_slip_number == '1Y2081/82'

    def test_issue_costed_from_opening_lot(self, item, today):
        """Opening lot: 100 units worth 5000, so 30 cost 1500."""
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        assert issue.issue_cost == Decimal('1500.0000')

    def test_lines_share_one_slip(self, item, other_item, today):
        stock.receive('GT 99999', 10, today)
        issues = stock.issue(
            [
                {'nac_code': 'GT 12345', 'quantity': 5, 'issued_for': '101'},
                {'nac_code': 'GT 99999', 'quantity': 2, 'issued_for': '102'},
            ],
            today,
        )

        assert len(issues) == 2
        assert {i.issue_slip_number for i in issues} == {'1Y2081/82'}
        assert stock.issues_on_slip('1Y2081/82').count() == 2

    def test_lines_for_one_code_are_summed(self, item, today):
        """Two lines of 60 and 50 against 100 fail together."""
        with pytest.raises(StockError) as exc:
            stock.issue(
                [
                    {'nac_code': 'GT 12345', 'quantity': 60},
                    {'nac_code': 'GT 12345', 'quantity': 50},
                ],
                today,
            )

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('100')
        assert exc.value.requested == Decimal('110')
        assert stock.get_balance('GT 12345') == Decimal('100')
        assert not IssueDetail.objects.exists()

    def test_all_line_errors_reported(self, item, other_item, today):
        with pytest.raises(StockError) as exc:
            stock.issue(
                [
                    {'nac_code': 'GT 12345', 'quantity': 500},
                    {'nac_code': 'GT 00404', 'quantity': 1},
                    {'nac_code': 'GT 99999', 'quantity': 0},
                ],
                today,
            )

        codes = {(e['nac_code'], e['code']) for e in exc.value.data['errors']}
        assert codes == {
            ('GT 12345', 'INSUFFICIENT_STOCK'),
            ('GT 00404', 'NOT_FOUND'),
            ('GT 99999', 'INVALID_QUANTITY'),
        }
        assert stock.get_balance('GT 12345') == Decimal('100')

    def test_empty_batch(self, item, today):
        with pytest.raises(StockError) as exc:
            stock.issue([], today)

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_issue_writes_issue_move(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)

        move = item.moves.get()
        assert move.kind == MoveKind.ISSUE
        assert move.delta == Decimal('-30')
        assert move.reference == issue

    def test_missing_fiscal_year(self, item, today, settings):
        settings.STOREMAN = {}

        with pytest.raises(StockError) as exc:
            stock.issue([{'nac_code': 'GT 12345', 'quantity': 1}], today)

        assert exc.value.code == 'CONFIG_MISSING'
        assert exc.value.status_code == 500

    def test_fiscal_year_from_config_table(self, item, today, settings, fiscal_year):
        settings.STOREMAN = {}

        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 1}], today)
        assert issue.fiscal_year == fiscal_year


class TestIssueApproval:
    """approve_issues / reject_issues."""

    def test_approve_does_not_touch_stock(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        (approved,) = stock.approve_issues([issue.pk], approved_by='supervisor')

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.approved_by == 'supervisor'
        assert stock.get_balance('GT 12345') == Decimal('70')

    def test_approve_twice(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        stock.approve_issues([issue.pk])

        with pytest.raises(StockError) as exc:
            stock.approve_issues([issue.pk])

        assert exc.value.code == 'INVALID_STATUS'

    def test_reject_restores_stock(self, item, today):
        issues = stock.issue(
            [
                {'nac_code': 'GT 12345', 'quantity': 30},
                {'nac_code': 'GT 12345', 'quantity': 20},
            ],
            today,
        )

        removed = stock.reject_issues([i.pk for i in issues], rejected_by='supervisor')

        assert removed == 2
        assert stock.get_balance('GT 12345') == Decimal('100')
        assert not IssueDetail.objects.exists()
        assert item.moves.filter(kind=MoveKind.REVERSAL).count() == 2

    def test_reject_approved(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        stock.approve_issues([issue.pk])

        with pytest.raises(StockError) as exc:
            stock.reject_issues([issue.pk])

        assert exc.value.code == 'INVALID_STATUS'
        assert stock.get_balance('GT 12345') == Decimal('70')

    def test_unknown_issue(self, db):
        with pytest.raises(StockError) as exc:
            stock.approve_issues([424242])

        assert exc.value.code == 'NOT_FOUND'


class TestDeleteIssue:

    def test_delete_restores_stock(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        stock.approve_issues([issue.pk])
        stock.delete_issue(issue.pk)

        assert stock.get_balance('GT 12345') == Decimal('100')
        assert not IssueDetail.objects.filter(pk=issue.pk).exists()

    def test_later_balances_rebuilt(self, item, today, tomorrow):
        """Deleting an earlier issue lifts remaining_balance on later ones."""
        (first,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        (second,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 20}], tomorrow)
        assert second.remaining_balance == Decimal('50')

        stock.delete_issue(first.pk)

        second.refresh_from_db()
        assert second.remaining_balance == Decimal('80')
        assert stock.get_balance('GT 12345') == Decimal('80')

    def test_transfer_leg_protected(self, item, other_item, today):
        transfer = stock.transfer('GT 12345', 'GT 99999', 10, today)

        with pytest.raises(StockError) as exc:
            stock.delete_issue(transfer.issue_id)

        assert exc.value.code == 'DEPENDENT_RECORD_EXISTS'


class TestUpdateIssue:
    """Edits re-book stock and re-derive slip and cost."""

    def test_quantity_increase(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        issue = stock.update_issue(issue.pk, quantity=50)

        assert stock.get_balance('GT 12345') == Decimal('50')
        assert issue.remaining_balance == Decimal('50')
        assert issue.issue_cost == Decimal('2500.0000')

    def test_quantity_beyond_balance(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)

        with pytest.raises(StockError) as exc:
            stock.update_issue(issue.pk, quantity=131)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert stock.get_balance('GT 12345') == Decimal('70')

    def test_code_change(self, item, other_item, today):
        stock.receive('GT 99999', 40, today)
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)

        issue = stock.update_issue(issue.pk, nac_code='GT 99999')

        assert issue.stock_item.nac_code == 'GT 99999'
        assert stock.get_balance('GT 12345') == Decimal('100')
        assert stock.get_balance('GT 99999') == Decimal('10')

    def test_code_change_guarded(self, item, other_item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)

        with pytest.raises(StockError) as exc:
            stock.update_issue(issue.pk, nac_code='GT 99999')

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert stock.get_balance('GT 12345') == Decimal('70')

    def test_date_change_new_slip(self, item, today):
        stock.issue([{'nac_code': 'GT 12345', 'quantity': 5}], today)
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        issue = stock.update_issue(issue.pk, issue_date=today + timedelta(days=2))

        assert issue.issue_slip_number == '3Y2081/82'

    def test_date_change_of_only_issue_restarts_slip(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
        issue = stock.update_issue(issue.pk, issue_date=today + timedelta(days=2))

        assert issue.issue_slip_number == '1Y2081/82'

    def test_invalid_quantity(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)

        with pytest.raises(StockError) as exc:
            stock.update_issue(issue.pk, quantity=0)

        assert exc.value.code == 'INVALID_QUANTITY'


class TestPendingQueries:

    def test_pending_issues(self, item, today):
        (issue,) = stock.issue([{'nac_code': 'GT 12345', 'quantity': 1}], today)
        assert list(stock.pending_issues()) == [issue]

        stock.approve_issues([issue.pk])
        assert not stock.pending_issues().exists()
