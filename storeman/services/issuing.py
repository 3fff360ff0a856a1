"""
Issues — stock leaving a NAC code.

Stock is subtracted as soon as an issue is booked (PENDING). Approval only
changes status; rejection or deletion puts the quantity back.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from storeman.exceptions import StockError
from storeman.models.enums import ApprovalStatus, IssueSource, MoveKind
from storeman.models.fuel import FuelRecord
from storeman.models.issue import IssueDetail
from storeman.models.stock_item import StockItem
from storeman.models.transfer import BalanceTransfer
from storeman.services.ledger import (
    ADD,
    SUBTRACT,
    StockLedger,
    can_subtract,
    lock_items,
    stock_mutation,
    to_decimal,
)
from storeman.services.sequences import StockSequences
from storeman.valuation import COST_PLACES, revalue

logger = logging.getLogger('storeman')


def _issue_line(raw: dict) -> dict:
    return {
        'nac_code': raw['nac_code'],
        'quantity': to_decimal(raw['quantity']),
        'issued_for': raw.get('issued_for', ''),
        'part_number': raw.get('part_number', ''),
    }


def _lock_issues(issue_ids) -> list[IssueDetail]:
    ids = list(issue_ids)
    issues = list(IssueDetail.objects.select_for_update().filter(pk__in=ids).order_by('pk'))
    missing = set(ids) - {i.pk for i in issues}
    if missing:
        raise StockError('NOT_FOUND', issue_ids=sorted(missing))
    return issues


def _refuse_transfer_legs(issues) -> None:
    legs = BalanceTransfer.objects.filter(issue__in=issues).values_list('issue_id', flat=True)
    if legs:
        raise StockError('DEPENDENT_RECORD_EXISTS', issue_ids=sorted(legs), dependency='transfer')


class StockIssuing:
    """Issue lifecycle: book, approve, reject, edit, delete."""

    @classmethod
    def issue(cls, items, issue_date: date, issued_by: str = '', user=None) -> list[IssueDetail]:
        """
        Issue one or more lines under a single slip number.

        Every line is validated before anything is written; all problems
        are reported together in data['errors'].

        Args:
            items: [{'nac_code', 'quantity', 'issued_for', 'part_number'}, ...]

        Raises:
            StockError('INVALID_QUANTITY'): empty batch or quantity <= 0
            StockError('NOT_FOUND'): unknown NAC code
            StockError('INSUFFICIENT_STOCK'): lines for a code exceed its balance
        """
        lines = [_issue_line(raw) for raw in items]
        if not lines:
            raise StockError('INVALID_QUANTITY', message='Nothing to issue')

        with stock_mutation():
            fiscal_year = StockSequences.current_fiscal_year()
            locked = lock_items((line['nac_code'] for line in lines), missing_ok=True)

            errors = []
            wanted = defaultdict(Decimal)
            for index, line in enumerate(lines):
                if line['quantity'] <= 0:
                    errors.append({'index': index, 'nac_code': line['nac_code'], 'code': 'INVALID_QUANTITY'})
                wanted[line['nac_code']] += line['quantity']

            for nac_code, total in wanted.items():
                item = locked.get(nac_code)
                if item is None:
                    errors.append({'nac_code': nac_code, 'code': 'NOT_FOUND'})
                elif not can_subtract(item, total):
                    errors.append({
                        'nac_code': nac_code,
                        'code': 'INSUFFICIENT_STOCK',
                        'available': str(item.current_balance),
                        'requested': str(total),
                    })

            if errors:
                first = errors[0]
                context = {}
                if first['code'] == 'INSUFFICIENT_STOCK':
                    context = {
                        'available': Decimal(first['available']),
                        'requested': Decimal(first['requested']),
                    }
                raise StockError(first['code'], nac_code=first['nac_code'], errors=errors, **context)

            slip = StockSequences.issue_slip_number(issue_date, fiscal_year)
            created = []
            for line in lines:
                issue = IssueDetail.objects.create(
                    issue_date=issue_date,
                    stock_item=locked[line['nac_code']],
                    source=IssueSource.SPARE,
                    part_number=line['part_number'],
                    issued_for=line['issued_for'],
                    issue_quantity=line['quantity'],
                    issue_slip_number=slip,
                    fiscal_year=fiscal_year,
                    issued_by=issued_by,
                )
                move = StockLedger.adjust_balance(
                    line['nac_code'],
                    line['quantity'],
                    SUBTRACT,
                    reference=issue,
                    reason=f"Issue {slip}",
                    kind=MoveKind.ISSUE,
                    user=user,
                )
                issue.remaining_balance = move.balance_after
                issue.save(update_fields=['remaining_balance', 'updated_at'])
                created.append(issue)

            revalue(*locked.values())
            for issue in created:
                issue.refresh_from_db()

            logger.info(
                "stock.issue",
                extra={
                    "slip": slip,
                    "lines": len(created),
                    "nac_codes": sorted(wanted),
                    "issued_by": issued_by,
                },
            )
            return created

    @classmethod
    def approve_issues(cls, issue_ids, approved_by: str = '') -> list[IssueDetail]:
        """
        Approve PENDING issues. Stock was already taken when they were booked.

        Raises:
            StockError('NOT_FOUND'), StockError('INVALID_STATUS')
        """
        with stock_mutation():
            issues = _lock_issues(issue_ids)
            approved = [i.pk for i in issues if i.approval_status != ApprovalStatus.PENDING]
            if approved:
                raise StockError('INVALID_STATUS', issue_ids=approved)

            IssueDetail.objects.filter(pk__in=[i.pk for i in issues]).update(
                approval_status=ApprovalStatus.APPROVED,
                approved_by=approved_by,
            )
            FuelRecord.objects.filter(issue__in=issues).update(
                approval_status=ApprovalStatus.APPROVED,
                approved_by=approved_by,
            )
            for issue in issues:
                issue.refresh_from_db()

            logger.info(
                "stock.issue.approve",
                extra={"issue_ids": [i.pk for i in issues], "approved_by": approved_by},
            )
            return issues

    @classmethod
    def reject_issues(cls, issue_ids, rejected_by: str = '', user=None) -> int:
        """
        Reject PENDING issues: put their stock back and delete them.

        Returns:
            Number of issues removed
        """
        with stock_mutation():
            issues = _lock_issues(issue_ids)
            not_pending = [i.pk for i in issues if i.approval_status != ApprovalStatus.PENDING]
            if not_pending:
                raise StockError('INVALID_STATUS', issue_ids=not_pending)
            _refuse_transfer_legs(issues)

            why = f"rejected by {rejected_by}" if rejected_by else "rejected"
            touched = cls._reverse_and_delete(issues, why, user)

            logger.info(
                "stock.issue.reject",
                extra={"issue_ids": [i.pk for i in issues], "rejected_by": rejected_by},
            )
            return touched

    @classmethod
    def delete_issue(cls, issue_id, user=None) -> None:
        """
        Delete an issue and put its stock back (fuel record goes with it).

        Raises:
            StockError('NOT_FOUND'), StockError('DEPENDENT_RECORD_EXISTS')
        """
        with stock_mutation():
            issues = _lock_issues([issue_id])
            _refuse_transfer_legs(issues)
            cls._reverse_and_delete(issues, 'deleted', user)
            logger.info("stock.issue.delete", extra={"issue_id": issue_id})

    @classmethod
    def update_issue(cls, issue_id, quantity=None, nac_code: str | None = None,
                     issue_date: date | None = None, price=None, issued_for: str | None = None,
                     part_number: str | None = None, user=None) -> IssueDetail:
        """
        Edit an issue and re-derive its dependent fields.

        - new date → new slip number
        - new price or quantity → issue_cost = price * quantity
          (price falls back to the fuel record's price)
        - new quantity or NAC code → stock re-booked through the guard

        Raises:
            StockError('NOT_FOUND'), StockError('INVALID_QUANTITY'),
            StockError('INSUFFICIENT_STOCK'), StockError('DEPENDENT_RECORD_EXISTS')
        """
        with stock_mutation():
            (issue,) = _lock_issues([issue_id])
            _refuse_transfer_legs([issue])

            old_item = issue.stock_item
            old_qty = issue.issue_quantity
            new_qty = old_qty if quantity is None else to_decimal(quantity)
            if new_qty <= 0:
                raise StockError('INVALID_QUANTITY', issue_id=issue.pk, requested=new_qty)

            new_item = old_item
            if nac_code and nac_code != old_item.nac_code:
                new_item = StockItem.objects.filter(nac_code=nac_code).first()
                if new_item is None:
                    raise StockError('NOT_FOUND', nac_code=nac_code)

            StockLedger.rebook(
                issue, f"issue {issue.issue_slip_number}",
                old_item.nac_code, -old_qty,
                new_item.nac_code, -new_qty,
                kind=MoveKind.ISSUE, user=user,
            )

            if issue_date is not None and issue_date != issue.issue_date:
                issue.issue_date = issue_date
                issue.issue_slip_number = StockSequences.issue_slip_number(
                    issue_date, issue.fiscal_year, exclude_issue=issue,
                )

            fuel = FuelRecord.objects.filter(issue=issue).first()
            if price is not None:
                price = to_decimal(price)
                issue.issue_cost = (price * new_qty).quantize(COST_PLACES)
                if fuel is not None:
                    fuel.fuel_price = price
                    fuel.save(update_fields=['fuel_price', 'updated_at'])
            elif new_qty != old_qty and fuel is not None:
                issue.issue_cost = (fuel.fuel_price * new_qty).quantize(COST_PLACES)

            issue.stock_item = new_item
            issue.issue_quantity = new_qty
            if issued_for is not None:
                issue.issued_for = issued_for
            if part_number is not None:
                issue.part_number = part_number
            issue.remaining_balance = StockItem.objects.get(pk=new_item.pk).current_balance
            issue.save()

            revalue(old_item, new_item)
            issue.refresh_from_db()

            logger.info(
                "stock.issue.update",
                extra={
                    "issue_id": issue.pk,
                    "nac_code": new_item.nac_code,
                    "old_qty": str(old_qty),
                    "new_qty": str(new_qty),
                },
            )
            return issue

    # ══════════════════════════════════════════════════════════════
    # INTERNAL
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _reverse_and_delete(cls, issues, why: str, user=None) -> int:
        items = {}
        for issue in issues:
            StockLedger.adjust_balance(
                issue.stock_item.nac_code,
                issue.issue_quantity,
                ADD,
                reference=issue,
                reason=f"Reversal of issue {issue.issue_slip_number} ({why})",
                kind=MoveKind.REVERSAL,
                user=user,
            )
            items[issue.stock_item_id] = issue.stock_item
            issue.delete()
        revalue(*items.values())
        return len(issues)
