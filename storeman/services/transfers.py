"""
Balance transfers — move quantity from one NAC code to another.

A transfer is a paired subtract + add; revert_transfer() is the paired
add + subtract, restoring both balances exactly.
"""

import logging
from datetime import date
from decimal import Decimal

from storeman.exceptions import StockError
from storeman.models.enums import ApprovalStatus, IssueSource, MoveKind, ReceiveSource
from storeman.models.issue import IssueDetail
from storeman.models.receive import ReceiveDetail
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


def _costing_lot(source: StockItem, quantity: Decimal) -> tuple[ReceiveDetail | None, Decimal]:
    """Oldest approved, RRP-costed receive on `source` that can cover `quantity`."""
    lots = ReceiveDetail.objects.select_for_update().filter(
        stock_item=source,
        approval_status=ApprovalStatus.APPROVED,
    ).exclude(source=ReceiveSource.TRANSFER).order_by('receive_date', 'id')

    for lot in lots:
        if lot.transferable_quantity < quantity:
            continue
        rrp = lot.approved_rrp()
        if rrp is None:
            continue
        cost = rrp.total_amount / lot.stock_quantity * quantity
        return lot, cost.quantize(COST_PLACES)
    return None, Decimal('0')


class StockTransfers:
    """Balance transfer and revert."""

    @classmethod
    def transfer(cls, from_code: str, to_code: str, quantity, transfer_date: date,
                 transferred_by: str = '', user=None) -> BalanceTransfer:
        """
        Transfer quantity between two existing NAC codes.

        Creates the BalanceTransfer plus its two legs: an APPROVED issue on
        the source (issued_for="code_transfer_to_{to}") and an APPROVED
        receive on the destination. Cost comes from the oldest RRP-costed
        lot that can cover the quantity, or 0.

        Raises:
            StockError('INVALID_TRANSFER'): from_code == to_code
            StockError('INVALID_QUANTITY'): quantity <= 0
            StockError('NOT_FOUND'): either code unknown
            StockError('INSUFFICIENT_STOCK'): source balance too low

        Concurrency:
            Both rows locked in nac_code order before the guard check.
        """
        quantity = to_decimal(quantity)
        if from_code == to_code:
            raise StockError('INVALID_TRANSFER', nac_code=from_code)
        if quantity <= 0:
            raise StockError('INVALID_QUANTITY', requested=quantity)

        with stock_mutation():
            locked = lock_items([from_code, to_code])
            source, dest = locked[from_code], locked[to_code]
            if not can_subtract(source, quantity):
                raise StockError(
                    'INSUFFICIENT_STOCK',
                    nac_code=from_code,
                    available=source.current_balance,
                    requested=quantity,
                )

            fiscal_year = StockSequences.current_fiscal_year()
            slip = StockSequences.transfer_slip_number(transfer_date)
            lot, cost = _costing_lot(source, quantity)
            part_number = source.part_numbers.split(',')[0].strip()

            issue = IssueDetail.objects.create(
                issue_date=transfer_date,
                stock_item=source,
                source=IssueSource.TRANSFER,
                part_number=part_number,
                issued_for=f"code_transfer_to_{to_code}",
                issue_quantity=quantity,
                issue_cost=cost,
                issue_slip_number=slip,
                fiscal_year=fiscal_year,
                approval_status=ApprovalStatus.APPROVED,
                issued_by=transferred_by,
                approved_by=transferred_by,
            )
            receive = ReceiveDetail.objects.create(
                receive_date=transfer_date,
                stock_item=dest,
                source=ReceiveSource.TRANSFER,
                item_name=source.item_name[:255],
                part_number=part_number,
                unit=source.unit,
                received_quantity=quantity,
                remaining_quantity=quantity,
                approval_status=ApprovalStatus.APPROVED,
                received_by=transferred_by,
                approved_by=transferred_by,
            )
            transfer = BalanceTransfer.objects.create(
                from_item=source,
                to_item=dest,
                quantity=quantity,
                transfer_date=transfer_date,
                transfer_cost=cost,
                slip_number=slip,
                transferred_by=transferred_by,
                issue=issue,
                receive=receive,
                source_receive=lot,
            )

            debit = StockLedger.adjust_balance(
                from_code, quantity, SUBTRACT,
                reference=transfer, reason=f"Transfer {slip} to {to_code}",
                kind=MoveKind.TRANSFER, user=user,
            )
            StockLedger.adjust_balance(
                to_code, quantity, ADD,
                reference=transfer, reason=f"Transfer {slip} from {from_code}",
                kind=MoveKind.TRANSFER, user=user,
            )
            issue.remaining_balance = debit.balance_after
            issue.save(update_fields=['remaining_balance', 'updated_at'])

            if lot is not None:
                lot.transferred_quantity += quantity
                lot.save(update_fields=['transferred_quantity', 'updated_at'])

            revalue(source, dest)

            logger.info(
                "stock.transfer",
                extra={
                    "slip": slip,
                    "from": from_code,
                    "to": to_code,
                    "qty": str(quantity),
                    "cost": str(cost),
                    "lot": lot.pk if lot else None,
                },
            )
            return transfer

    @classmethod
    def revert_transfer(cls, transfer_id, user=None) -> None:
        """
        Undo a transfer: take the quantity back off the destination and
        return it to the source, then delete the transfer and both legs.

        Raises:
            StockError('NOT_FOUND')
            StockError('DEPENDENT_RECORD_EXISTS'): the credit leg was moved on or costed
            StockError('INSUFFICIENT_STOCK'): destination already consumed it
        """
        with stock_mutation():
            transfer = BalanceTransfer.objects.select_for_update().filter(pk=transfer_id).first()
            if transfer is None:
                raise StockError('NOT_FOUND', transfer_id=transfer_id)

            credit = transfer.receive
            if (credit.transferred_quantity > 0
                    or credit.transfers_from_lot.exists()
                    or credit.active_rrps().exists()):
                raise StockError('DEPENDENT_RECORD_EXISTS', transfer_id=transfer.pk, dependency='receive')

            from_code = transfer.from_item.nac_code
            to_code = transfer.to_item.nac_code
            lock_items([from_code, to_code])

            StockLedger.adjust_balance(
                to_code, transfer.quantity, SUBTRACT,
                reference=transfer, reason=f"Reversal of transfer {transfer.slip_number}",
                kind=MoveKind.REVERSAL, user=user,
            )
            StockLedger.adjust_balance(
                from_code, transfer.quantity, ADD,
                reference=transfer, reason=f"Reversal of transfer {transfer.slip_number}",
                kind=MoveKind.REVERSAL, user=user,
            )

            lot_id = transfer.source_receive_id
            issue = transfer.issue
            slip = transfer.slip_number
            transfer.delete()
            issue.delete()
            credit.rrps.all().delete()
            credit.delete()

            if lot_id is not None:
                lot = ReceiveDetail.objects.select_for_update().get(pk=lot_id)
                lot.transferred_quantity = max(Decimal('0'), lot.transferred_quantity - transfer.quantity)
                lot.save(update_fields=['transferred_quantity', 'updated_at'])

            revalue(transfer.from_item, transfer.to_item)

            logger.info(
                "stock.transfer.revert",
                extra={"slip": slip, "from": from_code, "to": to_code, "qty": str(transfer.quantity)},
            )
