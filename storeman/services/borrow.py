"""
Borrow receives — goods lent by another store and later handed back.

A borrow is a ReceiveDetail with source=borrow. It is booked PENDING and
added to stock by approve_receive(); return_borrowed() takes it back out
through the guarded ledger and marks it RETURNED.
"""

import logging
from datetime import date

from storeman.exceptions import StockError
from storeman.models.borrow import BorrowSource
from storeman.models.enums import ApprovalStatus, BorrowStatus, MoveKind, ReceiveSource
from storeman.models.receive import ReceiveDetail
from storeman.services.ledger import SUBTRACT, StockLedger, stock_mutation
from storeman.services.receiving import StockReceiving, _lock_receive
from storeman.valuation import revalue

logger = logging.getLogger('storeman')


def _borrow_source(source) -> BorrowSource:
    source_id = source.pk if isinstance(source, BorrowSource) else source
    found = BorrowSource.objects.filter(pk=source_id).first()
    if found is None:
        raise StockError('NOT_FOUND', borrow_source_id=source_id)
    if not found.is_active:
        raise StockError(
            'INVALID_STATUS',
            message='Borrow source is inactive',
            borrow_source_id=found.pk,
        )
    return found


class StockBorrow:
    """Borrow from another store, and return."""

    @classmethod
    def receive_borrowed(cls, nac_code: str, quantity, receive_date: date, borrow_source,
                         received_by: str = '', reference_number: str = '', user=None,
                         **details) -> ReceiveDetail:
        """
        Book a PENDING borrow receive from an active source.

        One borrow per (source, nac_code, receive_date) unless rejected.

        Raises:
            StockError('NOT_FOUND'): unknown source
            StockError('INVALID_STATUS'): inactive source
            StockError('INVALID_QUANTITY'): quantity <= 0
            StockError('DUPLICATE_REFERENCE')
        """
        with stock_mutation():
            source = _borrow_source(borrow_source)
            duplicate = ReceiveDetail.objects.filter(
                source=ReceiveSource.BORROW,
                borrow_source=source,
                stock_item__nac_code=nac_code,
                receive_date=receive_date,
            ).exclude(approval_status=ApprovalStatus.REJECTED)
            if duplicate.exists():
                raise StockError(
                    'DUPLICATE_REFERENCE',
                    borrow_source_id=source.pk,
                    nac_code=nac_code,
                    date=receive_date.isoformat(),
                )

            receive = StockReceiving._book_receive(
                nac_code, quantity, receive_date, None, received_by, user,
                ReceiveSource.BORROW, details, apply=False,
                borrow_source=source,
                borrow_status=BorrowStatus.ACTIVE,
                borrow_reference_number=reference_number,
            )
            logger.info(
                "stock.borrow",
                extra={
                    "receive_id": receive.pk,
                    "nac_code": nac_code,
                    "borrow_source": source.source_name,
                    "reference": reference_number,
                },
            )
            return receive

    @classmethod
    def return_borrowed(cls, receive_id, return_date: date, returned_by: str = '',
                        user=None) -> ReceiveDetail:
        """
        Hand approved borrowed goods back to their source.

        The borrowed quantity leaves stock through the balance guard.

        Raises:
            StockError('NOT_FOUND')
            StockError('INVALID_STATUS'): not an approved, active borrow
            StockError('INVALID_DATE'): return_date before the borrow
            StockError('INSUFFICIENT_STOCK'): goods already consumed
        """
        with stock_mutation():
            receive = _lock_receive(receive_id)
            if not receive.is_borrowed or receive.approval_status != ApprovalStatus.APPROVED:
                raise StockError(
                    'INVALID_STATUS',
                    message='Only approved, active borrows can be returned',
                    receive_id=receive.pk,
                    status=receive.approval_status,
                    borrow_status=receive.borrow_status,
                )
            if return_date < receive.receive_date:
                raise StockError(
                    'INVALID_DATE',
                    message='Return date is before the borrow date',
                    receive_id=receive.pk,
                    date=return_date.isoformat(),
                )

            item = receive.stock_item
            StockLedger.adjust_balance(
                item.nac_code,
                receive.stock_quantity,
                SUBTRACT,
                reference=receive,
                reason=f"Return of borrow #{receive.pk}",
                kind=MoveKind.RETURN,
                user=user,
                returned_by=returned_by,
            )

            receive.borrow_status = BorrowStatus.RETURNED
            receive.return_date = return_date
            receive.save(update_fields=['borrow_status', 'return_date', 'updated_at'])
            revalue(item)

            logger.info(
                "stock.borrow.return",
                extra={
                    "receive_id": receive.pk,
                    "nac_code": item.nac_code,
                    "qty": str(receive.stock_quantity),
                    "returned_by": returned_by,
                },
            )
            return receive
