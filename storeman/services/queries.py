"""
Stock queries — read-only operations.

All methods are classmethod on Stock and use no locking.
"""

from decimal import Decimal

from storeman.exceptions import StockError
from storeman.models.enums import ApprovalStatus
from storeman.models.issue import IssueDetail
from storeman.models.move import StockMove
from storeman.models.receive import ReceiveDetail
from storeman.models.stock_item import StockItem


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def get_balance(cls, nac_code: str) -> Decimal:
        """
        Current balance of a NAC code — O(1) cache read.

        Unknown codes read as 0; no row is created.
        """
        balance = StockItem.objects.filter(nac_code=nac_code).values_list(
            'current_balance', flat=True
        ).first()
        return balance if balance is not None else Decimal('0')

    @classmethod
    def get_item(cls, nac_code: str) -> StockItem:
        """
        Raises:
            StockError('NOT_FOUND')
        """
        item = StockItem.objects.filter(nac_code=nac_code).first()
        if item is None:
            raise StockError('NOT_FOUND', nac_code=nac_code)
        return item

    @classmethod
    def can_subtract(cls, nac_code: str, quantity) -> bool:
        """
        Would a debit of `quantity` pass the balance guard right now?

        Advisory only; mutations re-check under a row lock.
        """
        balance = StockItem.objects.filter(nac_code=nac_code).values_list(
            'current_balance', flat=True
        ).first()
        if balance is None:
            return False
        return balance >= Decimal(str(quantity))

    @classmethod
    def ledger(cls, nac_code: str):
        """Moves of a NAC code, oldest first."""
        return StockMove.objects.filter(stock_item__nac_code=nac_code).order_by('timestamp', 'id')

    @classmethod
    def issues_on_slip(cls, slip_number: str):
        return IssueDetail.objects.filter(issue_slip_number=slip_number).select_related('stock_item')

    @classmethod
    def pending_issues(cls):
        return IssueDetail.objects.filter(
            approval_status=ApprovalStatus.PENDING
        ).select_related('stock_item')

    @classmethod
    def pending_receives(cls):
        return ReceiveDetail.objects.filter(
            approval_status=ApprovalStatus.PENDING
        ).select_related('stock_item', 'request')

    @classmethod
    def audit(cls, nac_code: str) -> dict:
        """
        Compare the cached balance with the ledger without correcting it.

        Returns:
            {'nac_code', 'cached', 'ledger', 'drift'}
        """
        item = cls.get_item(nac_code)
        ledger = item.ledger_balance()
        return {
            'nac_code': nac_code,
            'cached': item.current_balance,
            'ledger': ledger,
            'drift': item.current_balance - ledger,
        }
