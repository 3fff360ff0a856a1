"""
Exceptions for Storeman.

All errors are StockError with a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class StockError(Exception):
    """
    Structured exception for stock operations.

    Usage:
        try:
            stock.issue([{'nac_code': 'GT 12345', 'quantity': 80}], today)
        except StockError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} left")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INSUFFICIENT_STOCK': 'Insufficient stock balance',
        'NOT_FOUND': 'Record not found',
        'DUPLICATE_REFERENCE': 'Duplicate slip, request or RRP reference',
        'DEPENDENT_RECORD_EXISTS': 'Blocked by a dependent record',
        'TRANSACTION_FAILURE': 'Stock transaction failed and was rolled back',
        'INVALID_QUANTITY': 'Invalid quantity (must be positive)',
        'INVALID_STATUS': 'Invalid approval status for this operation',
        'INVALID_DATE': 'Date is before the start of the fiscal year sequence',
        'INVALID_TRANSFER': 'Source and destination must differ',
        'INVALID_RRP_NUMBER': 'Invalid RRP number format',
        'QUANTITY_EXCEEDS_REQUEST': 'Received quantity exceeds requested quantity',
        'REASON_REQUIRED': 'Reason is required',
        'CONFIG_MISSING': 'Required configuration is missing',
    }

    _status_codes = {
        'NOT_FOUND': 404,
        'DUPLICATE_REFERENCE': 409,
        'TRANSACTION_FAILURE': 500,
        'CONFIG_MISSING': 500,
    }

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    @property
    def status_code(self) -> int:
        """HTTP status a controller should answer with."""
        return self._status_codes.get(self.code, 400)

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }
