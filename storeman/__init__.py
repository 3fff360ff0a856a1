"""
Django Storeman — stock balance ledger for stores inventory.

Receives, issues, fuel issues and balance transfers all move a single
per-NAC-code balance that never goes negative.

Usage:
    from storeman import stock, StockError

    stock.receive('GT 12345', 50, today)
    stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
    stock.get_balance('GT 12345')  # 20
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'stock':
        from storeman.service import Stock
        return Stock
    elif name == 'StockError':
        from storeman.exceptions import StockError
        return StockError
    elif name == 'StockItem':
        from storeman.models.stock_item import StockItem
        return StockItem
    elif name == 'StockMove':
        from storeman.models.move import StockMove
        return StockMove
    elif name == 'ApprovalStatus':
        from storeman.models.enums import ApprovalStatus
        return ApprovalStatus
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'stock',
    'StockError',
    'StockItem',
    'StockMove',
    'ApprovalStatus',
]

__version__ = '0.1.0'
