"""
Stock Service — The single public interface for all stock operations.

Usage:
    from storeman import stock, StockError

    stock.create_item('GT 12345', current_balance=100)
    stock.issue([{'nac_code': 'GT 12345', 'quantity': 30}], today)
    stock.get_balance('GT 12345')  # 70
"""

from storeman.services import (
    StockBorrow,
    StockFuel,
    StockIssuing,
    StockItems,
    StockLedger,
    StockQueries,
    StockReceiving,
    StockRRP,
    StockSequences,
    StockTransfers,
)


class Stock(
    StockQueries,
    StockLedger,
    StockSequences,
    StockItems,
    StockReceiving,
    StockBorrow,
    StockIssuing,
    StockFuel,
    StockTransfers,
    StockRRP,
):
    """
    Single interface for all stock operations.

    IMPORTANT: All state-changing methods run inside stock_mutation()
    (one atomic transaction) and lock the StockItem rows they touch.
    Any failure rolls the whole operation back.
    """
