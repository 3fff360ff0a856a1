"""
Stock services — modular organization of stock operations.

Each class groups one concern; Stock (storeman.service) composes them:
    from storeman.services import StockLedger, StockReceiving, StockIssuing, ...
"""

from storeman.services.borrow import StockBorrow
from storeman.services.fuel import StockFuel
from storeman.services.issuing import StockIssuing
from storeman.services.items import StockItems
from storeman.services.ledger import StockLedger, can_subtract, stock_mutation
from storeman.services.queries import StockQueries
from storeman.services.receiving import StockReceiving
from storeman.services.rrp import StockRRP
from storeman.services.sequences import StockSequences
from storeman.services.transfers import StockTransfers

__all__ = [
    'StockQueries',
    'StockLedger',
    'StockSequences',
    'StockItems',
    'StockReceiving',
    'StockBorrow',
    'StockIssuing',
    'StockFuel',
    'StockTransfers',
    'StockRRP',
    'can_subtract',
    'stock_mutation',
]
