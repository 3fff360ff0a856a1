"""
Storeman Models.

Core models for stock balance keeping:
- StockItem: Balance cache per NAC code
- StockMove: Immutable ledger of changes
- StockRequest: Requests that receives are booked against
- ReceiveDetail / IssueDetail / FuelRecord / BalanceTransfer: Movement documents
- RRPRecord: Receive Register Paper lines
- DocumentSequence: Locked counters for slip numbers
- ConfigEntry: Runtime application config
- UnitConversion: Receive-unit to request-unit factors
- BorrowSource: Stores goods are borrowed from
"""

from storeman.models.borrow import BorrowSource
from storeman.models.config import ConfigEntry
from storeman.models.conversion import UnitConversion
from storeman.models.enums import (
    ApprovalStatus,
    BorrowStatus,
    FuelType,
    IssueSource,
    MoveKind,
    ReceiveSource,
    RRPType,
)
from storeman.models.fuel import FuelRecord
from storeman.models.issue import IssueDetail
from storeman.models.move import StockMove
from storeman.models.receive import ReceiveDetail
from storeman.models.request import StockRequest
from storeman.models.rrp import RRPRecord
from storeman.models.sequence import DocumentSequence
from storeman.models.stock_item import StockItem
from storeman.models.transfer import BalanceTransfer

__all__ = [
    'ApprovalStatus',
    'BorrowStatus',
    'FuelType',
    'IssueSource',
    'MoveKind',
    'ReceiveSource',
    'RRPType',
    'StockItem',
    'StockMove',
    'StockRequest',
    'ReceiveDetail',
    'IssueDetail',
    'FuelRecord',
    'BalanceTransfer',
    'RRPRecord',
    'DocumentSequence',
    'ConfigEntry',
    'UnitConversion',
    'BorrowSource',
]
