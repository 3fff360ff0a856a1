"""
FIFO valuation — replays a NAC code's movements in date order.

Writes back:
- IssueDetail.remaining_balance: balance right after that issue
- IssueDetail.issue_cost: FIFO cost of the consumed lots
- ReceiveDetail.remaining_quantity: part of each lot not yet consumed
- StockItem.open_remaining_quantity: same, for the opening lot

Timeline: opening lot, APPROVED receives, stock-take adjustments, borrow
returns and all issues (pending issues have already left the shelf). On the
same date receives come first, then adjustments, returns and issues. A
return takes from its own borrowed lot before falling back to FIFO.
"""

import logging
from decimal import Decimal

from storeman.conf import storeman_settings
from storeman.models.enums import ApprovalStatus, BorrowStatus, IssueSource, MoveKind, ReceiveSource
from storeman.models.issue import IssueDetail
from storeman.models.receive import ReceiveDetail
from storeman.models.stock_item import StockItem
from storeman.models.transfer import BalanceTransfer

logger = logging.getLogger('storeman')

COST_PLACES = Decimal('0.0001')

_RECEIVE, _ADJUST, _RETURN, _ISSUE = 0, 1, 2, 3


class _Lot:
    __slots__ = ('remaining', 'unit_cost', 'receive_id')

    def __init__(self, quantity: Decimal, unit_cost: Decimal, receive_id: int | None = None):
        self.remaining = quantity
        self.unit_cost = unit_cost
        self.receive_id = receive_id


def lot_unit_cost(receive: ReceiveDetail) -> Decimal:
    """Unit cost of a receive: its approved RRP, or its transfer cost."""
    if not receive.stock_quantity:
        return Decimal('0')
    if receive.source == ReceiveSource.TRANSFER:
        transfer = BalanceTransfer.objects.filter(receive=receive).first()
        if transfer is None:
            return Decimal('0')
        return transfer.transfer_cost / receive.stock_quantity
    rrp = receive.approved_rrp()
    return rrp.unit_cost if rrp else Decimal('0')


def _consume(lots: list[_Lot], quantity: Decimal) -> Decimal:
    cost = Decimal('0')
    need = quantity
    for lot in lots:
        if need <= 0:
            break
        take = min(lot.remaining, need)
        if take <= 0:
            continue
        lot.remaining -= take
        cost += take * lot.unit_cost
        need -= take
    return cost


def rebuild_item_state(item: StockItem) -> None:
    """Replay one item's movements and write derived fields back."""
    events = []
    for receive in item.receives.filter(approval_status=ApprovalStatus.APPROVED):
        events.append((receive.receive_date, _RECEIVE, receive.pk, receive))
        if receive.borrow_status == BorrowStatus.RETURNED and receive.return_date:
            events.append((receive.return_date, _RETURN, receive.pk, receive))
    for move in item.moves.filter(kind=MoveKind.ADJUST):
        events.append((move.timestamp.date(), _ADJUST, move.pk, move))
    for issue in item.issues.all():
        events.append((issue.issue_date, _ISSUE, issue.pk, issue))
    events.sort(key=lambda e: e[:3])

    opening = _Lot(item.open_quantity, item.open_unit_cost)
    lots = [opening]
    running = item.open_quantity

    for _, kind, _, obj in events:
        if kind == _RECEIVE:
            lots.append(_Lot(obj.stock_quantity, lot_unit_cost(obj), obj.pk))
            running += obj.stock_quantity
        elif kind == _ADJUST:
            running += obj.delta
            if obj.delta > 0:
                lots.append(_Lot(obj.delta, Decimal('0')))
            else:
                _consume(lots, -obj.delta)
        elif kind == _RETURN:
            returned = obj.stock_quantity
            own = [lot for lot in lots if lot.receive_id == obj.pk]
            rest = returned - own[0].remaining if own else returned
            _consume(own, returned)
            if rest > 0:
                _consume(lots, rest)
            running -= returned
        else:
            cost = _consume(lots, obj.issue_quantity)
            running -= obj.issue_quantity
            if obj.source != IssueSource.SPARE and obj.issue_cost > 0:
                cost = obj.issue_cost
            IssueDetail.objects.filter(pk=obj.pk).update(
                remaining_balance=max(running, Decimal('0')),
                issue_cost=cost.quantize(COST_PLACES),
            )

    for lot in lots[1:]:
        if lot.receive_id is not None:
            ReceiveDetail.objects.filter(pk=lot.receive_id).update(remaining_quantity=lot.remaining)
    StockItem.objects.filter(pk=item.pk).update(open_remaining_quantity=opening.remaining)

    logger.debug(
        "stock.revalue",
        extra={"nac_code": item.nac_code, "events": len(events), "balance": str(running)},
    )


def revalue(*items) -> None:
    """Rebuild each distinct item, if valuation is switched on."""
    if not storeman_settings.REBUILD_VALUATION:
        return
    seen = set()
    for item in items:
        if item is None or item.pk in seen:
            continue
        seen.add(item.pk)
        rebuild_item_state(item)


def rebuild_all(nac_codes=None) -> int:
    """Rebuild every item (or the listed codes). Returns how many."""
    items = StockItem.objects.all()
    if nac_codes:
        items = items.filter(nac_code__in=nac_codes)
    count = 0
    for item in items.iterator():
        rebuild_item_state(item)
        count += 1
    return count
