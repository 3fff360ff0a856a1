"""
Stock ledger — the only path that changes a balance.

Every mutation runs inside stock_mutation() and locks the StockItem row
with select_for_update() across the balance check and the write.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal

from django.db import DatabaseError, transaction

from storeman.exceptions import StockError
from storeman.models.enums import MoveKind
from storeman.models.move import StockMove
from storeman.models.stock_item import StockItem

logger = logging.getLogger('storeman')

ADD = 'add'
SUBTRACT = 'subtract'


@contextmanager
def stock_mutation():
    """
    Unit of work for stock mutations.

    Commits when the block finishes, rolls everything back on any exception.
    StockErrors propagate unchanged; other database errors surface as
    StockError('TRANSACTION_FAILURE'). Nested blocks become savepoints.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        logger.exception("stock.transaction_failure", extra={"error": str(exc)})
        raise StockError('TRANSACTION_FAILURE', detail=str(exc)) from exc


def can_subtract(item: StockItem, quantity: Decimal) -> bool:
    """Balance guard. Call it on a row locked in the current transaction."""
    return item.current_balance >= quantity


def lock_item(nac_code: str) -> StockItem:
    """Lock one StockItem row. Must run inside a transaction."""
    try:
        return StockItem.objects.select_for_update().get(nac_code=nac_code)
    except StockItem.DoesNotExist:
        raise StockError('NOT_FOUND', nac_code=nac_code) from None


def lock_items(nac_codes, missing_ok: bool = False) -> dict[str, StockItem]:
    """
    Lock several StockItem rows in nac_code order.

    A fixed order keeps two writers touching the same pair of codes
    from deadlocking each other.
    """
    locked = {}
    for nac_code in sorted(set(nac_codes)):
        item = StockItem.objects.select_for_update().filter(nac_code=nac_code).first()
        if item is None:
            if missing_ok:
                continue
            raise StockError('NOT_FOUND', nac_code=nac_code)
        locked[nac_code] = item
    return locked


def to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class StockLedger:
    """Balance-changing primitives."""

    @classmethod
    def adjust_balance(cls, nac_code: str, delta, operation: str,
                       reference=None, reason: str = '', kind: str = MoveKind.ADJUST,
                       user=None, **metadata) -> StockMove | None:
        """
        Add to or subtract from a NAC code's balance.

        Rules:
            - delta must be >= 0; the direction comes from operation
            - delta == 0 is a successful no-op (returns None)
            - add on an unknown code creates the StockItem
            - subtract on an unknown code raises NOT_FOUND, creating nothing

        Raises:
            StockError('INVALID_QUANTITY'): delta < 0
            StockError('NOT_FOUND'): subtract from unknown code
            StockError('INSUFFICIENT_STOCK'): balance < delta

        Concurrency:
            - Runs under stock_mutation()
            - Uses select_for_update() on the StockItem
            - Verifies the balance after the lock
        """
        if operation not in (ADD, SUBTRACT):
            raise ValueError(f"operation must be {ADD!r} or {SUBTRACT!r}, got {operation!r}")

        delta = to_decimal(delta)
        if delta < 0:
            raise StockError('INVALID_QUANTITY', nac_code=nac_code, requested=delta)
        if delta == 0:
            return None

        with stock_mutation():
            if operation == ADD:
                item, created = StockItem.objects.get_or_create(nac_code=nac_code)
                if created:
                    logger.info("stock.bootstrap", extra={"nac_code": nac_code})
                item = lock_item(nac_code)
                signed = delta
            else:
                item = lock_item(nac_code)
                if not can_subtract(item, delta):
                    raise StockError(
                        'INSUFFICIENT_STOCK',
                        nac_code=nac_code,
                        available=item.current_balance,
                        requested=delta,
                    )
                signed = -delta

            move = StockMove.objects.create(
                stock_item=item,
                delta=signed,
                kind=kind,
                reference=reference,
                reason=reason or f"{operation.title()} {delta}",
                user=user,
                metadata=metadata,
            )
            logger.info(
                "stock.adjust",
                extra={
                    "nac_code": nac_code,
                    "delta": str(signed),
                    "balance": str(move.balance_after),
                    "kind": kind,
                    "reason": move.reason,
                },
            )
            return move

    @classmethod
    def adjust(cls, nac_code: str, new_quantity, reason: str, user=None) -> StockMove | None:
        """
        Stock-take adjustment.

        Calculates delta automatically: new_quantity - current_balance

        Raises:
            StockError('REASON_REQUIRED'): If reason is empty
            StockError('INVALID_QUANTITY'): If new_quantity < 0
        """
        if not reason:
            raise StockError('REASON_REQUIRED')

        new_quantity = to_decimal(new_quantity)
        if new_quantity < 0:
            raise StockError('INVALID_QUANTITY', nac_code=nac_code, requested=new_quantity)

        with stock_mutation():
            item = lock_item(nac_code)
            delta = new_quantity - item.current_balance
            if delta == 0:
                return None

            return cls.adjust_balance(
                nac_code,
                abs(delta),
                ADD if delta > 0 else SUBTRACT,
                reason=f"Adjustment: {reason}",
                kind=MoveKind.ADJUST,
                user=user,
            )

    @classmethod
    def apply_effect(cls, nac_code: str, effect, reference=None, reason: str = '',
                     kind: str = MoveKind.ADJUST, user=None) -> StockMove | None:
        """Apply a signed quantity: positive adds, negative subtracts (guarded)."""
        effect = to_decimal(effect)
        return cls.adjust_balance(
            nac_code,
            abs(effect),
            ADD if effect >= 0 else SUBTRACT,
            reference=reference,
            reason=reason,
            kind=kind,
            user=user,
        )

    @classmethod
    def rebook(cls, reference, label: str, old_code: str, old_effect,
               new_code: str, new_effect, kind: str, user=None) -> None:
        """
        Re-derive the ledger effect of an edited movement document.

        Effects are signed (receives positive, issues negative). When the
        NAC code changes, the full old effect is reversed on the old code
        and the full new effect applied on the new one, both guarded.
        """
        with stock_mutation():
            if old_code != new_code:
                lock_items([old_code, new_code])
                cls.apply_effect(
                    old_code, -to_decimal(old_effect), reference=reference,
                    reason=f"Reversal of {label}", kind=MoveKind.REVERSAL, user=user,
                )
                cls.apply_effect(
                    new_code, new_effect, reference=reference,
                    reason=f"{label} (moved from {old_code})", kind=kind, user=user,
                )
            else:
                cls.apply_effect(
                    new_code, to_decimal(new_effect) - to_decimal(old_effect),
                    reference=reference, reason=f"{label} (edited)", kind=kind, user=user,
                )
