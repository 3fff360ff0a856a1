"""
Stock item maintenance — create, edit and delete NAC codes.
"""

import logging

from django.db.models import ProtectedError

from storeman.exceptions import StockError
from storeman.models.stock_item import StockItem
from storeman.services.ledger import StockLedger, lock_item, stock_mutation, to_decimal

logger = logging.getLogger('storeman')

EDITABLE_FIELDS = (
    'item_name',
    'part_numbers',
    'applicable_equipments',
    'location',
    'card_number',
    'unit',
    'open_amount',
)


def _check_fields(fields: dict) -> None:
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise TypeError(f"Unknown stock item field(s): {', '.join(sorted(unknown))}")


class StockItems:
    """NAC code CRUD. Balances only change through the ledger."""

    @classmethod
    def create_item(cls, nac_code: str, current_balance=0, **fields) -> StockItem:
        """
        Create a NAC code. The starting balance is recorded as its opening lot.

        Raises:
            StockError('DUPLICATE_REFERENCE'): nac_code exists
            StockError('INVALID_QUANTITY'): negative balance
        """
        _check_fields(fields)
        balance = to_decimal(current_balance)
        if balance < 0:
            raise StockError('INVALID_QUANTITY', nac_code=nac_code, requested=balance)

        with stock_mutation():
            if StockItem.objects.filter(nac_code=nac_code).exists():
                raise StockError('DUPLICATE_REFERENCE', nac_code=nac_code)

            item = StockItem.objects.create(
                nac_code=nac_code,
                current_balance=balance,
                open_quantity=balance,
                open_remaining_quantity=balance,
                **fields,
            )
            logger.info(
                "stock.item.create",
                extra={"nac_code": nac_code, "balance": str(balance)},
            )
            return item

    @classmethod
    def update_item(cls, nac_code: str, new_nac_code: str | None = None,
                    current_balance=None, reason: str = '', user=None, **fields) -> StockItem:
        """
        Edit a NAC code's descriptive fields, rename it, or set its balance.

        A new balance is booked as a stock-take adjustment move.

        Raises:
            StockError('NOT_FOUND'), StockError('DUPLICATE_REFERENCE')
        """
        _check_fields(fields)

        with stock_mutation():
            item = lock_item(nac_code)

            if current_balance is not None:
                StockLedger.adjust(
                    nac_code,
                    current_balance,
                    reason or 'Stock item update',
                    user=user,
                )

            if new_nac_code and new_nac_code != nac_code:
                if StockItem.objects.filter(nac_code=new_nac_code).exists():
                    raise StockError('DUPLICATE_REFERENCE', nac_code=new_nac_code)
                fields['nac_code'] = new_nac_code

            if fields:
                if 'open_amount' in fields:
                    fields['open_amount'] = to_decimal(fields['open_amount'])
                StockItem.objects.filter(pk=item.pk).update(**fields)

            item.refresh_from_db()
            logger.info(
                "stock.item.update",
                extra={"nac_code": nac_code, "fields": sorted(fields), "balance": str(item.current_balance)},
            )
            return item

    @classmethod
    def delete_item(cls, nac_code: str) -> None:
        """
        Delete a NAC code nothing references.

        Raises:
            StockError('NOT_FOUND')
            StockError('DEPENDENT_RECORD_EXISTS'): moves or movements reference it
        """
        with stock_mutation():
            item = lock_item(nac_code)
            try:
                item.delete()
            except ProtectedError as exc:
                raise StockError(
                    'DEPENDENT_RECORD_EXISTS',
                    nac_code=nac_code,
                    dependents=len(exc.protected_objects),
                ) from exc
            logger.info("stock.item.delete", extra={"nac_code": nac_code})

