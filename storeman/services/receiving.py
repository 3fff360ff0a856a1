"""
Receives — goods coming into a NAC code.

receive() books and applies in one step; submit_receive() books a PENDING
line that approve_receive() applies later.

A receive counted in another unit than its request is converted with the
UnitConversion for (nac_code, request unit, receive unit).
"""

import logging
from datetime import date
from decimal import Decimal

from storeman.equipment import merge_csv, merge_equipments
from storeman.exceptions import StockError
from storeman.models.conversion import UnitConversion
from storeman.models.enums import ApprovalStatus, BorrowStatus, MoveKind, ReceiveSource
from storeman.models.receive import ReceiveDetail
from storeman.models.request import StockRequest
from storeman.models.stock_item import StockItem
from storeman.models.transfer import BalanceTransfer
from storeman.services.fuel import fuel_nac_code
from storeman.services.ledger import ADD, SUBTRACT, StockLedger, stock_mutation, to_decimal
from storeman.valuation import revalue

logger = logging.getLogger('storeman')

DESCRIPTIVE_FIELDS = ('item_name', 'part_number', 'equipment_number', 'location', 'card_number', 'unit')


def _lock_receive(receive_id) -> ReceiveDetail:
    receive = ReceiveDetail.objects.select_for_update().filter(pk=receive_id).first()
    if receive is None:
        raise StockError('NOT_FOUND', receive_id=receive_id)
    return receive


def _lock_request(request) -> StockRequest:
    request_id = request.pk if isinstance(request, StockRequest) else request
    locked = StockRequest.objects.select_for_update().filter(pk=request_id).first()
    if locked is None:
        raise StockError('NOT_FOUND', request_id=request_id)
    return locked


def _conversion_base(nac_code: str, request: StockRequest, unit: str) -> Decimal:
    base = UnitConversion.base_for(nac_code, request.unit, unit)
    return base if base and base > 0 else Decimal('1')


def _check_editable(receive: ReceiveDetail) -> None:
    if BalanceTransfer.objects.filter(receive=receive).exists():
        raise StockError('DEPENDENT_RECORD_EXISTS', receive_id=receive.pk, dependency='transfer')
    if receive.borrow_status == BorrowStatus.RETURNED:
        raise StockError('DEPENDENT_RECORD_EXISTS', receive_id=receive.pk, dependency='borrow_return')


class StockReceiving:
    """Receive lifecycle: book, approve, reject, edit, delete."""

    @classmethod
    def receive(cls, nac_code: str, quantity, receive_date: date, request=None,
                received_by: str = '', user=None, source: str | None = None,
                **details) -> ReceiveDetail:
        """
        Book a receive and add it to stock immediately.

        Validation:
            - quantity > 0
            - linked request: quantity <= requested - already received,
              compared in the request unit
            - one receive per (request, nac_code, date)

        Unknown NAC codes are created on the fly.

        Raises:
            StockError('INVALID_QUANTITY'), StockError('NOT_FOUND'),
            StockError('QUANTITY_EXCEEDS_REQUEST'), StockError('DUPLICATE_REFERENCE')
        """
        return cls._book_receive(
            nac_code, quantity, receive_date, request, received_by, user,
            source, details, apply=True,
        )

    @classmethod
    def submit_receive(cls, nac_code: str, quantity, receive_date: date, request=None,
                       received_by: str = '', user=None, source: str | None = None,
                       **details) -> ReceiveDetail:
        """Book a PENDING receive; stock is untouched until approval."""
        return cls._book_receive(
            nac_code, quantity, receive_date, request, received_by, user,
            source, details, apply=False,
        )

    @classmethod
    def approve_receive(cls, receive_id, approved_by: str = '', user=None,
                        close_request: bool = False) -> ReceiveDetail:
        """
        Approve a PENDING receive and add it to stock.

        With close_request=True the linked request is also closed and marked
        received, even when this receive covers only part of it.

        Raises:
            StockError('NOT_FOUND'): unknown receive, or closing without a request
            StockError('INVALID_STATUS')
        """
        with stock_mutation():
            receive = _lock_receive(receive_id)
            if receive.approval_status != ApprovalStatus.PENDING:
                raise StockError('INVALID_STATUS', receive_id=receive.pk, status=receive.approval_status)
            if close_request and not receive.request_id:
                raise StockError(
                    'NOT_FOUND',
                    message='Receive has no request to close',
                    receive_id=receive.pk,
                )

            if receive.request_id:
                request = _lock_request(receive.request_id)
                receive.conversion_base = _conversion_base(
                    receive.stock_item.nac_code, request, receive.unit,
                )
                if close_request:
                    request.is_closed = True
                    request.save(update_fields=['is_closed', 'updated_at'])

            receive.approval_status = ApprovalStatus.APPROVED
            receive.approved_by = approved_by
            receive.remaining_quantity = receive.stock_quantity
            receive.save(update_fields=[
                'approval_status', 'approved_by', 'conversion_base', 'remaining_quantity', 'updated_at',
            ])
            cls._apply_receive(receive, user)

            logger.info(
                "stock.receive.approve",
                extra={
                    "receive_id": receive.pk,
                    "approved_by": approved_by,
                    "close_request": close_request,
                },
            )
            return receive

    @classmethod
    def reject_receive(cls, receive_id, rejected_by: str = '', reason: str = '') -> ReceiveDetail:
        """Reject a PENDING receive. Stock is not touched."""
        with stock_mutation():
            receive = _lock_receive(receive_id)
            if receive.approval_status != ApprovalStatus.PENDING:
                raise StockError('INVALID_STATUS', receive_id=receive.pk, status=receive.approval_status)

            receive.approval_status = ApprovalStatus.REJECTED
            receive.rejected_by = rejected_by
            receive.rejection_reason = reason
            receive.save(update_fields=['approval_status', 'rejected_by', 'rejection_reason', 'updated_at'])
            if receive.request_id:
                receive.request.refresh_received()

            logger.info(
                "stock.receive.reject",
                extra={"receive_id": receive.pk, "rejected_by": rejected_by, "reason": reason},
            )
            return receive

    @classmethod
    def update_receive(cls, receive_id, quantity=None, nac_code: str | None = None,
                       receive_date: date | None = None, user=None, **details) -> ReceiveDetail:
        """
        Edit a receive and re-derive its stock effect.

        Approved receives are re-booked: a NAC code change reverses the
        whole old quantity on the old code and adds the new quantity to
        the new one; otherwise only the difference is applied. Quantities
        are in the receive unit; the stock effect uses the receive's
        conversion base.

        Raises:
            StockError('DEPENDENT_RECORD_EXISTS'): transfer leg or returned borrow
            StockError('INVALID_QUANTITY'): <= 0 or below transferred quantity
            StockError('QUANTITY_EXCEEDS_REQUEST')
            StockError('INSUFFICIENT_STOCK'): old code can't give the stock back
        """
        unknown = set(details) - set(DESCRIPTIVE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown receive field(s): {', '.join(sorted(unknown))}")

        with stock_mutation():
            receive = _lock_receive(receive_id)
            _check_editable(receive)

            old_qty = receive.received_quantity
            new_qty = old_qty if quantity is None else to_decimal(quantity)
            old_stock = receive.stock_quantity
            new_stock = receive.to_stock_quantity(new_qty)
            if new_qty <= 0 or new_stock < receive.transferred_quantity:
                raise StockError(
                    'INVALID_QUANTITY',
                    receive_id=receive.pk,
                    requested=new_qty,
                    transferred=receive.transferred_quantity,
                )

            request = None
            if receive.request_id:
                request = _lock_request(receive.request_id)
                counted = old_stock if receive.approval_status != ApprovalStatus.REJECTED else Decimal('0')
                ceiling = request.outstanding_quantity + counted
                if new_stock > ceiling:
                    raise StockError(
                        'QUANTITY_EXCEEDS_REQUEST',
                        request_id=request.pk,
                        requested=new_stock,
                        available=ceiling,
                    )

            old_item = receive.stock_item
            new_item = old_item
            if nac_code and nac_code != old_item.nac_code:
                new_item, _ = StockItem.objects.get_or_create(nac_code=nac_code)

            if receive.is_applied:
                StockLedger.rebook(
                    receive, f"receive #{receive.pk}",
                    old_item.nac_code, old_stock,
                    new_item.nac_code, new_stock,
                    kind=MoveKind.RECEIVE, user=user,
                )

            receive.stock_item = new_item
            receive.received_quantity = new_qty
            if receive_date is not None:
                receive.receive_date = receive_date
            for name, value in details.items():
                setattr(receive, name, value)
            receive.save()

            if request is not None:
                request.refresh_received()
            if receive.is_applied:
                revalue(old_item, new_item)

            logger.info(
                "stock.receive.update",
                extra={
                    "receive_id": receive.pk,
                    "nac_code": new_item.nac_code,
                    "old_qty": str(old_qty),
                    "new_qty": str(new_qty),
                },
            )
            return receive

    @classmethod
    def delete_receive(cls, receive_id, user=None) -> None:
        """
        Delete a receive, taking its quantity back out of stock.

        Refused while an RRP (not rejected) references the receive, while it
        is a balance-transfer leg, once part of it was transferred out, or
        once borrowed goods were returned.

        Raises:
            StockError('NOT_FOUND'), StockError('DEPENDENT_RECORD_EXISTS'),
            StockError('INSUFFICIENT_STOCK')
        """
        with stock_mutation():
            receive = _lock_receive(receive_id)
            if receive.active_rrps().exists():
                raise StockError('DEPENDENT_RECORD_EXISTS', receive_id=receive.pk, dependency='rrp')
            _check_editable(receive)
            if receive.transferred_quantity > 0 or receive.transfers_from_lot.exists():
                raise StockError('DEPENDENT_RECORD_EXISTS', receive_id=receive.pk, dependency='transfer_lot')

            item = receive.stock_item
            if receive.is_applied:
                StockLedger.adjust_balance(
                    item.nac_code,
                    receive.stock_quantity,
                    SUBTRACT,
                    reference=receive,
                    reason=f"Reversal of receive #{receive.pk}",
                    kind=MoveKind.REVERSAL,
                    user=user,
                )

            request = receive.request
            receive_pk = receive.pk
            receive.rrps.all().delete()
            receive.delete()

            if request is not None:
                request.refresh_received()
            revalue(item)

            logger.info(
                "stock.receive.delete",
                extra={"receive_id": receive_pk, "nac_code": item.nac_code},
            )

    @classmethod
    def receive_fuel(cls, fuel_type: str, quantity, receive_date: date,
                     received_by: str = '', user=None) -> ReceiveDetail:
        """Receive fuel into the NAC code configured for fuel_type."""
        return cls.receive(
            fuel_nac_code(fuel_type),
            quantity,
            receive_date,
            received_by=received_by,
            user=user,
            source=ReceiveSource.FUEL,
            item_name=str(fuel_type).title(),
        )

    # ══════════════════════════════════════════════════════════════
    # UNIT CONVERSIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_unit_conversion(cls, nac_code: str, requested_unit: str, received_unit: str) -> Decimal | None:
        """Received units per requested unit, or None if not recorded."""
        return UnitConversion.base_for(nac_code, requested_unit, received_unit)

    @classmethod
    def save_unit_conversion(cls, nac_code: str, requested_unit: str, received_unit: str,
                             conversion_base) -> UnitConversion:
        """
        Record (or replace) a unit conversion.

        Applies to receives approved from now on; approved receives keep
        the base they were booked with.

        Raises:
            StockError('INVALID_QUANTITY'): conversion_base <= 0
        """
        conversion_base = to_decimal(conversion_base)
        if conversion_base <= 0:
            raise StockError('INVALID_QUANTITY', nac_code=nac_code, requested=conversion_base)

        conversion, created = UnitConversion.objects.update_or_create(
            nac_code=nac_code,
            requested_unit=requested_unit,
            received_unit=received_unit,
            defaults={'conversion_base': conversion_base},
        )
        logger.info(
            "stock.unit_conversion",
            extra={
                "nac_code": nac_code,
                "requested_unit": requested_unit,
                "received_unit": received_unit,
                "conversion_base": str(conversion_base),
                "created": created,
            },
        )
        return conversion

    # ══════════════════════════════════════════════════════════════
    # INTERNAL
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _book_receive(cls, nac_code, quantity, receive_date, request, received_by,
                      user, source, details, apply, **fields) -> ReceiveDetail:
        unknown = set(details) - set(DESCRIPTIVE_FIELDS)
        if unknown:
            raise TypeError(f"Unknown receive field(s): {', '.join(sorted(unknown))}")

        quantity = to_decimal(quantity)
        if quantity <= 0:
            raise StockError('INVALID_QUANTITY', nac_code=nac_code, requested=quantity)

        with stock_mutation():
            conversion_base = Decimal('1')
            if request is not None:
                request = _lock_request(request)
                duplicate = ReceiveDetail.objects.filter(
                    request=request,
                    stock_item__nac_code=nac_code,
                    receive_date=receive_date,
                ).exclude(approval_status=ApprovalStatus.REJECTED)
                if duplicate.exists():
                    raise StockError(
                        'DUPLICATE_REFERENCE',
                        request_id=request.pk,
                        nac_code=nac_code,
                        date=receive_date.isoformat(),
                    )
                conversion_base = _conversion_base(nac_code, request, details.get('unit', ''))
                stock_qty = ReceiveDetail(
                    received_quantity=quantity, conversion_base=conversion_base,
                ).stock_quantity
                outstanding = request.outstanding_quantity
                if stock_qty > outstanding:
                    raise StockError(
                        'QUANTITY_EXCEEDS_REQUEST',
                        request_id=request.pk,
                        requested=stock_qty,
                        available=outstanding,
                    )

            item, created = StockItem.objects.get_or_create(
                nac_code=nac_code,
                defaults={
                    'item_name': details.get('item_name', ''),
                    'part_numbers': details.get('part_number', ''),
                    'location': details.get('location', ''),
                    'card_number': details.get('card_number', ''),
                    'unit': request.unit if conversion_base != 1 else details.get('unit', ''),
                },
            )
            if source is None:
                source = ReceiveSource.REQUEST if request is not None else ReceiveSource.DIRECT

            receive = ReceiveDetail(
                receive_date=receive_date,
                stock_item=item,
                request=request,
                source=source,
                received_quantity=quantity,
                conversion_base=conversion_base,
                approval_status=ApprovalStatus.APPROVED if apply else ApprovalStatus.PENDING,
                received_by=received_by,
                approved_by=received_by if apply else '',
                **details,
                **fields,
            )
            receive.remaining_quantity = receive.stock_quantity
            receive.save()
            if apply:
                cls._apply_receive(receive, user)

            logger.info(
                "stock.receive",
                extra={
                    "nac_code": nac_code,
                    "qty": str(quantity),
                    "receive_id": receive.pk,
                    "status": receive.approval_status,
                    "source": receive.source,
                    "created_item": created,
                },
            )
            return receive

    @classmethod
    def _apply_receive(cls, receive: ReceiveDetail, user=None) -> None:
        item = receive.stock_item
        StockLedger.adjust_balance(
            item.nac_code,
            receive.stock_quantity,
            ADD,
            reference=receive,
            reason=f"Receive #{receive.pk}",
            kind=MoveKind.RECEIVE,
            user=user,
        )

        unit = receive.unit
        if receive.conversion_base != 1:
            # stock is kept in the request unit
            unit = receive.request.unit

        item.item_name = merge_csv(item.item_name, receive.item_name)
        item.part_numbers = merge_csv(item.part_numbers, receive.part_number)
        item.applicable_equipments = merge_equipments(item.applicable_equipments, receive.equipment_number)
        for field, value in (('location', receive.location), ('card_number', receive.card_number), ('unit', unit)):
            if not getattr(item, field) and value:
                setattr(item, field, value)
        item.save(update_fields=[
            'item_name', 'part_numbers', 'applicable_equipments',
            'location', 'card_number', 'unit', 'updated_at',
        ])

        if receive.request_id:
            receive.request.refresh_received()
        revalue(item)
