"""
RRP (Receive Register Paper) — costing documents over approved receives.

An RRP number is L### (local) or F### (foreign). Each submission of a base
number gets the next T-suffix (L001T1, L001T2...). A rejected T-number can be
resubmitted as-is, replacing the rejected lines.
"""

import logging
from datetime import date
from decimal import Decimal

from storeman.exceptions import StockError
from storeman.models.enums import ApprovalStatus, RRPType
from storeman.models.receive import ReceiveDetail
from storeman.models.rrp import RRPRecord
from storeman.services.ledger import stock_mutation, to_decimal
from storeman.services.sequences import StockSequences, t_suffix
from storeman.valuation import COST_PLACES, revalue

logger = logging.getLogger('storeman')


def _lock_rrp(rrp_number: str) -> list[RRPRecord]:
    rows = list(RRPRecord.objects.select_for_update().filter(rrp_number=rrp_number).order_by('pk'))
    if not rows:
        raise StockError('NOT_FOUND', rrp_number=rrp_number)
    return rows


def _items_of(rows) -> list:
    return [row.receive.stock_item for row in rows]


def _free_receive(receive_id, rrp_number: str) -> ReceiveDetail:
    """Lock an APPROVED receive that no live RRP holds yet."""
    receive = ReceiveDetail.objects.select_for_update().filter(pk=receive_id).first()
    if receive is None:
        raise StockError('NOT_FOUND', receive_id=receive_id)
    if receive.approval_status != ApprovalStatus.APPROVED:
        raise StockError('INVALID_STATUS', receive_id=receive.pk, status=receive.approval_status)
    if receive.active_rrps().exclude(rrp_number=rrp_number).exists():
        raise StockError('DUPLICATE_REFERENCE', receive_id=receive.pk, rrp_number=rrp_number)
    return receive


def _line_costs(items, forex: Decimal, freight: Decimal, service: Decimal, vat_rate: Decimal) -> list[dict]:
    """
    Cost every line of one RRP.

    base = price·fx + share·freight·fx + customs + share·customs_service
    total = base + base·vat_rate% if vat
    share = price·fx / Σ price·fx
    """
    prices = [to_decimal(item['price']) * forex for item in items]
    total_price = sum(prices, Decimal('0'))

    lines = []
    for item, price in zip(items, prices):
        share = price / total_price if total_price else Decimal('0')
        line_freight = share * freight * forex
        line_service = share * service
        customs = to_decimal(item.get('customs_charge', 0))
        base = price + line_freight + customs + line_service
        vat = vat_rate if item.get('vat') else Decimal('0')
        lines.append({
            'item_price': price.quantize(COST_PLACES),
            'customs_charge': customs,
            'customs_service_charge': line_service.quantize(COST_PLACES),
            'freight_charge': line_freight.quantize(COST_PLACES),
            'vat_percentage': vat,
            'total_amount': (base + base * vat / 100).quantize(COST_PLACES),
        })
    return lines


def _check_resubmission_date(number: str, rrp_date: date) -> None:
    """A resubmitted T-number must stay between its neighbours' dates."""
    base, t = number.split('T')[0], t_suffix(number)
    neighbours = RRPRecord.objects.filter(rrp_number__startswith=f"{base}T").exclude(rrp_number=number)

    previous = next_ = None
    for row in neighbours:
        n = t_suffix(row.rrp_number)
        if n < t and (previous is None or n > t_suffix(previous.rrp_number)):
            previous = row
        elif n > t and (next_ is None or n < t_suffix(next_.rrp_number)):
            next_ = row

    if previous is not None and rrp_date < previous.rrp_date:
        raise StockError(
            'INVALID_DATE',
            message='RRP date cannot be before the previous RRP date',
            rrp_number=number,
            previous=previous.rrp_number,
            date=rrp_date.isoformat(),
        )
    if next_ is not None and rrp_date > next_.rrp_date:
        raise StockError(
            'INVALID_DATE',
            message='RRP date cannot be after the next RRP date',
            rrp_number=number,
            next=next_.rrp_number,
            date=rrp_date.isoformat(),
        )


class StockRRP:
    """RRP numbering, editing and approval."""

    @classmethod
    def verify_rrp_number(cls, rrp_number: str) -> str:
        """
        Check a base RRP number can be used in the current fiscal year.

        Returns:
            The T-number the next submission would get

        Raises:
            StockError('INVALID_RRP_NUMBER'): malformed or already T-suffixed
            StockError('DUPLICATE_REFERENCE'): base already used this fiscal year
        """
        base = StockSequences.validate_rrp_number(rrp_number)
        if 'T' in base:
            raise StockError('INVALID_RRP_NUMBER', rrp_number=base, message='Expected a base number without T suffix')

        fiscal_year = StockSequences.current_fiscal_year()
        used = RRPRecord.objects.filter(
            rrp_number__startswith=f"{base}T",
            fiscal_year=fiscal_year,
        ).exists()
        if used:
            raise StockError('DUPLICATE_REFERENCE', rrp_number=base, fiscal_year=fiscal_year)

        return StockSequences.peek_rrp_number(base)

    @classmethod
    def create_rrp(cls, rrp_number: str, rrp_date: date, supplier_name: str, items,
                   rrp_type: str = RRPType.LOCAL, currency: str = 'NPR', forex_rate=1,
                   freight_charge=0, customs_service_charge=0, vat_rate=0,
                   invoice_number: str = '', created_by: str = '') -> list[RRPRecord]:
        """
        Register an RRP over one or more APPROVED receives.

        A base number takes the next T-suffix. A T-number is only accepted
        as a resubmission of a REJECTED RRP, dated between the previous and
        next T-variants of the same base.

        Args:
            items: [{'receive_id', 'price', 'customs_charge', 'vat'}, ...]

        Raises:
            StockError('INVALID_RRP_NUMBER'), StockError('DUPLICATE_REFERENCE'),
            StockError('INVALID_DATE'), StockError('NOT_FOUND'),
            StockError('INVALID_STATUS')
        """
        items = list(items)
        if not items:
            raise StockError('INVALID_QUANTITY', message='RRP needs at least one receive')

        number = StockSequences.validate_rrp_number(rrp_number)

        with stock_mutation():
            fiscal_year = StockSequences.current_fiscal_year()

            if 'T' in number:
                existing = RRPRecord.objects.select_for_update().filter(rrp_number=number)
                if not existing.exists():
                    raise StockError(
                        'INVALID_RRP_NUMBER',
                        message='Only a rejected RRP number can be resubmitted',
                        rrp_number=number,
                    )
                if existing.exclude(approval_status=ApprovalStatus.REJECTED).exists():
                    raise StockError('DUPLICATE_REFERENCE', rrp_number=number)
                _check_resubmission_date(number, rrp_date)
                replaced = existing.delete()[0]
                logger.info("rrp.resubmit", extra={"rrp_number": number, "replaced": replaced})
            else:
                cls.verify_rrp_number(number)
                number = StockSequences.next_rrp_number(number)

            forex = to_decimal(forex_rate) if rrp_type == RRPType.FOREIGN else Decimal('1')
            costs = _line_costs(
                items, forex,
                to_decimal(freight_charge), to_decimal(customs_service_charge), to_decimal(vat_rate),
            )

            rows = []
            for item, cost in zip(items, costs):
                rows.append(RRPRecord.objects.create(
                    rrp_number=number,
                    receive=_free_receive(item['receive_id'], number),
                    rrp_type=rrp_type,
                    rrp_date=rrp_date,
                    supplier_name=supplier_name,
                    invoice_number=invoice_number,
                    currency=currency,
                    forex_rate=forex,
                    fiscal_year=fiscal_year,
                    created_by=created_by,
                    **cost,
                ))

            logger.info(
                "rrp.create",
                extra={
                    "rrp_number": number,
                    "lines": len(rows),
                    "supplier": supplier_name,
                    "total": str(sum((r.total_amount for r in rows), Decimal('0'))),
                },
            )
            return rows

    @classmethod
    def update_rrp(cls, rrp_number: str, items, rrp_date: date | None = None,
                   supplier_name: str | None = None, invoice_number: str | None = None,
                   currency: str | None = None, forex_rate=None, freight_charge=None,
                   customs_service_charge=None, vat_rate=None) -> list[RRPRecord]:
        """
        Edit a PENDING RRP.

        `items` is the full new line list, keyed by receive_id. Lines whose
        receive is no longer listed are dropped (freeing the receive), new
        receives are added, and every line is re-costed with the shared
        freight and customs service split again by price. Header values
        left as None keep their current value; freight and customs service
        default to the current RRP totals.

        Raises:
            StockError('NOT_FOUND'), StockError('INVALID_STATUS'),
            StockError('INVALID_QUANTITY'), StockError('DUPLICATE_REFERENCE')
        """
        items = list(items)
        if not items:
            raise StockError('INVALID_QUANTITY', message='RRP needs at least one receive')

        with stock_mutation():
            rows = _lock_rrp(rrp_number)
            if any(row.approval_status != ApprovalStatus.PENDING for row in rows):
                raise StockError('INVALID_STATUS', rrp_number=rrp_number)

            head = rows[0]
            old_forex = head.forex_rate or Decimal('1')
            forex = to_decimal(forex_rate) if forex_rate is not None else old_forex
            if head.rrp_type != RRPType.FOREIGN:
                forex = Decimal('1')
            if freight_charge is None:
                freight_charge = sum((r.freight_charge for r in rows), Decimal('0')) / old_forex
            if customs_service_charge is None:
                customs_service_charge = sum((r.customs_service_charge for r in rows), Decimal('0'))
            if vat_rate is None:
                vat_rate = max(r.vat_percentage for r in rows)

            by_receive = {row.receive_id: row for row in rows}
            keep = {int(item['receive_id']) for item in items}
            dropped = [row for row in rows if row.receive_id not in keep]
            affected = _items_of(rows)
            RRPRecord.objects.filter(pk__in=[r.pk for r in dropped]).delete()

            costs = _line_costs(
                items, forex,
                to_decimal(freight_charge), to_decimal(customs_service_charge), to_decimal(vat_rate),
            )
            header = {
                'rrp_date': rrp_date or head.rrp_date,
                'supplier_name': head.supplier_name if supplier_name is None else supplier_name,
                'invoice_number': head.invoice_number if invoice_number is None else invoice_number,
                'currency': currency or head.currency,
                'forex_rate': forex,
            }

            for item, cost in zip(items, costs):
                row = by_receive.get(int(item['receive_id']))
                if row is None:
                    row = RRPRecord(
                        rrp_number=rrp_number,
                        receive=_free_receive(item['receive_id'], rrp_number),
                        rrp_type=head.rrp_type,
                        fiscal_year=head.fiscal_year,
                        created_by=head.created_by,
                    )
                    affected.append(row.receive.stock_item)
                for field, value in {**header, **cost}.items():
                    setattr(row, field, value)
                row.save()

            revalue(*affected)
            logger.info(
                "rrp.update",
                extra={
                    "rrp_number": rrp_number,
                    "lines": len(items),
                    "dropped": [r.receive_id for r in dropped],
                },
            )
            return list(RRPRecord.objects.filter(rrp_number=rrp_number).order_by('pk'))

    @classmethod
    def approve_rrp(cls, rrp_number: str, approved_by: str = '') -> list[RRPRecord]:
        """Approve every PENDING line of an RRP and re-cost affected items."""
        with stock_mutation():
            rows = _lock_rrp(rrp_number)
            if any(row.approval_status != ApprovalStatus.PENDING for row in rows):
                raise StockError('INVALID_STATUS', rrp_number=rrp_number)

            RRPRecord.objects.filter(pk__in=[r.pk for r in rows]).update(
                approval_status=ApprovalStatus.APPROVED,
                approved_by=approved_by,
            )
            revalue(*_items_of(rows))
            logger.info("rrp.approve", extra={"rrp_number": rrp_number, "approved_by": approved_by})
            return list(RRPRecord.objects.filter(rrp_number=rrp_number).order_by('pk'))

    @classmethod
    def reject_rrp(cls, rrp_number: str, rejected_by: str = '', reason: str = '') -> list[RRPRecord]:
        """
        Reject every PENDING line of an RRP.

        The receives become free again: deletable, or registrable on a new RRP.
        """
        with stock_mutation():
            rows = _lock_rrp(rrp_number)
            if any(row.approval_status != ApprovalStatus.PENDING for row in rows):
                raise StockError('INVALID_STATUS', rrp_number=rrp_number)

            RRPRecord.objects.filter(pk__in=[r.pk for r in rows]).update(
                approval_status=ApprovalStatus.REJECTED,
                rejected_by=rejected_by,
                rejection_reason=reason,
            )
            logger.info(
                "rrp.reject",
                extra={"rrp_number": rrp_number, "rejected_by": rejected_by, "reason": reason},
            )
            return list(RRPRecord.objects.filter(rrp_number=rrp_number).order_by('pk'))
