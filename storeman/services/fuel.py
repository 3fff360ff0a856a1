"""
Fuel issues — IssueDetail + FuelRecord pairs against the fuel NAC codes.
"""

import logging
from datetime import date

from storeman.conf import storeman_settings
from storeman.exceptions import StockError
from storeman.models.enums import ApprovalStatus, FuelType, IssueSource, MoveKind
from storeman.models.fuel import FuelRecord
from storeman.models.issue import IssueDetail
from storeman.services.issuing import StockIssuing
from storeman.services.ledger import SUBTRACT, StockLedger, can_subtract, lock_item, stock_mutation, to_decimal
from storeman.services.sequences import StockSequences
from storeman.valuation import COST_PLACES, revalue

logger = logging.getLogger('storeman')


def fuel_nac_code(fuel_type: str) -> str:
    """NAC code holding the stock of `fuel_type` (STOREMAN['FUEL_NAC_CODES'])."""
    codes = storeman_settings.FUEL_NAC_CODES
    try:
        return codes[str(fuel_type)]
    except KeyError:
        raise StockError(
            'CONFIG_MISSING',
            message=f"No NAC code configured for fuel type {fuel_type!r}",
            fuel_type=str(fuel_type),
        ) from None


def _exempt(equipment_number: str) -> bool:
    exempt = {e.lower() for e in storeman_settings.DUPLICATE_EXEMPT_EQUIPMENT}
    return equipment_number.strip().lower() in exempt


def _check_diesel_duplicates(issue_date: date, equipment_numbers, exclude_issue=None) -> None:
    """One diesel entry per equipment per day, except exempt equipment."""
    seen = set()
    for equipment_number in equipment_numbers:
        if _exempt(equipment_number):
            continue
        key = equipment_number.strip().lower()
        existing = FuelRecord.objects.filter(
            fuel_type=FuelType.DIESEL,
            issue__issue_date=issue_date,
            issue__issued_for__iexact=equipment_number.strip(),
        )
        if exclude_issue is not None:
            existing = existing.exclude(issue=exclude_issue)
        if key in seen or existing.exists():
            raise StockError(
                'DUPLICATE_REFERENCE',
                message=f"Diesel already issued to {equipment_number} on {issue_date.isoformat()}",
                equipment_number=equipment_number,
                date=issue_date.isoformat(),
            )
        seen.add(key)


def _lock_fuel_record(fuel_record_id) -> FuelRecord:
    record = FuelRecord.objects.select_for_update().filter(pk=fuel_record_id).first()
    if record is None:
        raise StockError('NOT_FOUND', fuel_record_id=fuel_record_id)
    return record


class StockFuel:
    """Fuel issue lifecycle."""

    @classmethod
    def issue_fuel(cls, fuel_type: str, issue_date: date, price, records,
                   issued_by: str = '', user=None) -> list[FuelRecord]:
        """
        Issue fuel to one or more pieces of equipment under one slip.

        Args:
            records: [{'equipment_number', 'quantity', 'kilometers', 'is_kilometer_reset'}, ...]

        Each line costs price * quantity and gets the fiscal-year week number.

        Raises:
            StockError('INVALID_QUANTITY'): empty batch or quantity <= 0
            StockError('DUPLICATE_REFERENCE'): diesel issued twice to one equipment in a day
            StockError('NOT_FOUND'): fuel NAC code has no stock row
            StockError('INSUFFICIENT_STOCK'): total exceeds the fuel balance
        """
        fuel_type = str(fuel_type)
        nac_code = fuel_nac_code(fuel_type)
        price = to_decimal(price)

        lines = [
            {
                'equipment_number': str(r['equipment_number']).strip(),
                'quantity': to_decimal(r['quantity']),
                'kilometers': int(r.get('kilometers') or 0),
                'is_kilometer_reset': bool(r.get('is_kilometer_reset', False)),
            }
            for r in records
        ]
        if not lines:
            raise StockError('INVALID_QUANTITY', message='Nothing to issue')
        for line in lines:
            if line['quantity'] <= 0:
                raise StockError(
                    'INVALID_QUANTITY',
                    equipment_number=line['equipment_number'],
                    requested=line['quantity'],
                )

        with stock_mutation():
            fiscal_year = StockSequences.current_fiscal_year()
            if fuel_type == FuelType.DIESEL:
                _check_diesel_duplicates(issue_date, [line['equipment_number'] for line in lines])

            item = lock_item(nac_code)
            total = sum(line['quantity'] for line in lines)
            if not can_subtract(item, total):
                raise StockError(
                    'INSUFFICIENT_STOCK',
                    nac_code=nac_code,
                    available=item.current_balance,
                    requested=total,
                )

            slip = StockSequences.issue_slip_number(issue_date, fiscal_year)
            week = StockSequences.fuel_week_number(issue_date, fiscal_year)

            created = []
            for line in lines:
                issue = IssueDetail.objects.create(
                    issue_date=issue_date,
                    stock_item=item,
                    source=IssueSource.FUEL,
                    issued_for=line['equipment_number'],
                    issue_quantity=line['quantity'],
                    issue_cost=(price * line['quantity']).quantize(COST_PLACES),
                    issue_slip_number=slip,
                    fiscal_year=fiscal_year,
                    issued_by=issued_by,
                )
                move = StockLedger.adjust_balance(
                    nac_code,
                    line['quantity'],
                    SUBTRACT,
                    reference=issue,
                    reason=f"Fuel issue {slip} to {line['equipment_number']}",
                    kind=MoveKind.ISSUE,
                    user=user,
                )
                issue.remaining_balance = move.balance_after
                issue.save(update_fields=['remaining_balance', 'updated_at'])

                created.append(FuelRecord.objects.create(
                    issue=issue,
                    fuel_type=fuel_type,
                    kilometers=line['kilometers'],
                    is_kilometer_reset=line['is_kilometer_reset'],
                    fuel_price=price,
                    week_number=week,
                    fiscal_year=fiscal_year,
                ))

            revalue(item)

            logger.info(
                "stock.fuel.issue",
                extra={
                    "fuel_type": fuel_type,
                    "slip": slip,
                    "week": week,
                    "qty": str(total),
                    "lines": len(created),
                },
            )
            return created

    @classmethod
    def approve_fuel_issue(cls, fuel_record_id, approved_by: str = '') -> FuelRecord:
        """Approve a fuel record together with its issue."""
        with stock_mutation():
            record = _lock_fuel_record(fuel_record_id)
            StockIssuing.approve_issues([record.issue_id], approved_by=approved_by)
            record.refresh_from_db()
            return record

    @classmethod
    def update_fuel_issue(cls, fuel_record_id, quantity=None, price=None, issue_date: date | None = None,
                          equipment_number: str | None = None, kilometers: int | None = None,
                          is_kilometer_reset: bool | None = None, user=None) -> FuelRecord:
        """
        Edit a fuel issue.

        Quantity, price, date and equipment go through update_issue (stock,
        slip and cost); a new date also re-derives the week number.
        """
        with stock_mutation():
            record = _lock_fuel_record(fuel_record_id)
            issue = record.issue

            new_date = issue_date or issue.issue_date
            new_equipment = equipment_number.strip() if equipment_number else issue.issued_for
            if record.fuel_type == FuelType.DIESEL and (
                new_date != issue.issue_date or new_equipment.lower() != issue.issued_for.lower()
            ):
                _check_diesel_duplicates(new_date, [new_equipment], exclude_issue=issue)

            StockIssuing.update_issue(
                issue.pk,
                quantity=quantity,
                issue_date=issue_date,
                price=price,
                issued_for=new_equipment,
                user=user,
            )

            record.refresh_from_db()
            if issue_date is not None:
                record.week_number = StockSequences.fuel_week_number(
                    issue_date, record.fiscal_year, exclude_record=record,
                )
            if kilometers is not None:
                record.kilometers = kilometers
            if is_kilometer_reset is not None:
                record.is_kilometer_reset = is_kilometer_reset
            record.save()

            logger.info("stock.fuel.update", extra={"fuel_record_id": record.pk})
            return record

    @classmethod
    def delete_fuel_issue(cls, fuel_record_id, user=None) -> None:
        """Delete a fuel issue, giving the fuel back to stock."""
        with stock_mutation():
            record = _lock_fuel_record(fuel_record_id)
            StockIssuing.delete_issue(record.issue_id, user=user)
            logger.info("stock.fuel.delete", extra={"fuel_record_id": fuel_record_id})

    @classmethod
    def pending_fuel_records(cls, fuel_type: str | None = None):
        records = FuelRecord.objects.filter(approval_status=ApprovalStatus.PENDING).select_related('issue')
        if fuel_type:
            records = records.filter(fuel_type=fuel_type)
        return records
