"""
Slip and sequence numbers.

Each counter is a DocumentSequence row locked with select_for_update(),
so two writers can never hand out the same value.
"""

import logging
from datetime import date, timedelta

from django.db.models import Min

from storeman.conf import storeman_settings
from storeman.exceptions import StockError
from storeman.models.config import ConfigEntry
from storeman.models.fuel import FuelRecord
from storeman.models.issue import IssueDetail
from storeman.models.rrp import RRP_NUMBER_RE, RRPRecord
from storeman.models.sequence import DocumentSequence
from storeman.models.transfer import BalanceTransfer
from storeman.services.ledger import stock_mutation

logger = logging.getLogger('storeman')

ISSUE_SLIP = 'issue_slip'
FUEL_WEEK = 'fuel_week'
TRANSFER_SLIP = 'transfer_slip'
RRP = 'rrp'


def week_number(first_date: date, current: date) -> int:
    """
    Fuel week of `current`, counting from `first_date`.

    Week 1 runs up to and including the first Saturday on or after
    first_date; every later week starts on a Sunday.
    """
    first_saturday = first_date + timedelta(days=(5 - first_date.weekday()) % 7)
    if current <= first_saturday:
        return 1
    return (current - first_saturday - timedelta(days=1)).days // 7 + 2


def _locked_sequence(name: str, key: str) -> DocumentSequence:
    # get_or_create retries the read when a concurrent insert wins
    DocumentSequence.objects.get_or_create(name=name, key=key)
    return DocumentSequence.objects.select_for_update().get(name=name, key=key)


def t_suffix(rrp_number: str) -> int:
    _, _, suffix = rrp_number.partition('T')
    return int(suffix) if suffix.isdigit() else 0


class StockSequences:
    """Slip, week and RRP numbering."""

    @classmethod
    def current_fiscal_year(cls) -> str:
        """
        Fiscal year scoping slip numbers.

        Read from ConfigEntry(rrp, current_fy), falling back to
        STOREMAN['FISCAL_YEAR'].

        Raises:
            StockError('CONFIG_MISSING'): Neither is set
        """
        fiscal_year = ConfigEntry.get_value('rrp', 'current_fy') or storeman_settings.FISCAL_YEAR
        if not fiscal_year:
            raise StockError('CONFIG_MISSING', config='rrp.current_fy')
        return fiscal_year

    @classmethod
    def next_value(cls, name: str, key: str) -> int:
        """Locked increment of an arbitrary counter."""
        with stock_mutation():
            seq = _locked_sequence(name, key)
            seq.current_value += 1
            seq.save(update_fields=['current_value', 'updated_at'])
            return seq.current_value

    @classmethod
    def issue_slip_number(cls, issue_date: date, fiscal_year: str, exclude_issue=None) -> str:
        """
        Slip number "{day}Y{fiscal_year}".

        day = days since the earliest issue still on file for the fiscal
        year + 1, or 1 when there is none. The anchor is re-read under the
        sequence lock on every call, so rejecting or deleting the first
        issue moves it forward.

        Raises:
            StockError('INVALID_DATE'): issue_date before the earliest issue
        """
        with stock_mutation():
            seq = _locked_sequence(ISSUE_SLIP, fiscal_year)
            issues = IssueDetail.objects.filter(fiscal_year=fiscal_year)
            if exclude_issue is not None:
                issues = issues.exclude(pk=exclude_issue.pk)
            anchor = issues.aggregate(d=Min('issue_date'))['d'] or issue_date
            if issue_date < anchor:
                raise StockError(
                    'INVALID_DATE',
                    date=issue_date.isoformat(),
                    anchor=anchor.isoformat(),
                    fiscal_year=fiscal_year,
                )

            day = (issue_date - anchor).days + 1
            seq.anchor_date = anchor
            seq.current_value = day
            seq.save(update_fields=['anchor_date', 'current_value', 'updated_at'])
            return f"{day}Y{fiscal_year}"

    @classmethod
    def fuel_week_number(cls, issue_date: date, fiscal_year: str, exclude_record=None) -> int:
        """Week of a fuel issue, relative to the earliest fuel issue on file."""
        with stock_mutation():
            seq = _locked_sequence(FUEL_WEEK, fiscal_year)
            records = FuelRecord.objects.filter(fiscal_year=fiscal_year)
            if exclude_record is not None:
                records = records.exclude(pk=exclude_record.pk)
            first = records.aggregate(d=Min('issue__issue_date'))['d']
            anchor = min(first, issue_date) if first else issue_date

            week = week_number(anchor, issue_date)
            seq.anchor_date = anchor
            seq.current_value = week
            seq.save(update_fields=['anchor_date', 'current_value', 'updated_at'])
            return week

    @classmethod
    def transfer_slip_number(cls, transfer_date: date) -> str:
        """Per-day transfer slip "YYYY-MM-DD-NNN"."""
        day = transfer_date.isoformat()
        with stock_mutation():
            seq = _locked_sequence(TRANSFER_SLIP, day)
            if seq.current_value == 0:
                existing = BalanceTransfer.objects.filter(
                    slip_number__startswith=f"{day}-"
                ).values_list('slip_number', flat=True)
                seq.current_value = max(
                    (int(s.rsplit('-', 1)[1]) for s in existing), default=0
                )
            seq.current_value += 1
            seq.save(update_fields=['current_value', 'updated_at'])
            return f"{day}-{seq.current_value:03d}"

    # ══════════════════════════════════════════════════════════════
    # RRP NUMBERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def validate_rrp_number(cls, rrp_number: str) -> str:
        """
        Check an RRP number against L###/F### with an optional T suffix.

        Raises:
            StockError('INVALID_RRP_NUMBER')
        """
        rrp_number = (rrp_number or '').strip()
        if not RRP_NUMBER_RE.match(rrp_number):
            raise StockError('INVALID_RRP_NUMBER', rrp_number=rrp_number)
        return rrp_number

    @classmethod
    def _last_t_suffix(cls, base: str) -> int:
        existing = RRPRecord.objects.filter(
            rrp_number__startswith=f"{base}T"
        ).values_list('rrp_number', flat=True)
        return max((t_suffix(n) for n in existing), default=0)

    @classmethod
    def peek_rrp_number(cls, base: str) -> str:
        """Next T-number for `base` without consuming it."""
        seq = DocumentSequence.objects.filter(name=RRP, key=base).first()
        last = max(cls._last_t_suffix(base), seq.current_value if seq else 0)
        return f"{base}T{last + 1}"

    @classmethod
    def next_rrp_number(cls, base: str) -> str:
        """Consume the next "{base}T{n}" number."""
        with stock_mutation():
            seq = _locked_sequence(RRP, base)
            seq.current_value = max(seq.current_value, cls._last_t_suffix(base)) + 1
            seq.save(update_fields=['current_value', 'updated_at'])
            number = f"{base}T{seq.current_value}"
            logger.info("rrp.number", extra={"base": base, "rrp_number": number})
            return number
