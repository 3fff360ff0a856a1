"""
IssueDetail model — stock issued out of a NAC code.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from storeman.models.enums import ApprovalStatus, IssueSource


class IssueDetail(models.Model):
    """
    One issued line.

    Stock is subtracted when the row is created (even while PENDING).
    Rejecting or deleting the row adds it back.
    """

    issue_date = models.DateField(db_index=True, verbose_name=_('Issue date'))
    stock_item = models.ForeignKey(
        'storeman.StockItem',
        on_delete=models.PROTECT,
        related_name='issues',
        verbose_name=_('Stock item'),
    )
    source = models.CharField(
        max_length=20,
        choices=IssueSource.choices,
        default=IssueSource.SPARE,
        verbose_name=_('Source'),
    )

    part_number = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Part number'))
    issued_for = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Issued for'))
    issue_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Issue quantity'),
    )
    remaining_balance = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Remaining balance'),
        help_text=_('Balance of the NAC code right after this issue.'),
    )
    issue_cost = models.DecimalField(
        max_digits=16,
        decimal_places=4,
        default=Decimal('0'),
        verbose_name=_('Issue cost'),
    )

    issue_slip_number = models.CharField(max_length=50, db_index=True, verbose_name=_('Issue slip number'))
    fiscal_year = models.CharField(max_length=20, verbose_name=_('Fiscal year'))

    approval_status = models.CharField(
        max_length=20,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
        db_index=True,
        verbose_name=_('Approval status'),
    )
    issued_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Issued by'))
    approved_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Approved by'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Issue')
        verbose_name_plural = _('Issues')
        ordering = ['issue_date', 'id']
        indexes = [
            models.Index(fields=['stock_item', 'issue_date'], name='storeman_issue_item_date_idx'),
            models.Index(fields=['fiscal_year', 'issue_date'], name='storeman_issue_fy_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.issue_slip_number} {self.stock_item.nac_code} -{self.issue_quantity}"
