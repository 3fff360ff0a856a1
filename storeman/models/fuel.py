"""
FuelRecord model — fuel-specific data hanging off an IssueDetail.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from storeman.models.enums import ApprovalStatus, FuelType


class FuelRecord(models.Model):
    """Kilometers, price and week number of a fuel issue."""

    issue = models.OneToOneField(
        'storeman.IssueDetail',
        on_delete=models.CASCADE,
        related_name='fuel_record',
        verbose_name=_('Issue'),
    )
    fuel_type = models.CharField(
        max_length=20,
        choices=FuelType.choices,
        verbose_name=_('Fuel type'),
    )
    kilometers = models.PositiveIntegerField(default=0, verbose_name=_('Kilometers'))
    is_kilometer_reset = models.BooleanField(default=False, verbose_name=_('Kilometer reset'))
    fuel_price = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal('0'),
        verbose_name=_('Fuel price'),
    )
    week_number = models.PositiveSmallIntegerField(default=1, verbose_name=_('Week number'))
    fiscal_year = models.CharField(max_length=20, verbose_name=_('Fiscal year'))

    approval_status = models.CharField(
        max_length=20,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
        verbose_name=_('Approval status'),
    )
    approved_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Approved by'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Fuel record')
        verbose_name_plural = _('Fuel records')
        ordering = ['issue__issue_date', 'id']

    def __str__(self) -> str:
        return f"{self.get_fuel_type_display()} week {self.week_number}: {self.issue.issued_for}"
