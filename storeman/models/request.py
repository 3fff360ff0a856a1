"""
StockRequest model — the purchase request a receive is booked against.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from storeman.models.enums import ApprovalStatus


class StockRequest(models.Model):
    """
    Request for goods, received against by one or more ReceiveDetail rows.

    is_received flips once APPROVED receives cover requested_quantity, or
    when the request is closed on a partial receive.
    """

    request_number = models.CharField(max_length=50, db_index=True, verbose_name=_('Request number'))
    request_date = models.DateField(verbose_name=_('Request date'))
    nac_code = models.CharField(max_length=50, verbose_name=_('NAC code'))
    item_name = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Item name'))
    part_number = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Part number'))
    equipment_number = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Equipment number'))
    unit = models.CharField(max_length=20, blank=True, default='', verbose_name=_('Unit'))
    requested_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Requested quantity'),
    )
    requested_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Requested by'))
    approval_status = models.CharField(
        max_length=20,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
        verbose_name=_('Approval status'),
    )
    is_received = models.BooleanField(default=False, verbose_name=_('Received'))
    is_closed = models.BooleanField(
        default=False,
        verbose_name=_('Closed'),
        help_text=_('Closed on a partial receive; no further receives expected.'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Stock request')
        verbose_name_plural = _('Stock requests')
        ordering = ['-request_date', 'request_number']

    def received_total(self, statuses=(ApprovalStatus.APPROVED,)) -> Decimal:
        """Received so far, in the request unit."""
        receives = self.receives.filter(approval_status__in=statuses)
        return sum((r.stock_quantity for r in receives), Decimal('0'))

    @property
    def outstanding_quantity(self) -> Decimal:
        """Quantity still open for new receives (pending ones count as taken)."""
        if self.is_closed:
            return Decimal('0')
        taken = self.received_total((ApprovalStatus.PENDING, ApprovalStatus.APPROVED))
        return self.requested_quantity - taken

    def refresh_received(self) -> bool:
        is_received = self.is_closed or self.received_total() >= self.requested_quantity
        if is_received != self.is_received:
            self.is_received = is_received
            self.save(update_fields=['is_received', 'updated_at'])
        return is_received

    def __str__(self) -> str:
        return f"{self.request_number} / {self.nac_code} x {self.requested_quantity}"
