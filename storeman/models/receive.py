"""
ReceiveDetail model — goods received into a NAC code.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from storeman.models.enums import ApprovalStatus, BorrowStatus, ReceiveSource

QUANTITY_PLACES = Decimal('0.001')


class ReceiveDetail(models.Model):
    """
    One received line.

    Stock effect:
    - APPROVED receives have been added to the ledger
    - PENDING receives wait for approve_receive()
    - REJECTED receives never touch stock

    received_quantity is counted in the receive unit. When that differs
    from the request unit, stock moves by received_quantity / conversion_base.
    """

    receive_date = models.DateField(db_index=True, verbose_name=_('Receive date'))
    stock_item = models.ForeignKey(
        'storeman.StockItem',
        on_delete=models.PROTECT,
        related_name='receives',
        verbose_name=_('Stock item'),
    )
    request = models.ForeignKey(
        'storeman.StockRequest',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='receives',
        verbose_name=_('Request'),
    )
    source = models.CharField(
        max_length=20,
        choices=ReceiveSource.choices,
        default=ReceiveSource.DIRECT,
        verbose_name=_('Source'),
    )

    item_name = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Item name'))
    part_number = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Part number'))
    equipment_number = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Equipment number'))
    location = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Location'))
    card_number = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Card number'))
    unit = models.CharField(max_length=20, blank=True, default='', verbose_name=_('Unit'))

    received_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Received quantity'),
    )
    remaining_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Remaining quantity'),
        help_text=_('Not yet consumed by issues (FIFO).'),
    )
    transferred_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Transferred quantity'),
    )
    conversion_base = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        default=Decimal('1'),
        verbose_name=_('Conversion base'),
        help_text=_('Received units per stock unit.'),
    )

    # Borrow receives
    borrow_source = models.ForeignKey(
        'storeman.BorrowSource',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='receives',
        verbose_name=_('Borrow source'),
    )
    borrow_status = models.CharField(
        max_length=20,
        choices=BorrowStatus.choices,
        blank=True,
        default='',
        verbose_name=_('Borrow status'),
    )
    borrow_reference_number = models.CharField(
        max_length=100, blank=True, default='', verbose_name=_('Borrow reference'),
    )
    return_date = models.DateField(null=True, blank=True, verbose_name=_('Return date'))

    approval_status = models.CharField(
        max_length=20,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
        db_index=True,
        verbose_name=_('Approval status'),
    )
    received_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Received by'))
    approved_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Approved by'))
    rejected_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Rejected by'))
    rejection_reason = models.TextField(blank=True, default='', verbose_name=_('Rejection reason'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Receive')
        verbose_name_plural = _('Receives')
        ordering = ['receive_date', 'id']
        indexes = [
            models.Index(fields=['stock_item', 'receive_date'], name='storeman_recv_item_date_idx'),
        ]

    @property
    def is_applied(self) -> bool:
        """Has this receive been added to the ledger?"""
        return self.approval_status == ApprovalStatus.APPROVED

    def to_stock_quantity(self, quantity) -> Decimal:
        """Convert a quantity in the receive unit to the stock unit."""
        if self.conversion_base == 1:
            return quantity
        return (quantity / self.conversion_base).quantize(QUANTITY_PLACES)

    @property
    def stock_quantity(self) -> Decimal:
        """What this receive adds to the balance."""
        return self.to_stock_quantity(self.received_quantity)

    @property
    def is_borrowed(self) -> bool:
        """Borrowed goods not yet handed back."""
        return self.source == ReceiveSource.BORROW and self.borrow_status == BorrowStatus.ACTIVE

    @property
    def transferable_quantity(self) -> Decimal:
        return self.stock_quantity - self.transferred_quantity

    def active_rrps(self):
        """RRP rows still holding this receive (anything not rejected)."""
        return self.rrps.exclude(approval_status=ApprovalStatus.REJECTED)

    def approved_rrp(self):
        return self.rrps.filter(approval_status=ApprovalStatus.APPROVED).order_by('-id').first()

    def __str__(self) -> str:
        return f"Receive #{self.pk} {self.stock_item.nac_code} +{self.received_quantity}"
