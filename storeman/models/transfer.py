"""
BalanceTransfer model — quantity moved from one NAC code to another.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class BalanceTransfer(models.Model):
    """
    Paired subtract + add between two NAC codes.

    The debit leg is an APPROVED IssueDetail on the source, the credit leg
    an APPROVED ReceiveDetail on the destination. Reverting deletes both.
    """

    from_item = models.ForeignKey(
        'storeman.StockItem',
        on_delete=models.PROTECT,
        related_name='transfers_out',
        verbose_name=_('From'),
    )
    to_item = models.ForeignKey(
        'storeman.StockItem',
        on_delete=models.PROTECT,
        related_name='transfers_in',
        verbose_name=_('To'),
    )
    quantity = models.DecimalField(max_digits=12, decimal_places=3, verbose_name=_('Quantity'))
    transfer_date = models.DateField(verbose_name=_('Transfer date'))
    transfer_cost = models.DecimalField(
        max_digits=16,
        decimal_places=4,
        default=Decimal('0'),
        verbose_name=_('Transfer cost'),
    )
    slip_number = models.CharField(max_length=30, unique=True, verbose_name=_('Slip number'))
    transferred_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Transferred by'))

    issue = models.OneToOneField(
        'storeman.IssueDetail',
        on_delete=models.PROTECT,
        related_name='transfer',
        verbose_name=_('Debit leg'),
    )
    receive = models.OneToOneField(
        'storeman.ReceiveDetail',
        on_delete=models.PROTECT,
        related_name='transfer',
        verbose_name=_('Credit leg'),
    )
    source_receive = models.ForeignKey(
        'storeman.ReceiveDetail',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transfers_from_lot',
        verbose_name=_('Costing lot'),
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Balance transfer')
        verbose_name_plural = _('Balance transfers')
        ordering = ['-transfer_date', '-id']

    def __str__(self) -> str:
        return f"{self.slip_number}: {self.from_item.nac_code} -> {self.to_item.nac_code} x {self.quantity}"
