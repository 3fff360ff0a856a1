"""
RRPRecord model — Receive Register Paper line.
"""

import re
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from storeman.models.enums import ApprovalStatus, RRPType

RRP_NUMBER_RE = re.compile(r'^[LF]\d{3}(T\d+)?$')


class RRPRecord(models.Model):
    """
    One RRP line, costing one APPROVED receive.

    Lines sharing an rrp_number form one RRP document and are approved
    or rejected together.
    """

    rrp_number = models.CharField(max_length=20, db_index=True, verbose_name=_('RRP number'))
    receive = models.ForeignKey(
        'storeman.ReceiveDetail',
        on_delete=models.PROTECT,
        related_name='rrps',
        verbose_name=_('Receive'),
    )
    rrp_type = models.CharField(
        max_length=20,
        choices=RRPType.choices,
        default=RRPType.LOCAL,
        verbose_name=_('Type'),
    )
    rrp_date = models.DateField(verbose_name=_('RRP date'))
    supplier_name = models.CharField(max_length=255, verbose_name=_('Supplier'))
    invoice_number = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Invoice number'))
    currency = models.CharField(max_length=10, default='NPR', verbose_name=_('Currency'))
    forex_rate = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal('1'), verbose_name=_('Forex rate'))

    item_price = models.DecimalField(max_digits=16, decimal_places=4, verbose_name=_('Item price'))
    customs_charge = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal('0'), verbose_name=_('Customs charge'))
    customs_service_charge = models.DecimalField(
        max_digits=16,
        decimal_places=4,
        default=Decimal('0'),
        verbose_name=_('Customs service charge'),
    )
    freight_charge = models.DecimalField(max_digits=16, decimal_places=4, default=Decimal('0'), verbose_name=_('Freight charge'))
    vat_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0'), verbose_name=_('VAT %'))
    total_amount = models.DecimalField(max_digits=16, decimal_places=4, verbose_name=_('Total amount'))

    fiscal_year = models.CharField(max_length=20, verbose_name=_('Fiscal year'))
    approval_status = models.CharField(
        max_length=20,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
        db_index=True,
        verbose_name=_('Approval status'),
    )
    created_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Created by'))
    approved_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Approved by'))
    rejected_by = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Rejected by'))
    rejection_reason = models.TextField(blank=True, default='', verbose_name=_('Rejection reason'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('RRP line')
        verbose_name_plural = _('RRP lines')
        ordering = ['rrp_number', 'id']

    @property
    def base_number(self) -> str:
        return self.rrp_number.split('T')[0]

    @property
    def unit_cost(self) -> Decimal:
        qty = self.receive.stock_quantity
        if not qty:
            return Decimal('0')
        return self.total_amount / qty

    def __str__(self) -> str:
        return f"{self.rrp_number} ({self.supplier_name})"
