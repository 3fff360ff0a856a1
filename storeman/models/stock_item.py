"""
StockItem model — one balance row per NAC code.
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger('storeman')


class StockItemManager(models.Manager):
    """Manager with helper methods for StockItem queries."""

    def by_code(self, nac_code):
        return self.filter(nac_code=nac_code)

    def in_stock(self):
        return self.filter(current_balance__gt=0)


class StockItem(models.Model):
    """
    Stock-keeping unit identified by its NAC code.

    Performance:
    - current_balance is a cache updated atomically by StockMove
    - Read is O(1), not O(N)
    - Use recalculate() for audit/correction

    Invariant:
    - current_balance == open_quantity + sum(moves.delta), never negative
    """

    nac_code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('NAC code'),
    )

    # Descriptive fields (comma-merged as receives come in)
    item_name = models.TextField(blank=True, default='', verbose_name=_('Item name'))
    part_numbers = models.TextField(blank=True, default='', verbose_name=_('Part numbers'))
    applicable_equipments = models.TextField(
        blank=True,
        default='',
        verbose_name=_('Applicable equipments'),
    )
    location = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Location'))
    card_number = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Card number'))
    unit = models.CharField(max_length=20, blank=True, default='', verbose_name=_('Unit'))

    # Balance cache (updated atomically by StockMove)
    current_balance = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Current balance'),
    )

    # Opening lot
    open_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Opening quantity'),
    )
    open_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0'),
        verbose_name=_('Opening amount'),
    )
    open_remaining_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Opening quantity remaining'),
        help_text=_('Part of the opening lot not yet consumed (FIFO).'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockItemManager()

    class Meta:
        verbose_name = _('Stock item')
        verbose_name_plural = _('Stock items')
        ordering = ['nac_code']
        constraints = [
            models.CheckConstraint(
                condition=Q(current_balance__gte=0),
                name='stock_item_balance_non_negative',
            ),
        ]

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def balance(self) -> Decimal:
        """Current balance — O(1) cache read."""
        return self.current_balance

    @property
    def open_unit_cost(self) -> Decimal:
        if not self.open_quantity:
            return Decimal('0')
        return self.open_amount / self.open_quantity

    # ══════════════════════════════════════════════════════════════
    # METHODS
    # ══════════════════════════════════════════════════════════════

    def ledger_balance(self) -> Decimal:
        """Balance derived from the opening lot plus every move."""
        moved = self.moves.aggregate(
            t=Coalesce(Sum('delta'), Decimal('0'))
        )['t']
        return self.open_quantity + moved

    def recalculate(self) -> Decimal:
        """
        Recalculate current_balance from the ledger.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            New calculated balance
        """
        total = self.ledger_balance()

        if total != self.current_balance:
            old = self.current_balance
            self.current_balance = total
            self.save(update_fields=['current_balance', 'updated_at'])

            logger.warning(
                "stock.recalculate",
                extra={
                    "nac_code": self.nac_code,
                    "old": str(old),
                    "new": str(total),
                    "diff": str(total - old),
                },
            )

        return total

    def __str__(self) -> str:
        return f"{self.nac_code}: {self.current_balance}"
