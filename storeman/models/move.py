"""
StockMove model — Immutable ledger of balance changes.
"""

from decimal import Decimal

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from storeman.models.enums import MoveKind


class StockMove(models.Model):
    """
    Immutable record of a balance change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new moves with inverse delta
    - Updates StockItem.current_balance atomically on save()

    This is the ONLY model that changes a balance.
    """

    stock_item = models.ForeignKey(
        'storeman.StockItem',
        on_delete=models.PROTECT,
        related_name='moves',
        verbose_name=_('Stock item'),
    )

    delta = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Delta'),
        help_text=_('Positive = in, negative = out'),
    )
    balance_after = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Balance after'),
    )
    kind = models.CharField(
        max_length=20,
        choices=MoveKind.choices,
        default=MoveKind.ADJUST,
        verbose_name=_('Kind'),
    )

    # Movement document (receive, issue, transfer...)
    reference_type = models.ForeignKey(
        ContentType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Reference type'),
    )
    reference_id = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Reference ID'))
    reference = GenericForeignKey('reference_type', 'reference_id')

    reason = models.CharField(
        max_length=255,
        verbose_name=_('Reason'),
        help_text=_('Required. E.g. "Receive #12", "Reversal of issue #7"'),
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('User'),
    )

    class Meta:
        verbose_name = _('Stock move')
        verbose_name_plural = _('Stock moves')
        ordering = ['timestamp', 'id']
        indexes = [
            models.Index(fields=['stock_item', 'timestamp'], name='storeman_move_item_ts_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='storeman_move_ref_idx'),
        ]

    def save(self, *args, **kwargs):
        """Save move and update the item's balance cache atomically."""
        if self.pk:
            raise ValueError(
                "Stock moves are immutable. "
                "To correct one, create a new move with the inverse delta."
            )

        if not self.reason:
            raise ValueError("Reason is required")

        from storeman.models.stock_item import StockItem

        with transaction.atomic():
            locked = StockItem.objects.select_for_update().get(pk=self.stock_item_id)
            self.balance_after = locked.current_balance + self.delta
            if self.balance_after < 0:
                raise ValueError(
                    f"Move would leave {locked.nac_code} at {self.balance_after}"
                )

            super().save(*args, **kwargs)

            StockItem.objects.filter(pk=self.stock_item_id).update(
                current_balance=F('current_balance') + self.delta,
                updated_at=timezone.now()
            )

    def delete(self, *args, **kwargs):
        """Prevent deletion — moves are immutable."""
        raise ValueError(
            "Stock moves are immutable. "
            "To reverse one, create a new move with the inverse delta."
        )

    def __str__(self) -> str:
        signal = '+' if self.delta > 0 else ''
        return f"{signal}{self.delta} | {self.reason}"
