"""
UnitConversion model — how many received units make one stock unit.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class UnitConversion(models.Model):
    """
    Conversion for one NAC code between the requested and received unit.

    A receive counted in received_unit adds
    received_quantity / conversion_base to stock, in requested_unit.
    e.g. requested 'box', received 'pcs', conversion_base 12.
    """

    nac_code = models.CharField(max_length=50, verbose_name=_('NAC code'))
    requested_unit = models.CharField(max_length=20, verbose_name=_('Requested unit'))
    received_unit = models.CharField(max_length=20, verbose_name=_('Received unit'))
    conversion_base = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        validators=[MinValueValidator(Decimal('0.0001'))],
        verbose_name=_('Conversion base'),
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Unit conversion')
        verbose_name_plural = _('Unit conversions')
        ordering = ['nac_code', 'requested_unit', 'received_unit']
        constraints = [
            models.UniqueConstraint(
                fields=['nac_code', 'requested_unit', 'received_unit'],
                name='unique_unit_conversion',
            ),
        ]

    @classmethod
    def base_for(cls, nac_code: str, requested_unit: str, received_unit: str) -> Decimal | None:
        """Conversion base, or None when units match or none is recorded."""
        if not requested_unit or not received_unit or requested_unit == received_unit:
            return None
        return cls.objects.filter(
            nac_code=nac_code,
            requested_unit=requested_unit,
            received_unit=received_unit,
        ).values_list('conversion_base', flat=True).first()

    def __str__(self) -> str:
        return f"{self.nac_code}: {self.conversion_base} {self.received_unit} = 1 {self.requested_unit}"
