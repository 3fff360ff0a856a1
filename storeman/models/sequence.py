"""
DocumentSequence model — locked counter rows for slip numbering.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class DocumentSequence(models.Model):
    """
    Counter keyed by (name, key), e.g. ('issue_slip', '2081/82').

    Always read and bumped under select_for_update(). anchor_date records
    the anchor last used for day- and week-based numbers.
    """

    name = models.CharField(max_length=50, verbose_name=_('Sequence'))
    key = models.CharField(max_length=100, verbose_name=_('Key'))
    anchor_date = models.DateField(null=True, blank=True, verbose_name=_('Anchor date'))
    current_value = models.PositiveIntegerField(default=0, verbose_name=_('Current value'))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Document sequence')
        verbose_name_plural = _('Document sequences')
        constraints = [
            models.UniqueConstraint(fields=['name', 'key'], name='unique_document_sequence'),
        ]

    def __str__(self) -> str:
        return f"{self.name}[{self.key}] = {self.current_value}"
