"""
BorrowSource model — other stores goods are borrowed from.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class BorrowSource(models.Model):
    """A lender. Only active sources accept new borrow receives."""

    source_name = models.CharField(max_length=255, unique=True, verbose_name=_('Source name'))
    source_code = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Source code'))
    contact_person = models.CharField(max_length=100, blank=True, default='', verbose_name=_('Contact person'))
    contact_phone = models.CharField(max_length=50, blank=True, default='', verbose_name=_('Contact phone'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Borrow source')
        verbose_name_plural = _('Borrow sources')
        ordering = ['source_name']

    def __str__(self) -> str:
        return self.source_name
