"""
ConfigEntry model — runtime application config (current fiscal year etc).
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ConfigEntry(models.Model):
    config_type = models.CharField(max_length=50, verbose_name=_('Type'))
    config_name = models.CharField(max_length=100, verbose_name=_('Name'))
    config_value = models.TextField(verbose_name=_('Value'))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Config entry')
        verbose_name_plural = _('Config entries')
        ordering = ['config_type', 'config_name']
        constraints = [
            models.UniqueConstraint(fields=['config_type', 'config_name'], name='unique_config_entry'),
        ]

    @classmethod
    def get_value(cls, config_type: str, config_name: str, default: str | None = None) -> str | None:
        row = cls.objects.filter(config_type=config_type, config_name=config_name).first()
        return row.config_value if row else default

    def __str__(self) -> str:
        return f"{self.config_type}.{self.config_name} = {self.config_value}"
