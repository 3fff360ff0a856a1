"""
Storeman configuration.

Usage in settings.py:
    STOREMAN = {
        "FISCAL_YEAR": "2081/82",
        "FUEL_NAC_CODES": {"diesel": "GT 07986", "petrol": "GT 00000"},
        "DUPLICATE_EXEMPT_EQUIPMENT": ("cleaning",),
        "REBUILD_VALUATION": True,
    }

The current fiscal year is normally read from the ConfigEntry table
(config_type="rrp", config_name="current_fy"); FISCAL_YEAR is the fallback.
"""

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


def _default_fuel_codes() -> dict[str, str]:
    return {'diesel': 'GT 07986', 'petrol': 'GT 00000'}


@dataclass
class StoremanSettings:
    """Storeman configuration settings."""

    # Fallback fiscal year when no ConfigEntry row exists
    FISCAL_YEAR: str = ""

    # Fuel type -> NAC code holding that fuel's stock
    FUEL_NAC_CODES: dict[str, str] = field(default_factory=_default_fuel_codes)

    # Diesel equipment allowed more than one entry per day
    DUPLICATE_EXEMPT_EQUIPMENT: tuple[str, ...] = ('cleaning',)

    # Re-run FIFO valuation after each mutation
    REBUILD_VALUATION: bool = True


def get_storeman_settings() -> StoremanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "STOREMAN", {})
    return StoremanSettings(**{
        k: v for k, v in user_settings.items()
        if k in StoremanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_storeman_settings(), name)


storeman_settings = _LazySettings()
