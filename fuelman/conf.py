"""
Fuelman configuration.

Usage in settings.py:
    FUELMAN = {
        "DRIVER_DIRECTORY": "fleet.adapters.FleetDriverDirectory",
        "REQUIRE_OPENING_READING": True,
        "CORRECTION_LOCK_NOWAIT": True,
        "AUDIT_ENABLED": True,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class FuelmanSettings:
    """Fuelman configuration settings."""

    # Driver directory backend (dotted path)
    DRIVER_DIRECTORY: str = "fuelman.adapters.noop.NoopDriverDirectory"

    # Internal transfers need an opening meter reading for the day
    REQUIRE_OPENING_READING: bool = True

    # Admin corrections fail fast (CONCURRENT_CONFLICT) instead of waiting on locks
    CORRECTION_LOCK_NOWAIT: bool = True

    # Write FuelOpsAudit rows for ledger operations
    AUDIT_ENABLED: bool = True


def get_fuelman_settings() -> FuelmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "FUELMAN", {})
    return FuelmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in FuelmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_fuelman_settings(), name)


fuelman_settings = _LazySettings()
