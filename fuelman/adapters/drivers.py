"""
Fuelman Driver Adapter — loads the configured DriverDirectory.

Usage:
    from fuelman.adapters import get_driver_directory, driver_label

    directory = get_driver_directory()
    info = directory.get_driver(42)

Settings:
    FUELMAN = {
        "DRIVER_DIRECTORY": "fleet.adapters.FleetDriverDirectory",
    }
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from fuelman.conf import fuelman_settings
from fuelman.protocols.drivers import DriverDirectory

logger = logging.getLogger(__name__)


# Cached directory instance
_lock = threading.Lock()
_driver_directory: DriverDirectory | None = None


def get_driver_directory() -> DriverDirectory:
    """
    Return the configured driver directory.

    Raises:
        ImproperlyConfigured: If DRIVER_DIRECTORY is empty or import fails
    """
    global _driver_directory

    if _driver_directory is None:
        with _lock:
            if _driver_directory is None:  # double-checked
                directory_path = fuelman_settings.DRIVER_DIRECTORY

                if not directory_path:
                    raise ImproperlyConfigured(
                        "FUELMAN['DRIVER_DIRECTORY'] must be configured. "
                        "Example: 'fuelman.adapters.noop.NoopDriverDirectory'"
                    )

                try:
                    directory_class = import_string(directory_path)
                    _driver_directory = directory_class()
                    logger.debug("Loaded driver directory: %s", directory_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import driver directory '{directory_path}': {e}"
                    ) from e

    return _driver_directory


def reset_driver_directory() -> None:
    """Reset the cached directory. Useful for testing."""
    global _driver_directory
    _driver_directory = None


def driver_label(driver_id: int | None) -> str:
    """
    Driver name for denormalized ledger labels.

    Best effort: any lookup failure is logged and yields ''.
    """
    if driver_id is None:
        return ''
    try:
        info = get_driver_directory().get_driver(driver_id)
    except Exception as exc:
        logger.warning("driver_label: lookup failed for %s: %s", driver_id, exc)
        return ''
    return info.name if info else ''
