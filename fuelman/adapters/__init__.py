"""
Fuelman Adapters.

Implementations of protocols for external systems.
"""

from fuelman.adapters.drivers import (
    driver_label,
    get_driver_directory,
    reset_driver_directory,
)

__all__ = [
    "driver_label",
    "get_driver_directory",
    "reset_driver_directory",
]
