"""
Driver Directory Protocol — Interface for driver lookup.

Fuelman defines this protocol; the fleet/HR system implements it.
Ledger rows store the driver id plus a denormalized name label.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class DriverInfo:
    """Basic driver information."""

    driver_id: int
    name: str
    code: str | None = None
    is_active: bool = True


@runtime_checkable
class DriverDirectory(Protocol):
    """
    Protocol for driver lookup.

    Implementations should provide:
    - Lookup of a single driver by id
    """

    def get_driver(self, driver_id: int) -> DriverInfo | None:
        """
        Get driver information.

        Args:
            driver_id: Driver primary key in the fleet system

        Returns:
            DriverInfo or None if not found
        """
        ...
