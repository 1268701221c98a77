"""
Noop Driver Directory — Stub adapter for development and testing.

Usage in settings.py:
    FUELMAN = {
        "DRIVER_DIRECTORY": "fuelman.adapters.noop.NoopDriverDirectory",
    }

Ledger rows keep the driver id; the name label stays empty.
"""

from __future__ import annotations

from fuelman.protocols.drivers import DriverInfo


class NoopDriverDirectory:
    """
    No-operation driver directory.

    Knows no drivers. Implements the ``DriverDirectory`` protocol without
    any external dependencies, making it suitable for local development,
    tests and deployments without a fleet system.
    """

    def get_driver(self, driver_id: int) -> DriverInfo | None:
        return None
