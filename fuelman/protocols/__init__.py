"""
Fuelman Protocols.

Defines interfaces for external system integration.
"""

from fuelman.protocols.drivers import DriverDirectory, DriverInfo

__all__ = [
    "DriverDirectory",
    "DriverInfo",
]
