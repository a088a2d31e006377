"""
Clients for the upstream catalog stores.
"""

from .legacy_client import LegacySourceClient

__all__ = ["LegacySourceClient"]
