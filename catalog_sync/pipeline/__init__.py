"""
Refresh trigger: authentication and pipeline orchestration.
"""

from .auth import authenticate
from .refresh import RefreshPipeline, build_catalog_bundle, reconcile

__all__ = ["authenticate", "RefreshPipeline", "build_catalog_bundle", "reconcile"]
