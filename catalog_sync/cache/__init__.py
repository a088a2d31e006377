"""
Edge cache clients, snapshot publisher and reader.
"""

from .edge_cache import EdgeCache, HttpEdgeCache, InMemoryEdgeCache, build_edge_cache, json_size
from .publisher import ESSENTIAL_FIELDS, CachePublisher, optimize_catalog
from .reader import CacheReader, CacheReadResult

__all__ = [
    "EdgeCache",
    "InMemoryEdgeCache",
    "HttpEdgeCache",
    "build_edge_cache",
    "json_size",
    "ESSENTIAL_FIELDS",
    "CachePublisher",
    "optimize_catalog",
    "CacheReader",
    "CacheReadResult",
]
