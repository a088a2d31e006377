"""
Website liveness probing.
"""

from .prober import LivenessProber, summarize

__all__ = ["LivenessProber", "summarize"]
