"""
FastAPI application for refresh triggers and cached reads.
"""

from .app import create_app

__all__ = ["create_app"]
