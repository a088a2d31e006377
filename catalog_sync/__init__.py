"""
catalog-sync: reconciliation, categorization and cache refresh for a software-product catalog.
"""

__version__ = "1.0.0"
