"""
Logging and metrics shared by every pipeline component.
"""
