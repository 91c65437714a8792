"""Metron - quota-aware personal time tracking."""

__version__ = "1.0.0"
