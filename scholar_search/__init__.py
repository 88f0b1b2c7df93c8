"""Resilient Google Scholar search client."""

__version__ = "1.0.0"
