"""Utilities package."""

from .text import dedupe_results, normalize_title

__all__ = ["normalize_title", "dedupe_results"]
