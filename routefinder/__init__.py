"""Licensing route finder: route catalog, synthesis passes and eligibility matching."""

__version__ = "1.0.0"
