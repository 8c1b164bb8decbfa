"""Utility functions for the route finder."""
from .experience import years_to_months
from .geographies import (
    canonicalize_canadian_region,
    canonicalize_country,
    canonicalize_region,
)

__all__ = [
    'years_to_months',
    'canonicalize_canadian_region',
    'canonicalize_country',
    'canonicalize_region',
]
