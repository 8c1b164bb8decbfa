"""
Routing Module

Eligibility matching over the route catalog.

Components:
- QualificationResolver: Declared equivalences between credential labels
- RouteMatcher: Filters catalog routes down to the ones a query satisfies
"""

from .qualification_resolver import QualificationResolver, get_qualification_resolver
from .route_matcher import RouteMatcher

__all__ = [
    "QualificationResolver",
    "RouteMatcher",
    "get_qualification_resolver",
]
