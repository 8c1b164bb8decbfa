"""
Route Matcher - Eligibility Filter Over the Route Catalog

A route matches a query only when every criterion holds:
1. Origin and destination country are equal (exact, case-sensitive)
2. The route's province, when it has one, equals the query's province
3. The specialty is equal
4. Every required qualification is held, directly or via a declared equivalent
5. The query's experience is at least the route's minimum (inclusive)

Results keep catalog order. Several routes may match the same query; choosing
between them is left to the caller.

Usage:
    from routefinder.routing import RouteMatcher

    matcher = RouteMatcher()
    routes = matcher.find_matching_routes(catalog.routes, query)
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..models import Route, RouteQuery
from .qualification_resolver import QualificationResolver

logger = logging.getLogger(__name__)


class RouteMatcher:
    """Filters routes down to the ones a query is eligible for."""

    def __init__(self, resolver: Optional[QualificationResolver] = None):
        self.resolver = resolver or QualificationResolver()

    def missing_qualifications(self, route: Route, query: RouteQuery) -> List[str]:
        """Required qualifications the query does not satisfy, in route order."""
        return [
            required
            for required in route.requiredQualifications
            if not self.resolver.is_satisfied(required, query.qualifications)
        ]

    def matches(self, route: Route, query: RouteQuery) -> bool:
        if route.incomingCountry != query.incomingCountry:
            return False
        if route.destinationCountry != query.destinationCountry:
            return False
        # Routes without a province apply to the whole destination country
        if route.destinationProvince and route.destinationProvince != query.destinationProvince:
            return False
        if route.specialty != query.specialty:
            return False
        if self.missing_qualifications(route, query):
            return False
        return query.experienceMonths >= route.minExperienceMonths

    def find_matching_routes(self, routes: Iterable[Route], query: RouteQuery) -> List[Route]:
        """Return the routes the query is eligible for, preserving catalog order."""
        matched = [route for route in routes if self.matches(route, query)]
        logger.debug(
            f"Matched {len(matched)} route(s) for {query.incomingCountry} -> "
            f"{query.destinationProvince or query.destinationCountry} ({query.specialty})"
        )
        return matched
