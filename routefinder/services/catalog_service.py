"""
Route Catalog Service

THE SINGLE SOURCE OF TRUTH for licensing routes.

Loads the hand-authored seed routes from YAML, runs the synthesis passes once,
and answers the enumeration queries the form needs (choice lists, provinces
per destination, applicable qualifications) plus eligibility lookups.

After startup the catalog only changes through ``replace()``, which validates
the whole payload and re-runs synthesis before swapping in the new routes.
A rejected payload leaves the current catalog untouched.
"""
from __future__ import annotations

import logging
import threading
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..config import get_settings
from ..exceptions import CatalogValidationError, ConfigurationError, RouteNotFoundError
from ..models import CatalogSummary, Route, RouteQuery, SynthesisPass
from ..routing import RouteMatcher, get_qualification_resolver
from .route_synthesizer import SynthesisResult, get_synthesis_passes, synthesize_catalog

logger = logging.getLogger(__name__)

# Route fields that can be enumerated for choice lists
ENUMERABLE_FIELDS = ("incomingCountry", "destinationCountry", "destinationProvince", "specialty")


def parse_routes(records: Any) -> List[Route]:
    """
    Validate a list of route-shaped records.

    Every record is checked before anything is returned so that one bad
    record rejects the whole payload.

    Raises:
        CatalogValidationError: payload is not a list, a record is invalid,
            or two records share an id
    """
    if not isinstance(records, list):
        raise CatalogValidationError(
            f"Route payload must be a list, got {type(records).__name__}"
        )

    routes: List[Route] = []
    errors: List[str] = []
    for index, record in enumerate(records):
        try:
            routes.append(Route.model_validate(record))
        except PydanticValidationError as e:
            for err in e.errors():
                location = ".".join(str(part) for part in err["loc"]) or "record"
                errors.append(f"[{index}] {location}: {err['msg']}")

    seen: Dict[int, int] = {}
    for index, route in enumerate(routes):
        if route.id in seen:
            errors.append(f"duplicate id {route.id}")
        seen[route.id] = index

    if errors:
        raise CatalogValidationError(f"{len(errors)} invalid route field(s)", errors=errors)
    return routes


def load_seed_routes(directory: Path) -> List[Route]:
    """Load every ``*.yaml`` route file in a directory, ordered by id."""
    if not directory.is_dir():
        raise ConfigurationError(f"Route directory not found: {directory}")

    records: List[Any] = []
    for yaml_file in sorted(directory.glob("*.yaml")):
        try:
            with open(yaml_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Error parsing {yaml_file}: {e}") from e

        file_routes = data.get("routes") if isinstance(data, dict) else None
        if not isinstance(file_routes, list):
            raise ConfigurationError(f"{yaml_file.name} must contain a 'routes' list")
        records.extend(file_routes)
        logger.debug(f"Loaded {len(file_routes)} route(s) from {yaml_file.name}")

    routes = parse_routes(records)
    routes.sort(key=lambda route: route.id)
    logger.info(f"Loaded {len(routes)} seed routes from {directory}")
    return routes


class RouteCatalog:
    """
    In-memory route catalog.

    Reads work on an immutable snapshot (a tuple of frozen routes); ``replace``
    builds the new snapshot completely before swapping it in under a lock.
    """

    def __init__(
        self,
        seed: Sequence[Route],
        passes: Optional[Mapping[str, SynthesisPass]] = None,
        matcher: Optional[RouteMatcher] = None,
    ) -> None:
        self._passes = passes
        self._matcher = matcher or RouteMatcher()
        self._lock = threading.Lock()
        self._routes: Tuple[Route, ...] = ()
        self._by_id: Dict[int, Route] = {}
        self._generated: Dict[str, int] = {}
        self._install(self._build(seed))

    @classmethod
    def from_directory(
        cls,
        routes_dir: Path,
        passes: Optional[Mapping[str, SynthesisPass]] = None,
        matcher: Optional[RouteMatcher] = None,
    ) -> RouteCatalog:
        return cls(load_seed_routes(routes_dir), passes=passes, matcher=matcher)

    def _build(self, seed: Sequence[Route]) -> SynthesisResult:
        passes = self._passes if self._passes is not None else get_synthesis_passes()
        return synthesize_catalog(seed, passes)

    def _install(self, result: SynthesisResult) -> None:
        routes = tuple(result.routes)
        by_id = {route.id: route for route in routes}
        with self._lock:
            self._routes = routes
            self._by_id = by_id
            self._generated = dict(result.generated)
        logger.info(
            f"Catalog ready: {len(routes)} routes "
            f"({result.seed_count} seed, {sum(result.generated.values())} synthesized)"
        )

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------

    @property
    def routes(self) -> Tuple[Route, ...]:
        return self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def get_route(self, route_id: int) -> Route:
        route = self._by_id.get(route_id)
        if route is None:
            raise RouteNotFoundError(route_id)
        return route

    def unique_values(self, field: str) -> List[str]:
        """Sorted distinct non-empty values of a route field."""
        if field not in ENUMERABLE_FIELDS:
            raise ValueError(f"Cannot enumerate route field '{field}'")
        return sorted({getattr(route, field) for route in self._routes if getattr(route, field)})

    def provinces_by_destination(self) -> Dict[str, List[str]]:
        """Destination country -> sorted distinct provinces recorded for it."""
        provinces: Dict[str, set] = {}
        for route in self._routes:
            if route.destinationProvince:
                provinces.setdefault(route.destinationCountry, set()).add(route.destinationProvince)
        return {country: sorted(names) for country, names in provinces.items()}

    def qualifications_for(self, country: str, specialty: str) -> List[str]:
        """
        Qualifications required by any route from ``country`` in ``specialty``.

        Empty when no route matches; callers fall back to all_qualifications().
        """
        qualifications = {
            qualification
            for route in self._routes
            if route.incomingCountry == country and route.specialty == specialty
            for qualification in route.requiredQualifications
        }
        return sorted(qualifications)

    def all_qualifications(self) -> List[str]:
        return sorted({q for route in self._routes for q in route.requiredQualifications})

    def find_matching_routes(self, query: RouteQuery) -> List[Route]:
        return self._matcher.find_matching_routes(self._routes, query)

    def summary(self) -> CatalogSummary:
        with self._lock:
            total = len(self._routes)
            generated = dict(self._generated)
        return CatalogSummary(
            total=total,
            seed=total - sum(generated.values()),
            synthesized=generated,
        )

    # ------------------------------------------------------------------
    # Bulk replace
    # ------------------------------------------------------------------

    def replace(self, records: Any) -> int:
        """
        Replace the seed routes wholesale and re-run every synthesis pass.

        All-or-nothing: validation or synthesis failures raise and leave the
        current catalog in place.

        Returns:
            Number of routes in the new catalog
        """
        try:
            seed = parse_routes(records)
            result = self._build(seed)
        except CatalogValidationError as e:
            logger.warning(f"Rejected catalog replacement: {e.message}")
            raise

        self._install(result)
        logger.info(f"Catalog replaced from {len(seed)} seed route(s)")
        return len(self._routes)


@lru_cache
def get_route_catalog() -> RouteCatalog:
    settings = get_settings()
    return RouteCatalog.from_directory(
        settings.routes_dir,
        matcher=RouteMatcher(get_qualification_resolver()),
    )
