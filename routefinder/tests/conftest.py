"""
Shared pytest fixtures for route finder tests.

This module provides common fixtures used across all test modules.
Import fixtures from here instead of defining them in individual test files.
"""
from __future__ import annotations

import os
from typing import Any, Callable, Dict, List

import pytest

# Set test environment before importing application modules
os.environ.setdefault("NODE_ENV", "test")
os.environ.pop("ROUTES_UPDATE_URL", None)
os.environ.pop("SHOW_ANALYTICS", None)
os.environ.pop("ANALYTICS_FILE", None)

from routefinder.config import CATALOG_DIR, get_settings  # noqa: E402
from routefinder.models import Route, SynthesisPass  # noqa: E402
from routefinder.routing import QualificationResolver, RouteMatcher, get_qualification_resolver  # noqa: E402
from routefinder.services.catalog_service import (  # noqa: E402
    RouteCatalog,
    get_route_catalog,
    load_seed_routes,
)
from routefinder.services.route_synthesizer import get_synthesis_passes, load_synthesis_passes  # noqa: E402


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def test_environment():
    """Ensure test environment is set for all tests."""
    old_env = os.environ.copy()
    os.environ["NODE_ENV"] = "test"
    yield
    os.environ.clear()
    os.environ.update(old_env)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached services between tests."""
    yield
    get_settings.cache_clear()
    get_route_catalog.cache_clear()
    get_synthesis_passes.cache_clear()
    get_qualification_resolver.cache_clear()


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest.fixture(scope="session")
def seed_routes() -> List[Route]:
    """The packaged hand-authored routes."""
    return load_seed_routes(CATALOG_DIR / "routes")


@pytest.fixture(scope="session")
def synthesis_passes() -> Dict[str, SynthesisPass]:
    return load_synthesis_passes(CATALOG_DIR / "synthesis")


@pytest.fixture
def resolver() -> QualificationResolver:
    return QualificationResolver.from_yaml(CATALOG_DIR / "synonyms.yaml")


@pytest.fixture
def catalog(seed_routes, synthesis_passes, resolver) -> RouteCatalog:
    """A fresh catalog built from the packaged data."""
    return RouteCatalog(seed_routes, passes=synthesis_passes, matcher=RouteMatcher(resolver))


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def route_record() -> Callable[..., Dict[str, Any]]:
    """Factory for raw route records, as found in seed files and update payloads."""

    def make(**overrides: Any) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "id": 1,
            "incomingCountry": "United Kingdom",
            "destinationCountry": "Canada",
            "destinationProvince": "Alberta",
            "specialty": "Family Medicine",
            "requiredQualifications": ["MRCGP", "CCT"],
            "minExperienceMonths": 12,
            "steps": [
                {
                    "title": "Apply for independent practice",
                    "description": "Submit an application to the provincial college.",
                    "docs": ["Passport", "CV"],
                    "fee": "$200",
                    "timeWeeks": "2",
                }
            ],
            "sources": [{"text": "CPSA", "url": "https://cpsa.ca/"}],
            "lastVerified": "2025-08-08",
        }
        record.update(overrides)
        return record

    return make


@pytest.fixture
def make_route(route_record) -> Callable[..., Route]:
    """Factory for validated routes."""

    def make(**overrides: Any) -> Route:
        return Route.model_validate(route_record(**overrides))

    return make


@pytest.fixture
def small_pass() -> SynthesisPass:
    """A two-by-two province pass used to exercise synthesis in isolation."""
    return SynthesisPass.model_validate(
        {
            "name": "small",
            "keyScope": "province",
            "destinationCountry": "Canada",
            "specialties": ["Cardiology"],
            "origins": ["United Kingdom", "Ireland"],
            "destinations": ["Alberta", "Ontario"],
            "qualifications": {
                "Cardiology": {
                    "United Kingdom": ["CCT Cardiology"],
                    "Ireland": ["CSCST Cardiology"],
                }
            },
            "minExperienceMonths": 60,
            "lastVerified": "2025-08-08",
            "templates": {
                "Alberta": {
                    "steps": [
                        {
                            "title": "Apply to CPSA",
                            "description": "Submit your {qualification} to the college in {destination}.",
                            "docs": ["Passport", "{qualification} certificate"],
                            "fee": "$200",
                            "timeWeeks": "4",
                        }
                    ],
                    "sources": [{"text": "CPSA", "url": "https://cpsa.ca/"}],
                },
                "Ontario": {
                    "steps": [{"title": "Apply to CPSO", "description": "Holders of {qualifications}."}],
                },
            },
        }
    )
