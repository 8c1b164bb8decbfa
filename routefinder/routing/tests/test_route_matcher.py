"""
Eligibility tests for RouteMatcher

Covers each match criterion in isolation (countries, province, specialty,
qualifications, experience threshold) and the end-to-end scenarios against
the packaged catalog.

Run with: pytest routefinder/routing/tests/ -v
"""

import pytest

from ...config import CATALOG_DIR
from ...models import Route, RouteQuery
from ...services.catalog_service import RouteCatalog, load_seed_routes
from ...services.route_synthesizer import load_synthesis_passes
from ..qualification_resolver import QualificationResolver
from ..route_matcher import RouteMatcher


def _route(**overrides) -> Route:
    record = {
        "id": 1,
        "incomingCountry": "United Kingdom",
        "destinationCountry": "Canada",
        "destinationProvince": "Alberta",
        "specialty": "Family Medicine",
        "requiredQualifications": ["MRCGP", "CCT"],
        "minExperienceMonths": 24,
        "steps": [{"title": "Apply"}],
    }
    record.update(overrides)
    return Route.model_validate(record)


def _query(**overrides) -> RouteQuery:
    values = {
        "incomingCountry": "United Kingdom",
        "destinationCountry": "Canada",
        "destinationProvince": "Alberta",
        "specialty": "Family Medicine",
        "qualifications": frozenset({"MRCGP", "CCT"}),
        "experienceMonths": 24,
    }
    values.update(overrides)
    return RouteQuery(**values)


@pytest.fixture
def matcher() -> RouteMatcher:
    return RouteMatcher(QualificationResolver([["FCFP(SA)", "FCFP"]]))


class TestExperienceThreshold:
    """The minimum experience is inclusive."""

    def test_one_month_short_does_not_match(self, matcher):
        assert matcher.matches(_route(), _query(experienceMonths=23)) is False

    def test_exact_minimum_matches(self, matcher):
        assert matcher.matches(_route(), _query(experienceMonths=24)) is True

    def test_more_than_minimum_matches(self, matcher):
        assert matcher.matches(_route(), _query(experienceMonths=240)) is True

    def test_zero_minimum_matches_zero_experience(self, matcher):
        route = _route(minExperienceMonths=0)
        assert matcher.matches(route, _query(experienceMonths=0)) is True


class TestQualifications:
    def test_all_required_qualifications_needed(self, matcher):
        assert matcher.matches(_route(), _query(qualifications=frozenset({"MRCGP"}))) is False
        assert matcher.matches(_route(), _query(qualifications=frozenset({"MRCGP", "CCT"}))) is True

    def test_extra_qualifications_are_ignored(self, matcher):
        query = _query(qualifications=frozenset({"MRCGP", "CCT", "MICGP"}))
        assert matcher.matches(_route(), query) is True

    def test_no_qualifications_never_match(self, matcher):
        assert matcher.matches(_route(), _query(qualifications=frozenset())) is False

    def test_missing_qualifications_in_route_order(self, matcher):
        route = _route(requiredQualifications=["MRCGP", "CCT", "DRCOG"])
        query = _query(qualifications=frozenset({"CCT"}))
        assert matcher.missing_qualifications(route, query) == ["MRCGP", "DRCOG"]

    def test_declared_synonym_satisfies_requirement(self, matcher):
        route = _route(incomingCountry="South Africa", requiredQualifications=["FCFP(SA)"])
        query = _query(incomingCountry="South Africa", qualifications=frozenset({"FCFP"}))
        assert matcher.matches(route, query) is True

    def test_synonym_works_in_both_directions(self, matcher):
        route = _route(incomingCountry="South Africa", requiredQualifications=["FCFP"])
        query = _query(incomingCountry="South Africa", qualifications=frozenset({"FCFP(SA)"}))
        assert matcher.matches(route, query) is True

    def test_undeclared_labels_match_exactly(self):
        matcher = RouteMatcher()
        route = _route(incomingCountry="South Africa", requiredQualifications=["FCFP(SA)"])
        query = _query(incomingCountry="South Africa", qualifications=frozenset({"FCFP"}))
        assert matcher.matches(route, query) is False

    def test_qualification_names_are_case_sensitive(self, matcher):
        assert matcher.matches(_route(), _query(qualifications=frozenset({"mrcgp", "cct"}))) is False


class TestJurisdiction:
    def test_province_route_requires_same_province(self, matcher):
        route = _route(destinationProvince="Alberta")
        assert matcher.matches(route, _query(destinationProvince="")) is False
        assert matcher.matches(route, _query(destinationProvince="Ontario")) is False
        assert matcher.matches(route, _query(destinationProvince="Alberta")) is True

    def test_country_wide_route_ignores_query_province(self, matcher):
        route = _route(destinationCountry="Ireland", destinationProvince="")
        for province in ("", "Leinster", "Alberta"):
            query = _query(destinationCountry="Ireland", destinationProvince=province)
            assert matcher.matches(route, query) is True

    def test_origin_must_match(self, matcher):
        assert matcher.matches(_route(), _query(incomingCountry="Ireland")) is False

    def test_destination_country_must_match(self, matcher):
        assert matcher.matches(_route(), _query(destinationCountry="Ireland")) is False

    def test_specialty_must_match(self, matcher):
        assert matcher.matches(_route(), _query(specialty="Cardiology")) is False

    def test_countries_are_case_sensitive(self, matcher):
        assert matcher.matches(_route(), _query(incomingCountry="united kingdom")) is False


class TestFindMatchingRoutes:
    def test_preserves_catalog_order(self, matcher):
        routes = [
            _route(id=7, minExperienceMonths=12),
            _route(id=3, specialty="Cardiology"),
            _route(id=5, requiredQualifications=["MRCGP"]),
        ]
        matched = matcher.find_matching_routes(routes, _query())
        assert [route.id for route in matched] == [7, 5]

    def test_no_match_returns_empty_list(self, matcher):
        assert matcher.find_matching_routes([_route()], _query(experienceMonths=0)) == []

    def test_empty_catalog(self, matcher):
        assert matcher.find_matching_routes([], _query()) == []


@pytest.fixture(scope="module")
def packaged_catalog() -> RouteCatalog:
    resolver = QualificationResolver.from_yaml(CATALOG_DIR / "synonyms.yaml")
    return RouteCatalog(
        load_seed_routes(CATALOG_DIR / "routes"),
        passes=load_synthesis_passes(CATALOG_DIR / "synthesis"),
        matcher=RouteMatcher(resolver),
    )


class TestPackagedCatalogScenarios:
    """End-to-end lookups against the shipped seed data and synthesis passes."""

    def test_uk_gp_to_alberta_with_twelve_months(self, packaged_catalog):
        query = RouteQuery.from_inputs(
            incoming_country="United Kingdom",
            destination_country="Canada",
            destination_province="Alberta",
            specialty="Family Medicine",
            qualifications=["MRCGP", "CCT"],
            experience_years=1,
        )
        matched = packaged_catalog.find_matching_routes(query)
        assert [route.id for route in matched] == [1]
        assert matched[0].minExperienceMonths == 12

    def test_uk_gp_to_alberta_with_eleven_months(self, packaged_catalog):
        query = _query(destinationProvince="Alberta", experienceMonths=11)
        assert packaged_catalog.find_matching_routes(query) == []

    def test_south_african_gp_to_bc_via_synonym(self, packaged_catalog):
        query = _query(
            incomingCountry="South Africa",
            destinationProvince="British Columbia",
            qualifications=frozenset({"FCFP"}),
            experienceMonths=24,
        )
        matched = packaged_catalog.find_matching_routes(query)
        assert len(matched) == 1
        assert matched[0].incomingCountry == "South Africa"
        assert matched[0].destinationProvince == "British Columbia"
        assert matched[0].requiredQualifications == ("FCFP(SA)",)

    def test_synthesized_gulf_route_matches(self, packaged_catalog):
        query = _query(
            destinationCountry="Qatar",
            destinationProvince="",
            qualifications=frozenset({"MRCGP"}),
            experienceMonths=36,
        )
        matched = packaged_catalog.find_matching_routes(query)
        assert len(matched) == 1
        assert matched[0].destinationCountry == "Qatar"
        assert matched[0].destinationProvince == ""

    def test_synthesized_family_medicine_route_for_nova_scotia(self, packaged_catalog):
        query = _query(destinationProvince="Nova Scotia", experienceMonths=24)
        matched = packaged_catalog.find_matching_routes(query)
        assert len(matched) == 1
        assert matched[0].requiredQualifications == ("MRCGP", "CCT")
