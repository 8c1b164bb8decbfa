"""
Route Synthesizer

Expands the hand-authored seed catalog with systematically generated routes
instead of hand-writing every near-identical combination.

Each pass is declared in a YAML file under ``catalog/synthesis/`` and
cross-products specialties x origins x destinations against per-jurisdiction
step templates (regulator names, assessment programs, fees) and a
specialty -> origin -> credential table. A combination is skipped when its
dedup key (specialty|origin|destination) is already in the catalog, so
re-running a pass never adds a logically duplicate route.

Passes are pure: each takes a route list and returns a new, extended list.
Ids come from one IdAllocator seeded from the initial catalog and threaded
through every pass in PASS_ORDER.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..config import get_settings
from ..exceptions import ConfigurationError, SynthesisError
from ..models import JurisdictionTemplate, Route, Step, SynthesisPass

logger = logging.getLogger(__name__)

SPECIALIST_PASS = "canada_specialist"
FAMILY_MEDICINE_PASS = "canada_family_medicine"
GULF_PASS = "gulf"

# Passes share one id sequence, so the order is fixed
PASS_ORDER: Tuple[str, ...] = (SPECIALIST_PASS, FAMILY_MEDICINE_PASS, GULF_PASS)


class IdAllocator:
    """Monotonic route id sequence. Ids are never reused."""

    def __init__(self, next_id: int = 1):
        self._next_id = next_id

    @classmethod
    def after(cls, routes: Sequence[Route]) -> IdAllocator:
        """Start after the highest id already in ``routes``."""
        return cls(max((route.id for route in routes), default=0) + 1)

    @property
    def next_id(self) -> int:
        return self._next_id

    def allocate(self) -> int:
        route_id = self._next_id
        self._next_id += 1
        return route_id


@dataclass
class SynthesisResult:
    """Routes after all passes, plus how many each pass generated."""
    routes: List[Route]
    generated: Dict[str, int] = field(default_factory=dict)

    @property
    def seed_count(self) -> int:
        return len(self.routes) - sum(self.generated.values())


# ============================================================================
# Pass definitions
# ============================================================================

def load_synthesis_pass(path: Path) -> SynthesisPass:
    """Load and validate one pass definition."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error loading synthesis pass {path}: {e}") from e

    try:
        return SynthesisPass.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid synthesis pass definition in {path.name}",
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e


def load_synthesis_passes(directory: Path) -> Dict[str, SynthesisPass]:
    """Load every ``*.yaml`` pass definition in a directory, keyed by pass name."""
    if not directory.is_dir():
        raise ConfigurationError(f"Synthesis directory not found: {directory}")

    passes: Dict[str, SynthesisPass] = {}
    for yaml_file in sorted(directory.glob("*.yaml")):
        plan = load_synthesis_pass(yaml_file)
        if plan.name in passes:
            raise ConfigurationError(f"Duplicate synthesis pass name '{plan.name}' in {yaml_file.name}")
        passes[plan.name] = plan
        logger.debug(f"Loaded synthesis pass '{plan.name}' from {yaml_file.name}")
    return passes


@lru_cache
def get_synthesis_passes() -> Dict[str, SynthesisPass]:
    return load_synthesis_passes(get_settings().synthesis_dir)


def _get_pass(name: str, passes: Optional[Mapping[str, SynthesisPass]]) -> SynthesisPass:
    passes = passes if passes is not None else get_synthesis_passes()
    try:
        return passes[name]
    except KeyError:
        raise ConfigurationError(f"Synthesis pass '{name}' is not defined") from None


# ============================================================================
# Route construction
# ============================================================================

def _render(text: str, context: Mapping[str, str], plan: SynthesisPass) -> str:
    try:
        return text.format_map(context)
    except (KeyError, IndexError, ValueError) as e:
        raise SynthesisError(
            f"Bad placeholder in template text {text!r}: {e}",
            pass_name=plan.name,
            destination=context.get("destination"),
        ) from e


def render_steps(
    plan: SynthesisPass,
    template: JurisdictionTemplate,
    qualifications: List[str],
    destination: str,
) -> List[Step]:
    """
    Fill a jurisdiction template for the given credentials.

    ``{qualification}`` is the first credential, ``{qualifications}`` all of
    them joined with " and ". A docs entry mentioning ``{qualification}`` is
    repeated once per credential.
    """
    context = {
        "qualification": qualifications[0],
        "qualifications": " and ".join(qualifications),
        "destination": destination,
    }

    steps = []
    for step in template.steps:
        docs: List[str] = []
        for doc in step.docs:
            if "{qualification}" in doc:
                docs.extend(_render(doc, {**context, "qualification": q}, plan) for q in qualifications)
            else:
                docs.append(_render(doc, context, plan))
        steps.append(
            Step(
                title=_render(step.title, context, plan),
                description=_render(step.description, context, plan),
                docs=tuple(docs),
                fee=step.fee,
                timeWeeks=step.timeWeeks,
            )
        )
    return steps


def _combinations(plan: SynthesisPass) -> Iterator[Tuple[str, str, str]]:
    """Yield (specialty, origin, destination) in the pass's configured axis order."""
    axes = {
        "specialty": plan.specialties,
        "origin": plan.origins,
        "destination": plan.destinations,
    }
    for values in itertools.product(*(axes[axis] for axis in plan.iterate)):
        combo = dict(zip(plan.iterate, values))
        yield combo["specialty"], combo["origin"], combo["destination"]


def lookup_qualifications(plan: SynthesisPass, specialty: str, origin: str) -> List[str]:
    """Credential names for a (specialty, origin) pair; a missing entry is a data bug."""
    qualifications = plan.qualifications.get(specialty, {}).get(origin)
    if not qualifications:
        raise SynthesisError(
            f"No qualification defined for {specialty} from {origin} in pass '{plan.name}'",
            pass_name=plan.name,
            specialty=specialty,
            origin=origin,
        )
    return qualifications


def build_route(
    plan: SynthesisPass,
    specialty: str,
    origin: str,
    destination: str,
    ids: IdAllocator,
) -> Route:
    qualifications = lookup_qualifications(plan, specialty, origin)
    template = plan.templates.get(destination)
    if template is None:
        raise SynthesisError(
            f"No step template for {destination} in pass '{plan.name}'",
            pass_name=plan.name,
            specialty=specialty,
            origin=origin,
            destination=destination,
        )

    if plan.keyScope == "province":
        destination_country, province = plan.destinationCountry, destination
    else:
        destination_country, province = destination, ""

    # Only allocate once every lookup has succeeded
    return Route(
        id=ids.allocate(),
        incomingCountry=origin,
        destinationCountry=destination_country,
        destinationProvince=province,
        specialty=specialty,
        requiredQualifications=tuple(qualifications),
        minExperienceMonths=plan.minExperienceMonths,
        steps=tuple(render_steps(plan, template, qualifications, destination)),
        sources=tuple(template.sources),
        lastVerified=plan.lastVerified,
    )


# ============================================================================
# Passes
# ============================================================================

def run_pass(
    routes: Sequence[Route],
    plan: SynthesisPass,
    ids: Optional[IdAllocator] = None,
) -> List[Route]:
    """
    Apply one synthesis pass.

    Args:
        routes: Current catalog (not modified)
        plan: Pass definition
        ids: Shared id sequence; defaults to one starting after ``routes``

    Returns:
        A new list: ``routes`` followed by the generated routes
    """
    ids = ids or IdAllocator.after(routes)
    existing_keys = {route.dedup_key(plan.keyScope) for route in routes}
    extended = list(routes)

    for specialty, origin, destination in _combinations(plan):
        key = f"{specialty}|{origin}|{destination}"
        if key in existing_keys:
            continue
        extended.append(build_route(plan, specialty, origin, destination, ids))
        existing_keys.add(key)

    logger.info(f"Synthesis pass '{plan.name}' generated {len(extended) - len(routes)} route(s)")
    return extended


def generate_specialist_routes(
    routes: Sequence[Route],
    ids: Optional[IdAllocator] = None,
    passes: Optional[Mapping[str, SynthesisPass]] = None,
) -> List[Route]:
    """Specialist routes into Canadian provinces."""
    return run_pass(routes, _get_pass(SPECIALIST_PASS, passes), ids)


def generate_family_medicine_routes(
    routes: Sequence[Route],
    ids: Optional[IdAllocator] = None,
    passes: Optional[Mapping[str, SynthesisPass]] = None,
) -> List[Route]:
    """Family Medicine routes for the additional Canadian provinces."""
    return run_pass(routes, _get_pass(FAMILY_MEDICINE_PASS, passes), ids)


def generate_gulf_routes(
    routes: Sequence[Route],
    ids: Optional[IdAllocator] = None,
    passes: Optional[Mapping[str, SynthesisPass]] = None,
) -> List[Route]:
    """Family Medicine and general specialist routes into the Gulf states."""
    return run_pass(routes, _get_pass(GULF_PASS, passes), ids)


def synthesize_catalog(
    seed: Sequence[Route],
    passes: Optional[Mapping[str, SynthesisPass]] = None,
) -> SynthesisResult:
    """Run every pass in PASS_ORDER against the seed routes with one shared id sequence."""
    ids = IdAllocator.after(seed)
    routes: List[Route] = list(seed)
    generated: Dict[str, int] = {}

    for name in PASS_ORDER:
        before = len(routes)
        routes = run_pass(routes, _get_pass(name, passes), ids)
        generated[name] = len(routes) - before

    return SynthesisResult(routes=routes, generated=generated)
