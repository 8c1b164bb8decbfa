from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils.experience import years_to_months


# ============================================================================
# Catalog records
# ============================================================================

class Source(BaseModel):
    """Citation backing a route. Informational only, never matched against."""

    model_config = ConfigDict(frozen=True)

    text: str
    url: str


class Step(BaseModel):
    """One procedural stage of a route (application, assessment, registration)."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    title: str = Field(..., min_length=1)
    description: str = ""
    docs: Tuple[str, ...] = ()
    fee: str = ""
    timeWeeks: str = ""  # may be a range such as "8-12"


class Route(BaseModel):
    """A complete licensing procedure from one jurisdiction's credential to practice rights."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., ge=1)
    incomingCountry: str = Field(..., min_length=1)
    destinationCountry: str = Field(..., min_length=1)
    destinationProvince: str = ""
    specialty: str = Field(..., min_length=1)
    requiredQualifications: Tuple[str, ...] = Field(..., min_length=1)
    minExperienceMonths: int = Field(..., ge=0)
    steps: Tuple[Step, ...]
    sources: Tuple[Source, ...] = ()
    lastVerified: str = ""

    @field_validator("destinationProvince", mode="before")
    @classmethod
    def blank_province(cls, v):
        return v or ""

    @field_validator("requiredQualifications")
    @classmethod
    def non_blank_qualifications(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not q.strip() for q in v):
            raise ValueError("qualification names must not be blank")
        return v

    def dedup_key(self, scope: str) -> str:
        """Canonical (specialty, origin, destination) key used to prevent duplicate synthesis.

        ``scope`` is ``"province"`` for domestic passes and ``"country"`` for
        cross-country passes.
        """
        destination = self.destinationProvince if scope == "province" else self.destinationCountry
        return f"{self.specialty}|{self.incomingCountry}|{destination}"


class RouteQuery(BaseModel):
    """A single eligibility lookup built from user input."""

    model_config = ConfigDict(frozen=True)

    incomingCountry: str
    destinationCountry: str
    destinationProvince: str = ""
    specialty: str
    qualifications: FrozenSet[str] = Field(default_factory=frozenset)
    experienceMonths: int = Field(default=0, ge=0)

    @field_validator("destinationProvince", mode="before")
    @classmethod
    def blank_province(cls, v):
        return v or ""

    @classmethod
    def from_inputs(
        cls,
        incoming_country: str,
        destination_country: str,
        specialty: str,
        qualifications: Iterable[str] = (),
        experience_years: Any = 0,
        destination_province: Optional[str] = None,
    ) -> "RouteQuery":
        """Build a query from raw form values, converting experience from years to months."""
        return cls(
            incomingCountry=incoming_country,
            destinationCountry=destination_country,
            destinationProvince=destination_province or "",
            specialty=specialty,
            qualifications=frozenset(qualifications),
            experienceMonths=years_to_months(experience_years),
        )

    @property
    def usage_key(self) -> tuple[str, str, str]:
        return (self.incomingCountry, self.destinationProvince, self.specialty)


# ============================================================================
# Synthesis templates
# ============================================================================

Axis = Literal["specialty", "origin", "destination"]


class JurisdictionTemplate(BaseModel):
    """Steps and citations for one destination jurisdiction."""

    steps: List[Step] = Field(..., min_length=1)
    sources: List[Source] = Field(default_factory=list)


class SynthesisPass(BaseModel):
    """
    Declarative definition of one synthesis pass.

    Cross-products ``specialties`` x ``origins`` x ``destinations`` (in the
    axis order given by ``iterate``) and builds a route for every combination
    whose dedup key is not already in the catalog.
    """

    name: str
    keyScope: Literal["province", "country"]
    destinationCountry: Optional[str] = None
    specialties: List[str] = Field(..., min_length=1)
    origins: List[str] = Field(..., min_length=1)
    destinations: List[str] = Field(..., min_length=1)
    iterate: List[Axis] = Field(default_factory=lambda: ["specialty", "origin", "destination"])
    qualifications: Dict[str, Dict[str, List[str]]]
    minExperienceMonths: int = Field(..., ge=0)
    lastVerified: str = ""
    templates: Dict[str, JurisdictionTemplate] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_axes(self):
        if sorted(self.iterate) != ["destination", "origin", "specialty"]:
            raise ValueError("iterate must list specialty, origin and destination exactly once")
        if self.keyScope == "province" and not self.destinationCountry:
            raise ValueError("province-scoped passes need a destinationCountry")
        return self


# ============================================================================
# API request/response models
# ============================================================================

class MatchRequest(BaseModel):
    incomingCountry: str = Field(..., min_length=1)
    destinationCountry: str = Field(..., min_length=1)
    destinationProvince: Optional[str] = None
    specialty: str = Field(..., min_length=1)
    qualifications: List[str] = Field(default_factory=list)
    experienceYears: Optional[Union[float, str]] = None


class MatchResponse(BaseModel):
    eligible: bool
    message: str
    query: RouteQuery
    routes: List[Route] = Field(default_factory=list)


class OptionsResponse(BaseModel):
    incomingCountries: List[str]
    destinationCountries: List[str]
    specialties: List[str]
    provincesByDestination: Dict[str, List[str]]
    qualifications: List[str]


class QualificationsResponse(BaseModel):
    country: str
    specialty: str
    qualifications: List[str]
    fallback: bool = False


class CatalogSummary(BaseModel):
    total: int
    seed: int
    synthesized: Dict[str, int] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    catalog: CatalogSummary
    updatesEnabled: bool = False
    analyticsEnabled: bool = False


class UpdateResponse(BaseModel):
    applied: bool
    message: str
    routeCount: int


class UsageEntry(BaseModel):
    origin: str
    province: str
    specialty: str
    count: int


class HeatmapResponse(BaseModel):
    origins: List[str]
    provinces: List[str]
    counts: Dict[str, Dict[str, int]]
    maxCount: int


class AnalyticsResponse(BaseModel):
    entries: List[UsageEntry]
    top: List[UsageEntry]
    heatmap: HeatmapResponse
