"""Pydantic models for the First-Car Matcher.

Input schemas for raw quiz answers, the normalized preference profile, and
output schemas for scored vehicles, ranking lookups and the payload handed to
the recommendation text generator.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Re-export catalog enums for convenience
from vehicle_catalog.schema import (
    BodyStyle,
    Drivetrain,
    ExtrasTag,
    FitTag,
    Vehicle,
)


# =============================================================================
# Enums
# =============================================================================


class SafetyLevel(str, Enum):
    """Requested safety tier. Ordinal: baseline < advanced < max."""
    BASELINE = "baseline"
    ADVANCED = "advanced"
    MAX = "max"


class AnswerType(str, Enum):
    """Shape of a quiz answer."""
    SINGLE = "single"
    MULTI = "multi"
    TEXT = "text"


# =============================================================================
# Raw Input Models (matching the quiz payload)
# =============================================================================


class RawAnswer(BaseModel):
    """One quiz answer as posted by the client."""
    question_id: str = Field(..., alias="questionId")
    label: Optional[str] = None
    priority: Optional[int] = None
    # Informational only; unknown tags from newer clients are kept as-is
    type: str = AnswerType.SINGLE.value
    selected_values: list[str] = Field(default_factory=list, alias="selectedValues")
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("selected_values", mode="before")
    @classmethod
    def coerce_selected_values(cls, value: Any) -> Any:
        """Accept null or a bare string from loosely-typed clients."""
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


# =============================================================================
# Preference Profile
# =============================================================================


class BudgetPreference(BaseModel):
    """Soft price band. ``max`` is a ceiling, ``min`` a floor."""
    min: Optional[float] = None
    max: Optional[float] = None
    priority: Optional[int] = Field(None, ge=1, le=5)

    model_config = ConfigDict(frozen=True)


class SafetyPreference(BaseModel):
    level: SafetyLevel
    priority: Optional[int] = Field(None, ge=1, le=5)

    model_config = ConfigDict(frozen=True)


class UsagePreference(BaseModel):
    tags: list[FitTag] = Field(default_factory=list)
    priority: Optional[int] = Field(None, ge=1, le=5)

    model_config = ConfigDict(frozen=True)


class ExtrasPreference(BaseModel):
    tags: list[ExtrasTag] = Field(default_factory=list)
    priority: Optional[int] = Field(None, ge=1, le=5)

    model_config = ConfigDict(frozen=True)


class PreferenceProfile(BaseModel):
    """Canonical parsed intent. Absent axes contribute nothing to scores."""
    budget: Optional[BudgetPreference] = None
    safety: Optional[SafetyPreference] = None
    usage: Optional[UsagePreference] = None
    extras: Optional[ExtrasPreference] = None

    model_config = ConfigDict(frozen=True)

    def is_empty(self) -> bool:
        return not any((self.budget, self.safety, self.usage, self.extras))


class PreferenceContext(BaseModel):
    """Prose summaries for the text generator. Never used for scoring."""
    budget_summary: Optional[str] = None
    safety_summary: Optional[str] = None
    usage_summary: Optional[str] = None
    extras_summary: Optional[str] = None
    tech_preference: Optional[str] = None
    timeline_expectation: Optional[str] = None
    notes: Optional[list[str]] = None

    model_config = ConfigDict(frozen=True)


class AnswersFile(BaseModel):
    """A saved set of quiz answers, e.g. an evaluation fixture."""
    description: Optional[str] = None
    preferences: list[dict[str, Any]] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    limit: Optional[int] = Field(None, ge=1)


class UnrecognizedAnswer(BaseModel):
    """An answered question whose value is not in the lookup table."""
    question_id: str
    value: str


class NormalizationResult(BaseModel):
    """Output of the preference normalizer."""
    profile: PreferenceProfile = Field(default_factory=PreferenceProfile)
    context: PreferenceContext = Field(default_factory=PreferenceContext)
    unrecognized: list[UnrecognizedAnswer] = Field(default_factory=list)


# =============================================================================
# Scoring and Output Models
# =============================================================================


class ScoreBreakdown(BaseModel):
    """Priority-weighted score per axis."""
    budget: float = 0.0
    safety: float = 0.0
    usage: float = 0.0
    extras: float = 0.0

    @property
    def total(self) -> float:
        return self.budget + self.safety + self.usage + self.extras


class ScoredVehicle(BaseModel):
    """A catalog vehicle with its match score. Computed per request."""
    vehicle: Vehicle
    score: float
    score_breakdown: ScoreBreakdown

    @property
    def id(self) -> str:
        return self.vehicle.id


class VehicleDescriptor(BaseModel):
    """A make/model (and optional year) to locate in the catalog."""
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: Optional[int] = None

    def label(self) -> str:
        prefix = f"{self.year} " if self.year else ""
        return f"{prefix}{self.make} {self.model}"


class RankingResult(BaseModel):
    """Where a specific vehicle falls in the full ranked catalog."""
    matched: Optional[ScoredVehicle] = None
    rank: Optional[int] = None
    total_compared: int = 0
    leaderboard: list[ScoredVehicle] = Field(default_factory=list)
    year_exact: Optional[bool] = None
    available_years: list[int] = Field(default_factory=list)


# =============================================================================
# Text generator payload
# =============================================================================


class PriceRange(BaseModel):
    min: int
    max: int


class CandidateTags(BaseModel):
    fit: list[FitTag] = Field(default_factory=list)
    extras: list[ExtrasTag] = Field(default_factory=list)


class CandidateSafety(BaseModel):
    iihs_top_safety_pick: bool
    nhtsa_overall: Optional[int] = None
    notable_features: list[str] = Field(default_factory=list)


class CandidateFuelEconomy(BaseModel):
    city: Optional[int] = None
    highway: Optional[int] = None
    combined: Optional[int] = None


class CandidateHighlights(BaseModel):
    tech: list[str] = Field(default_factory=list)
    teen_friendly: list[str] = Field(default_factory=list)
    maintenance: list[str] = Field(default_factory=list)


class CandidateImage(BaseModel):
    url: str
    attribution: Optional[str] = None


class CandidateSource(BaseModel):
    type: str
    url: str


class VehicleCandidate(BaseModel):
    """Display projection of a scored vehicle, trimmed for prompt size."""
    id: str
    name: str
    score: float
    score_breakdown: ScoreBreakdown
    msrp_range: PriceRange
    body_style: BodyStyle
    drivetrain: Drivetrain
    tags: CandidateTags
    safety: CandidateSafety
    fuel_economy: CandidateFuelEconomy
    highlights: CandidateHighlights
    image: Optional[CandidateImage] = None
    sources: list[CandidateSource] = Field(default_factory=list)


class RecommendationSnapshot(BaseModel):
    """Everything the recommendation text generator receives."""
    preferences: list[RawAnswer] = Field(default_factory=list)
    context: PreferenceContext = Field(default_factory=PreferenceContext)
    candidates: list[VehicleCandidate] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
