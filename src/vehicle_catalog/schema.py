"""Pydantic models for the vehicle catalog schema."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class BodyStyle(str, Enum):
    """Body style classification."""
    SEDAN = "SEDAN"
    SUV = "SUV"
    CROSSOVER = "CROSSOVER"
    HATCHBACK = "HATCHBACK"
    PICKUP = "PICKUP"


class Drivetrain(str, Enum):
    """Driven wheels."""
    FWD = "FWD"
    RWD = "RWD"
    AWD = "AWD"


class InsuranceTier(str, Enum):
    """Relative insurance cost for a teen driver."""
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class FitTag(str, Enum):
    """How a vehicle fits week-to-week usage."""
    DAILY_COMMUTE = "DAILY_COMMUTE"
    SHARED_FAMILY = "SHARED_FAMILY"
    WEEKEND_ADVENTURE = "WEEKEND_ADVENTURE"
    ECO_CONSCIOUS = "ECO_CONSCIOUS"


class ExtrasTag(str, Enum):
    """Feel-good factors a family may ask for."""
    AMERICAN_MADE = "AMERICAN_MADE"
    BRIGHT_COLOR = "BRIGHT_COLOR"
    ECO_CONSCIOUS = "ECO_CONSCIOUS"
    HIGHER_SEATING = "HIGHER_SEATING"


class VehicleDataSource(str, Enum):
    """Where the row's enrichment data came from."""
    MANUAL = "MANUAL"
    NHTSA = "NHTSA"
    CARQUERY = "CARQUERY"
    FUEL_ECONOMY = "FUEL_ECONOMY"
    BLENDED = "BLENDED"


class VehicleSource(BaseModel):
    """A reference backing the catalog row."""
    type: str
    url: str


class Vehicle(BaseModel):
    """A scorable catalog row.

    One row may stand for several model years; the scoring engine treats it
    as a single unit regardless of which year within ``years`` is asked for.
    """
    # Identity
    id: str = Field(..., min_length=1, description="Stable catalog identifier")
    make: str
    model: str
    trim: Optional[str] = None
    years: list[int] = Field(..., min_length=1, description="Model years this row represents")

    # Pricing
    msrp_min: int
    msrp_max: int

    # Classification
    body_style: BodyStyle
    drivetrain: Drivetrain
    insurance_tier: InsuranceTier = InsuranceTier.MODERATE

    # Safety
    safety_iihs_top_safety_pick: bool = False
    safety_nhtsa_overall: Optional[int] = Field(None, ge=1, le=5)
    safety_nhtsa_frontal: Optional[int] = Field(None, ge=1, le=5)
    safety_nhtsa_side: Optional[int] = Field(None, ge=1, le=5)
    safety_nhtsa_rollover: Optional[int] = Field(None, ge=1, le=5)
    safety_notable_features: list[str] = Field(default_factory=list)
    recall_count: Optional[int] = None

    # Fit / extras
    fit_tags: list[FitTag] = Field(default_factory=list)
    extras_tags: list[ExtrasTag] = Field(default_factory=list)

    # Descriptive only, never scored
    fuel_economy_city: int = 0
    fuel_economy_highway: int = 0
    fuel_economy_combined: Optional[int] = None
    tech_highlights: list[str] = Field(default_factory=list)
    teen_friendly_factors: list[str] = Field(default_factory=list)
    maintenance_notes: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    image_attribution: Optional[str] = None
    data_source: VehicleDataSource = VehicleDataSource.MANUAL
    sources: list[VehicleSource] = Field(default_factory=list)
    last_reviewed: Optional[datetime] = None

    model_config = {"frozen": True}

    @field_validator("fit_tags", "extras_tags")
    @classmethod
    def dedupe_tags(cls, tags: list) -> list:
        """Drop repeated tags, keeping first occurrence."""
        return list(dict.fromkeys(tags))

    @model_validator(mode="after")
    def check_price_range(self) -> "Vehicle":
        if self.msrp_min > self.msrp_max:
            raise ValueError(
                f"msrp_min ({self.msrp_min}) exceeds msrp_max ({self.msrp_max}) for {self.id}"
            )
        return self

    @property
    def display_name(self) -> str:
        """Make, model and trim, e.g. ``Honda Civic EX``."""
        name = f"{self.make} {self.model}"
        if self.trim:
            name += f" {self.trim}"
        return name

    @property
    def needs_enrichment(self) -> bool:
        """True when imagery, combined fuel economy or NHTSA overall is missing."""
        return (
            not self.image_url
            or self.fuel_economy_combined is None
            or self.safety_nhtsa_overall is None
        )


class VehicleCatalog(BaseModel):
    """A full in-memory catalog snapshot."""
    version: str = Field(default="1.0.0", description="Catalog schema version")
    loaded_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the snapshot was read"
    )
    source_path: Optional[str] = Field(None, description="File the catalog was read from")
    total_vehicles: int = Field(default=0, description="Total number of vehicles")
    vehicles: list[Vehicle] = Field(default_factory=list, description="Catalog rows")

    @model_validator(mode="after")
    def check_unique_ids(self) -> "VehicleCatalog":
        seen: set[str] = set()
        duplicates = []
        for vehicle in self.vehicles:
            if vehicle.id in seen:
                duplicates.append(vehicle.id)
            seen.add(vehicle.id)
        if duplicates:
            raise ValueError(f"Duplicate vehicle ids: {', '.join(sorted(set(duplicates)))}")
        return self

    def model_post_init(self, __context) -> None:
        """Update total count after initialization."""
        self.total_vehicles = len(self.vehicles)
