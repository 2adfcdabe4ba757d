"""Catalog loading and the read-only store boundary.

The scoring engine never opens files or connections itself. Callers build a
store once (usually at process start) and hand it to the engine, which reads
one full snapshot per call.

Catalog files use the seed format::

    [
      {
        "id": "honda-civic-2022",
        "make": "Honda",
        "model": "Civic",
        "years": [2022, 2023],
        "bodyStyle": "sedan",
        "drivetrain": "fwd",
        "msrpRange": [23950, 29450],
        "insuranceTier": "moderate",
        "fuelEconomy": {"city": 31, "highway": 40},
        "safety": {"iihsTopSafetyPick": true, "nhtsaOverall": 5,
                   "notableFeatures": ["Honda Sensing"]},
        "fitTags": ["daily-commute"],
        "extrasTags": ["eco-conscious"],
        "lastReviewed": "2024-11-01"
      }
    ]

A top-level object with a ``vehicles`` key is accepted as well.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Union, runtime_checkable

from pydantic import ValidationError

from .schema import (
    BodyStyle,
    Drivetrain,
    ExtrasTag,
    FitTag,
    InsuranceTier,
    Vehicle,
    VehicleCatalog,
    VehicleDataSource,
)

logger = logging.getLogger(__name__)


class CatalogLoadError(Exception):
    """Raised when a catalog file cannot be read or fails validation."""


# Seed files use lowercase, hyphenated values
BODY_STYLE_MAP = {
    "sedan": BodyStyle.SEDAN,
    "suv": BodyStyle.SUV,
    "crossover": BodyStyle.CROSSOVER,
    "hatchback": BodyStyle.HATCHBACK,
    "pickup": BodyStyle.PICKUP,
}

DRIVETRAIN_MAP = {
    "fwd": Drivetrain.FWD,
    "rwd": Drivetrain.RWD,
    "awd": Drivetrain.AWD,
}

INSURANCE_TIER_MAP = {
    "low": InsuranceTier.LOW,
    "moderate": InsuranceTier.MODERATE,
    "high": InsuranceTier.HIGH,
}

FIT_TAG_MAP = {
    "daily-commute": FitTag.DAILY_COMMUTE,
    "shared-family": FitTag.SHARED_FAMILY,
    "weekend-adventure": FitTag.WEEKEND_ADVENTURE,
    "eco-conscious": FitTag.ECO_CONSCIOUS,
}

EXTRAS_TAG_MAP = {
    "american-made": ExtrasTag.AMERICAN_MADE,
    "bright-color": ExtrasTag.BRIGHT_COLOR,
    "eco-conscious": ExtrasTag.ECO_CONSCIOUS,
    "higher-seating": ExtrasTag.HIGHER_SEATING,
}


def _map_enum(value: Optional[str], mapping: dict, label: str, vehicle_id: str):
    if not value:
        raise CatalogLoadError(f"Missing required value for {label} ({vehicle_id})")
    if not isinstance(value, str):
        raise CatalogLoadError(f"{label} must be a string, got {value!r} ({vehicle_id})")
    mapped = mapping.get(value.lower())
    if mapped is None:
        # Already-canonical values ("SEDAN", "DAILY_COMMUTE") are accepted too
        mapped = mapping.get(value.lower().replace("_", "-"))
    if mapped is None:
        raise CatalogLoadError(f"Unknown {label}: {value} ({vehicle_id})")
    return mapped


def _map_tags(tags: Optional[list[str]], mapping: dict, label: str, vehicle_id: str) -> list:
    if not tags:
        return []
    if not isinstance(tags, list):
        raise CatalogLoadError(f"{label}s must be a list ({vehicle_id})")
    return [_map_enum(tag, mapping, label, vehicle_id) for tag in tags]


def _map_data_source(value: Optional[str], vehicle_id: str) -> VehicleDataSource:
    if not value:
        return VehicleDataSource.MANUAL
    if not isinstance(value, str):
        raise CatalogLoadError(f"dataSource must be a string, got {value!r} ({vehicle_id})")
    try:
        return VehicleDataSource(value.upper())
    except ValueError:
        raise CatalogLoadError(f"Unknown dataSource: {value} ({vehicle_id})") from None


def _section(record: dict[str, Any], key: str, vehicle_id: str) -> dict[str, Any]:
    """Return a nested object such as ``safety``; absent means empty."""
    section = record.get(key) or {}
    if not isinstance(section, dict):
        raise CatalogLoadError(f"{key} must be an object ({vehicle_id})")
    return section


def _price_range(value: Any, vehicle_id: str) -> tuple[Any, Any]:
    if not value:
        return 0, 0
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise CatalogLoadError(
            f"msrpRange must be a two-item list of min and max, got {value!r} ({vehicle_id})"
        )
    return value[0], value[1]


def parse_vehicle_record(record: dict[str, Any]) -> Vehicle:
    """Convert one seed-format record into a validated Vehicle.

    Raises:
        CatalogLoadError: If the record is not an object, an enum value is
            unknown or a field is invalid.
    """
    if not isinstance(record, dict):
        raise CatalogLoadError(f"Catalog entries must be objects, got {type(record).__name__}")

    vehicle_id = str(record.get("id") or "<missing id>")
    msrp_min, msrp_max = _price_range(record.get("msrpRange"), vehicle_id)
    fuel = _section(record, "fuelEconomy", vehicle_id)
    safety = _section(record, "safety", vehicle_id)

    data = {
        "id": record.get("id"),
        "make": record.get("make"),
        "model": record.get("model"),
        "trim": record.get("trim"),
        "years": record.get("years") or [],
        "body_style": _map_enum(record.get("bodyStyle"), BODY_STYLE_MAP, "bodyStyle", vehicle_id),
        "drivetrain": _map_enum(record.get("drivetrain"), DRIVETRAIN_MAP, "drivetrain", vehicle_id),
        "insurance_tier": _map_enum(
            record.get("insuranceTier") or "moderate", INSURANCE_TIER_MAP, "insuranceTier", vehicle_id
        ),
        "msrp_min": msrp_min,
        "msrp_max": msrp_max,
        "fuel_economy_city": fuel.get("city") or 0,
        "fuel_economy_highway": fuel.get("highway") or 0,
        "fuel_economy_combined": fuel.get("combined"),
        "safety_iihs_top_safety_pick": bool(safety.get("iihsTopSafetyPick", False)),
        "safety_nhtsa_overall": safety.get("nhtsaOverall"),
        "safety_nhtsa_frontal": safety.get("nhtsaFrontal"),
        "safety_nhtsa_side": safety.get("nhtsaSide"),
        "safety_nhtsa_rollover": safety.get("nhtsaRollover"),
        "safety_notable_features": safety.get("notableFeatures") or [],
        "recall_count": record.get("recallCount"),
        "tech_highlights": record.get("techHighlights") or [],
        "teen_friendly_factors": record.get("teenFriendlyFactors") or [],
        "maintenance_notes": record.get("maintenanceNotes") or [],
        "fit_tags": _map_tags(record.get("fitTags"), FIT_TAG_MAP, "fitTag", vehicle_id),
        "extras_tags": _map_tags(record.get("extrasTags"), EXTRAS_TAG_MAP, "extrasTag", vehicle_id),
        "image_url": record.get("imageUrl"),
        "image_attribution": record.get("imageAttribution"),
        "data_source": _map_data_source(record.get("dataSource"), vehicle_id),
        "sources": record.get("sources") or [],
        "last_reviewed": record.get("lastReviewed"),
    }

    try:
        return Vehicle.model_validate(data)
    except ValidationError as e:
        raise CatalogLoadError(f"Invalid vehicle {vehicle_id}: {e}") from e


def load_catalog(file_path: Union[str, Path]) -> VehicleCatalog:
    """Load and validate a catalog file from disk.

    Args:
        file_path: Path to the JSON catalog file.

    Returns:
        Validated VehicleCatalog in file order.

    Raises:
        CatalogLoadError: If the file is missing, unreadable or invalid.
    """
    path = Path(file_path)
    if not path.exists():
        raise CatalogLoadError(f"Catalog file not found: {file_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Catalog is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise CatalogLoadError(f"Catalog is not valid UTF-8: {e}") from e

    if isinstance(data, dict):
        records = data.get("vehicles")
        version = str(data.get("version", "1.0.0"))
    else:
        records = data
        version = "1.0.0"

    if not isinstance(records, list):
        raise CatalogLoadError("Catalog must be a JSON array of vehicles or an object with 'vehicles'")

    vehicles = [parse_vehicle_record(record) for record in records]

    try:
        catalog = VehicleCatalog(version=version, source_path=str(path), vehicles=vehicles)
    except ValidationError as e:
        raise CatalogLoadError(f"Invalid catalog {file_path}: {e}") from e

    logger.info("Loaded %d vehicles from %s", catalog.total_vehicles, path)
    return catalog


# =============================================================================
# Store boundary
# =============================================================================


@dataclass(frozen=True)
class CatalogFilters:
    """Maintenance filters; the scoring engine always reads unfiltered."""
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    missing_enrichment: bool = False

    def matches(self, vehicle: Vehicle) -> bool:
        if self.make and vehicle.make.lower() != self.make.lower():
            return False
        if self.model and vehicle.model.lower() != self.model.lower():
            return False
        if self.year is not None and self.year not in vehicle.years:
            return False
        if self.missing_enrichment and not vehicle.needs_enrichment:
            return False
        return True


@runtime_checkable
class CatalogStore(Protocol):
    """Read-only source of catalog snapshots."""

    def list_vehicles(self, filters: Optional[CatalogFilters] = None) -> list[Vehicle]:
        ...


class InMemoryCatalogStore:
    """Store over an already-built list of vehicles."""

    def __init__(self, vehicles: list[Vehicle]):
        self.catalog = VehicleCatalog(vehicles=list(vehicles))

    def list_vehicles(self, filters: Optional[CatalogFilters] = None) -> list[Vehicle]:
        vehicles = list(self.catalog.vehicles)
        if filters is not None:
            vehicles = [v for v in vehicles if filters.matches(v)]
        return vehicles


class JsonCatalogStore:
    """Store backed by a seed-format JSON file.

    The file is re-read on every call so edits are picked up without a
    restart; nothing is cached between calls.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> VehicleCatalog:
        return load_catalog(self.path)

    def list_vehicles(self, filters: Optional[CatalogFilters] = None) -> list[Vehicle]:
        vehicles = list(self.load().vehicles)
        if filters is not None:
            vehicles = [v for v in vehicles if filters.matches(v)]
        return vehicles
