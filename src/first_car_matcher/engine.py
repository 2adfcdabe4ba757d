"""Match Engine - orchestrates normalization, scoring and ranking lookups.

The engine reads one full catalog snapshot from the injected store per call
and keeps no state between calls.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from vehicle_catalog.catalog import CatalogStore
from vehicle_catalog.schema import Vehicle

from .config import get_config
from .schema import (
    PreferenceProfile,
    RankingResult,
    ScoredVehicle,
    VehicleDescriptor,
)
from .scorer import VehicleScorer

logger = logging.getLogger(__name__)


class DescriptorError(ValueError):
    """Raised when a vehicle descriptor is missing make/model or has a bad year."""


def parse_descriptor(value: Union[VehicleDescriptor, Mapping, Any]) -> VehicleDescriptor:
    """Validate a caller-supplied ``{make, model, year?}`` descriptor.

    Make and model are trimmed. A year may be an int or a numeric string;
    None or an empty string means no year was given.

    Raises:
        DescriptorError: If the descriptor is structurally invalid.
    """
    if isinstance(value, VehicleDescriptor):
        return value
    if not isinstance(value, Mapping):
        raise DescriptorError("Invalid vehicle descriptor.")

    make = value.get("make")
    model = value.get("model")
    year = value.get("year")

    if not isinstance(make, str) or not make.strip():
        raise DescriptorError("Vehicle make is required.")
    if not isinstance(model, str) or not model.strip():
        raise DescriptorError("Vehicle model is required.")

    parsed_year: Optional[int] = None
    if year is not None and year != "":
        if isinstance(year, bool):
            raise DescriptorError("Year must be a string or number value.")
        if isinstance(year, int):
            parsed_year = year
        elif isinstance(year, float):
            if not year.is_integer():
                raise DescriptorError("Year must be a whole number.")
            parsed_year = int(year)
        elif isinstance(year, str):
            try:
                parsed_year = int(year.strip())
            except ValueError:
                raise DescriptorError("Year must be a valid number.") from None
        else:
            raise DescriptorError("Year must be a string or number value.")

    return VehicleDescriptor(make=make.strip(), model=model.strip(), year=parsed_year)


class MatchEngine:
    """Scores a catalog snapshot against a profile and answers ranking queries."""

    def __init__(self, store: CatalogStore, scorer: Optional[VehicleScorer] = None):
        self.store = store
        self.scorer = scorer or VehicleScorer()

    def rank_catalog(self, profile: PreferenceProfile) -> list[ScoredVehicle]:
        """Score and sort the full catalog snapshot."""
        vehicles = self.store.list_vehicles()
        return self.scorer.score(vehicles, profile)

    def get_top_vehicles(
        self,
        profile: PreferenceProfile,
        limit: Optional[int] = None,
    ) -> list[ScoredVehicle]:
        """Return the best ``limit`` vehicles; fewer if the catalog is smaller."""
        if limit is None:
            limit = get_config().ranking.default_limit
        ranked = self.rank_catalog(profile)
        return ranked[:max(0, limit)]

    def rank_vehicle_against_profile(
        self,
        profile: PreferenceProfile,
        descriptor: Union[VehicleDescriptor, Mapping],
        leaderboard_size: Optional[int] = None,
    ) -> RankingResult:
        """Locate a make/model (and optional year) in the full ranked catalog.

        A make/model that is not in the catalog is a normal result with
        ``matched=None``. A year that the matched row does not cover still
        matches the nearest row, flagged with ``year_exact=False``.

        Raises:
            DescriptorError: If the descriptor is structurally invalid.
        """
        descriptor = parse_descriptor(descriptor)
        size = clamp_leaderboard_size(leaderboard_size)

        vehicles = self.store.list_vehicles()
        ranked = self.scorer.score(vehicles, profile)
        leaderboard = ranked[:size]
        total = len(ranked)

        row = find_catalog_row(vehicles, descriptor)
        if row is None:
            logger.info("No catalog row for %s", descriptor.label())
            return RankingResult(total_compared=total, leaderboard=leaderboard)

        position = next(i for i, s in enumerate(ranked) if s.vehicle.id == row.id)
        year_exact = None if descriptor.year is None else descriptor.year in row.years

        return RankingResult(
            matched=ranked[position],
            rank=position + 1,
            total_compared=total,
            leaderboard=leaderboard,
            year_exact=year_exact,
            available_years=sorted(row.years),
        )


def find_catalog_row(vehicles: list[Vehicle], descriptor: VehicleDescriptor) -> Optional[Vehicle]:
    """Pick the catalog row a descriptor refers to.

    Make and model compare case-insensitively. With a year, a row covering
    that year wins, then the row with the nearest covered year; earlier rows
    win ties. Without a year, the first matching row wins.
    """
    make = descriptor.make.strip().lower()
    model = descriptor.model.strip().lower()
    candidates = [
        v for v in vehicles
        if v.make.strip().lower() == make and v.model.strip().lower() == model
    ]
    if not candidates:
        return None
    if descriptor.year is None:
        return candidates[0]

    for vehicle in candidates:
        if descriptor.year in vehicle.years:
            return vehicle

    return min(candidates, key=lambda v: min(abs(y - descriptor.year) for y in v.years))


def clamp_leaderboard_size(size: Optional[int]) -> int:
    """Bound a requested leaderboard size; missing or invalid sizes get the default."""
    ranking = get_config().ranking
    if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
        return ranking.default_leaderboard_size
    return min(size, ranking.max_leaderboard_size)
