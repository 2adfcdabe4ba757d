"""Scorer - Phase 2 of the matcher.

Scores every catalog vehicle against a PreferenceProfile. Each axis produces
raw points which are multiplied by the parent's priority for that axis; the
total is the plain sum. Scores are unbounded in both directions and only
ever compared with each other.
"""

import logging
import math
from typing import Optional, Sequence

from vehicle_catalog.schema import Vehicle

from .config import AxisWeightsConfig, TieBreak, get_config
from .schema import (
    BudgetPreference,
    ExtrasPreference,
    PreferenceProfile,
    SafetyLevel,
    SafetyPreference,
    ScoreBreakdown,
    ScoredVehicle,
    UsagePreference,
)

logger = logging.getLogger(__name__)

# Budget bands (dollars)
COMFORT_MARGIN = 2000  # under the ceiling by this much earns a bonus
OVERAGE_TOLERANCE = 2500  # over the ceiling by up to this much is tolerated
FLOOR_MARGIN = 2000  # under the floor by up to this much is tolerated


class VehicleScorer:
    """Scores vehicles against a preference profile.

    Scoring principles:
    - Absent axes contribute exactly zero
    - Priority is a linear multiplier on rewards and penalties alike
    - Safety tiers are strictly ordinal: stricter tiers punish harder
    - No normalization or clamping
    """

    def __init__(
        self,
        weights: Optional[AxisWeightsConfig] = None,
        tie_break: Optional[TieBreak] = None,
    ):
        """Initialize scorer with optional custom weights."""
        config = get_config()
        self.weights = weights or config.axis_weights
        self.tie_break = tie_break or config.ranking.tie_break

    def score(
        self,
        vehicles: Sequence[Vehicle],
        profile: PreferenceProfile,
    ) -> list[ScoredVehicle]:
        """Score vehicles and return them sorted, best first.

        Equal scores keep catalog order unless the tie-break is ``id``.
        """
        scored = [self.score_vehicle(vehicle, profile) for vehicle in vehicles]

        if self.tie_break == TieBreak.ID:
            scored.sort(key=lambda s: s.vehicle.id)
        # list.sort is stable, including with reverse=True
        scored.sort(key=lambda s: s.score, reverse=True)

        logger.debug("Scored %d vehicles", len(scored))
        return scored

    def score_vehicle(self, vehicle: Vehicle, profile: PreferenceProfile) -> ScoredVehicle:
        """Score a single vehicle."""
        breakdown = ScoreBreakdown(
            budget=self.score_budget(vehicle, profile.budget),
            safety=self.score_safety(vehicle, profile.safety),
            usage=self.score_usage(vehicle, profile.usage),
            extras=self.score_extras(vehicle, profile.extras),
        )
        return ScoredVehicle(vehicle=vehicle, score=breakdown.total, score_breakdown=breakdown)

    def _weight(self, raw: float, priority: Optional[int]) -> float:
        if priority is None:
            priority = self.weights.default_priority
        return raw * priority

    def score_budget(self, vehicle: Vehicle, pref: Optional[BudgetPreference]) -> float:
        """Score price fit against a soft ceiling and optional soft floor."""
        if pref is None:
            return 0.0

        ceiling = pref.max if pref.max is not None else math.inf
        floor = pref.min or 0
        points = 0

        if vehicle.msrp_max <= ceiling:
            points += 6
            if vehicle.msrp_max <= ceiling - COMFORT_MARGIN:
                points += 2
        elif vehicle.msrp_max <= ceiling + OVERAGE_TOLERANCE:
            points += 2
        else:
            points -= 6

        if floor > 0:
            if vehicle.msrp_min >= floor:
                points += 2
            elif vehicle.msrp_min >= floor - FLOOR_MARGIN:
                points += 1
            else:
                points -= 2

        return self._weight(points, pref.priority)

    def score_safety(self, vehicle: Vehicle, pref: Optional[SafetyPreference]) -> float:
        """Score crash ratings against the requested safety tier."""
        if pref is None:
            return 0.0

        iihs = vehicle.safety_iihs_top_safety_pick
        nhtsa = vehicle.safety_nhtsa_overall or 0
        notable = len(vehicle.safety_notable_features)
        points = 0

        if pref.level == SafetyLevel.BASELINE:
            points += 4 if iihs else 0
            points += 4 if nhtsa >= 4 else -2
        elif pref.level == SafetyLevel.ADVANCED:
            points += 6 if iihs else -4
            points += 5 if nhtsa >= 5 else 0
            if notable >= 2:
                points += 3
            elif notable == 1:
                points += 1
            else:
                points -= 2
        elif pref.level == SafetyLevel.MAX:
            points += 8 if iihs else -6
            points += 6 if nhtsa >= 5 else -4
            points += 4 if notable >= 3 else -2

        return self._weight(points, pref.priority)

    def score_usage(self, vehicle: Vehicle, pref: Optional[UsagePreference]) -> float:
        if pref is None:
            return 0.0
        return self._score_tags(vehicle.fit_tags, pref.tags, pref.priority, self.weights.usage_base_weight)

    def score_extras(self, vehicle: Vehicle, pref: Optional[ExtrasPreference]) -> float:
        if pref is None:
            return 0.0
        return self._score_tags(
            vehicle.extras_tags, pref.tags, pref.priority, self.weights.extras_base_weight
        )

    def _score_tags(
        self,
        vehicle_tags: Sequence,
        requested: Sequence,
        priority: Optional[int],
        base_weight: float,
    ) -> float:
        """Reward both how many requested tags match and what share of them.

        Returns 0 for an empty request, which also keeps the ratio below
        from dividing by zero.
        """
        wanted = set(requested)
        if not wanted:
            return 0.0

        matches = len(wanted.intersection(vehicle_tags))
        if matches == 0:
            return self._weight(self.weights.no_overlap_penalty, priority)

        ratio = matches / len(wanted)
        return self._weight(matches * base_weight + ratio * self.weights.ratio_bonus, priority)
