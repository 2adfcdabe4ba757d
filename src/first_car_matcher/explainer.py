"""Explainer - Phase 3 of the matcher.

Projects scored vehicles into display candidates and builds the payload
handed to the recommendation text generator. The generator itself lives
outside this package; its reply is treated as opaque text.
"""

import json
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .schema import (
    CandidateFuelEconomy,
    CandidateHighlights,
    CandidateImage,
    CandidateSafety,
    CandidateSource,
    CandidateTags,
    PreferenceContext,
    PriceRange,
    RankingResult,
    RawAnswer,
    RecommendationSnapshot,
    ScoredVehicle,
    VehicleCandidate,
    VehicleDescriptor,
)

GENERATOR_FALLBACK = (
    "We were unable to generate recommendations at this time. "
    "Please try again in a moment."
)

# Caps that keep the generator prompt small
MAX_TECH_HIGHLIGHTS = 3
MAX_TEEN_FACTORS = 3
MAX_MAINTENANCE_NOTES = 2
MAX_SOURCES = 3


def year_label(years: Iterable[int]) -> str:
    """``2021`` for one year, ``2019-2022`` for a span."""
    ordered = sorted(years)
    if not ordered:
        return "Various years"
    if ordered[0] == ordered[-1]:
        return str(ordered[0])
    return f"{ordered[0]}-{ordered[-1]}"


def to_vehicle_candidate(scored: ScoredVehicle) -> VehicleCandidate:
    """Project a scored vehicle onto the fields the generator needs."""
    vehicle = scored.vehicle

    image = None
    if vehicle.image_url:
        image = CandidateImage(url=vehicle.image_url, attribution=vehicle.image_attribution)

    return VehicleCandidate(
        id=vehicle.id,
        name=f"{year_label(vehicle.years)} {vehicle.display_name}".strip(),
        score=round(scored.score, 2),
        score_breakdown=scored.score_breakdown,
        msrp_range=PriceRange(min=vehicle.msrp_min, max=vehicle.msrp_max),
        body_style=vehicle.body_style,
        drivetrain=vehicle.drivetrain,
        tags=CandidateTags(fit=vehicle.fit_tags, extras=vehicle.extras_tags),
        safety=CandidateSafety(
            iihs_top_safety_pick=vehicle.safety_iihs_top_safety_pick,
            nhtsa_overall=vehicle.safety_nhtsa_overall,
            notable_features=vehicle.safety_notable_features,
        ),
        fuel_economy=CandidateFuelEconomy(
            city=vehicle.fuel_economy_city if vehicle.fuel_economy_city > 0 else None,
            highway=vehicle.fuel_economy_highway if vehicle.fuel_economy_highway > 0 else None,
            combined=vehicle.fuel_economy_combined,
        ),
        highlights=CandidateHighlights(
            tech=vehicle.tech_highlights[:MAX_TECH_HIGHLIGHTS],
            teen_friendly=vehicle.teen_friendly_factors[:MAX_TEEN_FACTORS],
            maintenance=vehicle.maintenance_notes[:MAX_MAINTENANCE_NOTES],
        ),
        image=image,
        sources=[CandidateSource(type=s.type, url=s.url) for s in vehicle.sources[:MAX_SOURCES]],
    )


def build_recommendation_snapshot(
    preferences: list[RawAnswer],
    context: PreferenceContext,
    candidates: list[ScoredVehicle],
    metadata: Optional[dict[str, Any]] = None,
) -> RecommendationSnapshot:
    """Bundle the parent's answers, summaries and shortlist for the generator.

    ``submitted_at`` is stamped unless the caller already provided it.
    """
    meta = {"submitted_at": datetime.now(timezone.utc).isoformat()}
    meta.update(metadata or {})
    return RecommendationSnapshot(
        preferences=preferences,
        context=context,
        candidates=[to_vehicle_candidate(c) for c in candidates],
        metadata=meta,
    )


def parse_generator_reply(text: Optional[str]) -> str:
    """Normalize the generator's reply for display.

    JSON replies are re-indented; anything else is returned as-is. Empty
    replies become a fixed apology.
    """
    if not text or not text.strip():
        return GENERATOR_FALLBACK
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text
    return json.dumps(parsed, indent=2)


def ranking_message(result: RankingResult, descriptor: VehicleDescriptor) -> str:
    """One-line summary of a ranking lookup."""
    if result.matched is None:
        return f"We couldn't find {descriptor.label()} in our database yet."
    if result.rank is None:
        return "We evaluated this vehicle against your profile."
    return (
        f"Ranked #{result.rank} out of {result.total_compared} vehicles "
        f"we compared for your profile."
    )
