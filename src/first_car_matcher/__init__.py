"""First-Car Matcher - preference scoring and ranking for a teen's first car.

Phases:
    1. PreferenceNormalizer turns quiz answers into a PreferenceProfile
    2. VehicleScorer scores every catalog vehicle against the profile
    3. The explainer projects the shortlist for the text generator
"""

from first_car_matcher.engine import DescriptorError, MatchEngine, parse_descriptor
from first_car_matcher.normalizer import PreferenceNormalizer, normalize
from first_car_matcher.schema import (
    NormalizationResult,
    PreferenceContext,
    PreferenceProfile,
    RankingResult,
    RawAnswer,
    ScoredVehicle,
    VehicleDescriptor,
)
from first_car_matcher.scorer import VehicleScorer

__version__ = "1.0.0"

__all__ = [
    "DescriptorError",
    "MatchEngine",
    "NormalizationResult",
    "PreferenceContext",
    "PreferenceNormalizer",
    "PreferenceProfile",
    "RankingResult",
    "RawAnswer",
    "ScoredVehicle",
    "VehicleDescriptor",
    "VehicleScorer",
    "normalize",
    "parse_descriptor",
]
