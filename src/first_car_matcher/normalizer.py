"""Preference Normalizer - Phase 1 of the matcher.

Turns raw quiz answers into a typed PreferenceProfile plus prose summaries
for the recommendation text generator. Never raises: anything it cannot
use is left out of the profile.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional, Union

from pydantic import ValidationError

from .config import get_config
from .schema import (
    AnswersFile,
    BudgetPreference,
    ExtrasPreference,
    ExtrasTag,
    FitTag,
    NormalizationResult,
    PreferenceContext,
    PreferenceProfile,
    RawAnswer,
    SafetyLevel,
    SafetyPreference,
    UnrecognizedAnswer,
    UsagePreference,
)

logger = logging.getLogger(__name__)


class PreferenceNormalizer:
    """Maps quiz answers onto the fixed preference lookup tables."""

    BUDGET_MAP = MappingProxyType({
        "value": (0, 20000, "Value-first approach; keep total purchase under roughly $20K."),
        "cpo-balance": (18000, 32000, "Certified/near-new sweet spot around $18K-$32K."),
        "premium": (28000, 50000, "Premium investment ($28K+) for top-tier assurance."),
    })

    SAFETY_MAP = MappingProxyType({
        "baseline-safety": (
            SafetyLevel.BASELINE,
            "Baseline protections (4+ star NHTSA, camera, stability control).",
        ),
        "advanced-adas": (
            SafetyLevel.ADVANCED,
            "Advanced driver assistance (blind-spot, lane keep, AEB).",
        ),
        "max-safety": (
            SafetyLevel.MAX,
            "Maximum assurance (Top Safety Pick+, teen monitoring, avoidance suites).",
        ),
    })

    USAGE_MAP = MappingProxyType({
        "daily-commute": (FitTag.DAILY_COMMUTE, "Daily commuting & errands focus."),
        "shared-family": (FitTag.SHARED_FAMILY, "Shared family duty with flexible seating/cargo."),
        "adventure": (FitTag.WEEKEND_ADVENTURE, "Weekend adventures & all-weather capability."),
    })

    EXTRAS_MAP = MappingProxyType({
        "american-made": (ExtrasTag.AMERICAN_MADE, "American-made preference"),
        "bright-color": (ExtrasTag.BRIGHT_COLOR, "High-visibility exterior colour"),
        "eco-conscious": (ExtrasTag.ECO_CONSCIOUS, "Eco-conscious / efficiency focus"),
        "higher-seating": (ExtrasTag.HIGHER_SEATING, "Higher seating position"),
    })

    # Offered by the quiz but carry no catalog tag
    EXTRAS_UNSCORED = frozenset({"certified-only", "flexible"})

    TECH_MAP = MappingProxyType({
        "core-connectivity": "Core connectivity (CarPlay/Android Auto, USB-C).",
        "monitoring-suite": "Teen monitoring suite (speed alerts, geofencing, remote start).",
        "premium-tech": "Premium tech package (HUD, surround view, adaptive cruise).",
    })

    TIMELINE_MAP = MappingProxyType({
        "two-weeks": "Needs a ready-to-drive option within ~2 weeks.",
        "month": "Aims to finalise within ~30-45 days.",
        "researching": "Still researching; wants education & negotiation prep first.",
    })

    def __init__(self, default_priority: Optional[int] = None):
        self.default_priority = default_priority or get_config().axis_weights.default_priority

    def normalize(self, raw_answers: Iterable[Union[RawAnswer, dict[str, Any]]]) -> NormalizationResult:
        """Normalize raw answers into a profile and context."""
        answers = self._parse_answers(raw_answers)
        unrecognized: list[UnrecognizedAnswer] = []

        budget = safety = usage = extras = None
        budget_summary = safety_summary = usage_summary = extras_summary = None
        tech_preference = timeline_expectation = None
        notes = None

        answer = answers.get("budget")
        entry = self._lookup(answer, self.BUDGET_MAP, unrecognized)
        if entry:
            low, high, budget_summary = entry
            budget = BudgetPreference(min=low, max=high, priority=self._priority(answer))

        answer = answers.get("safety")
        entry = self._lookup(answer, self.SAFETY_MAP, unrecognized)
        if entry:
            level, safety_summary = entry
            safety = SafetyPreference(level=level, priority=self._priority(answer))

        answer = answers.get("usage")
        entry = self._lookup(answer, self.USAGE_MAP, unrecognized)
        if entry:
            tag, usage_summary = entry
            usage = UsagePreference(tags=[tag], priority=self._priority(answer))

        answer = answers.get("extras")
        if answer is not None:
            tags: list[ExtrasTag] = []
            labels: list[str] = []
            for value in answer.selected_values:
                mapped = self.EXTRAS_MAP.get(value)
                if mapped is None:
                    if value not in self.EXTRAS_UNSCORED:
                        self._flag(unrecognized, answer.question_id, value)
                    continue
                tag, label = mapped
                if tag not in tags:
                    tags.append(tag)
                    labels.append(label)
            if tags:
                extras = ExtrasPreference(tags=tags, priority=self._priority(answer))
                extras_summary = ", ".join(labels)

        tech_preference = self._lookup(answers.get("tech"), self.TECH_MAP, unrecognized)
        timeline_expectation = self._lookup(answers.get("timeline"), self.TIMELINE_MAP, unrecognized)

        answer = answers.get("notes")
        if answer is not None and answer.notes and answer.notes.strip():
            notes = [answer.notes.strip()]

        return NormalizationResult(
            profile=PreferenceProfile(budget=budget, safety=safety, usage=usage, extras=extras),
            context=PreferenceContext(
                budget_summary=budget_summary,
                safety_summary=safety_summary,
                usage_summary=usage_summary,
                extras_summary=extras_summary,
                tech_preference=tech_preference,
                timeline_expectation=timeline_expectation,
                notes=notes,
            ),
            unrecognized=unrecognized,
        )

    def _parse_answers(self, raw_answers) -> dict[str, RawAnswer]:
        """Validate records, keeping the first answer per question id."""
        parsed: dict[str, RawAnswer] = {}
        if raw_answers is None:
            return parsed
        if isinstance(raw_answers, (str, bytes, Mapping)) or not isinstance(raw_answers, Iterable):
            logger.warning("Ignoring answers payload of type %s", type(raw_answers).__name__)
            return parsed
        for record in raw_answers:
            if isinstance(record, RawAnswer):
                answer = record
            else:
                try:
                    answer = RawAnswer.model_validate(record)
                except ValidationError as e:
                    logger.warning("Skipping malformed answer %r: %s", record, e.errors()[0]["msg"])
                    continue
            parsed.setdefault(answer.question_id, answer)
        return parsed

    def _priority(self, answer: RawAnswer) -> int:
        if answer.priority is None:
            return self.default_priority
        clamped = min(5, max(1, answer.priority))
        if clamped != answer.priority:
            logger.warning(
                "Priority %s for %s is outside 1-5; using %s",
                answer.priority, answer.question_id, clamped,
            )
        return clamped

    def _lookup(self, answer: Optional[RawAnswer], table, unrecognized: list[UnrecognizedAnswer]):
        """Map the first selected value through a lookup table."""
        if answer is None or not answer.selected_values:
            return None
        value = answer.selected_values[0]
        entry = table.get(value)
        if entry is None:
            self._flag(unrecognized, answer.question_id, value)
        return entry

    @staticmethod
    def _flag(unrecognized: list[UnrecognizedAnswer], question_id: str, value: str) -> None:
        logger.warning("Unrecognized value %r for question %s; axis omitted", value, question_id)
        unrecognized.append(UnrecognizedAnswer(question_id=question_id, value=value))


def normalize(raw_answers: Iterable[Union[RawAnswer, dict[str, Any]]]) -> NormalizationResult:
    """Normalize raw answers with the default normalizer."""
    return PreferenceNormalizer().normalize(raw_answers)


def load_answers_file(file_path: str) -> AnswersFile:
    """Load a saved answers file from disk.

    The file is either a JSON array of answer records or an object with a
    ``preferences`` array plus optional ``description``, ``metadata`` and
    ``limit``.

    Raises:
        ValueError: If the file is missing or has the wrong shape.
    """
    path = Path(file_path)
    if not path.exists():
        raise ValueError(f"Answers file not found: {file_path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        data = {"preferences": data}
    if not isinstance(data, dict) or not isinstance(data.get("preferences"), list):
        raise ValueError("Invalid answers file. Expected { preferences: [] } or a JSON array.")

    try:
        return AnswersFile.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid answers file {file_path}: {e}") from e
