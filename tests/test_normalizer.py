"""Tests for the preference normalizer."""

import json
import logging

import pytest

from first_car_matcher.normalizer import PreferenceNormalizer, load_answers_file, normalize
from first_car_matcher.schema import ExtrasTag, FitTag, RawAnswer, SafetyLevel


def answer(question_id: str, *values: str, priority=None, **extra) -> dict:
    record = {"questionId": question_id, "selectedValues": list(values), **extra}
    if priority is not None:
        record["priority"] = priority
    return record


class TestBudgetAndSafety:
    """Single-choice axes map through fixed lookup tables."""

    def test_value_budget(self):
        result = normalize([answer("budget", "value", priority=5)])
        assert result.profile.budget.min == 0
        assert result.profile.budget.max == 20000
        assert result.profile.budget.priority == 5
        assert "under roughly $20K" in result.context.budget_summary

    def test_cpo_and_premium_bands(self):
        cpo = normalize([answer("budget", "cpo-balance")]).profile.budget
        premium = normalize([answer("budget", "premium")]).profile.budget
        assert (cpo.min, cpo.max) == (18000, 32000)
        assert (premium.min, premium.max) == (28000, 50000)

    def test_safety_levels(self):
        expected = {
            "baseline-safety": SafetyLevel.BASELINE,
            "advanced-adas": SafetyLevel.ADVANCED,
            "max-safety": SafetyLevel.MAX,
        }
        for value, level in expected.items():
            result = normalize([answer("safety", value, priority=4)])
            assert result.profile.safety.level == level
            assert result.context.safety_summary

    def test_usage_adventure_maps_to_weekend_tag(self):
        result = normalize([answer("usage", "adventure")])
        assert result.profile.usage.tags == [FitTag.WEEKEND_ADVENTURE]

    def test_first_selected_value_wins(self):
        result = normalize([answer("budget", "premium", "value")])
        assert result.profile.budget.max == 50000


class TestExtras:
    """Extras is multi-select and de-duplicated."""

    def test_multiple_tags_keep_order(self):
        result = normalize([answer("extras", "bright-color", "american-made", priority=2)])
        assert result.profile.extras.tags == [ExtrasTag.BRIGHT_COLOR, ExtrasTag.AMERICAN_MADE]
        assert result.profile.extras.priority == 2
        assert result.context.extras_summary == "High-visibility exterior colour, American-made preference"

    def test_duplicate_values_collapse(self):
        result = normalize([answer("extras", "eco-conscious", "eco-conscious")])
        assert result.profile.extras.tags == [ExtrasTag.ECO_CONSCIOUS]

    def test_unscored_options_are_not_flagged(self):
        result = normalize([answer("extras", "certified-only", "flexible")])
        assert result.profile.extras is None
        assert result.context.extras_summary is None
        assert result.unrecognized == []

    def test_unknown_extra_is_flagged_but_others_kept(self):
        result = normalize([answer("extras", "rocket-boosters", "higher-seating")])
        assert result.profile.extras.tags == [ExtrasTag.HIGHER_SEATING]
        assert [(u.question_id, u.value) for u in result.unrecognized] == [("extras", "rocket-boosters")]


class TestContextOnlyAnswers:
    """Tech, timeline and notes never reach the profile."""

    def test_tech_and_timeline_summaries(self):
        result = normalize([answer("tech", "monitoring-suite"), answer("timeline", "two-weeks")])
        assert result.profile.is_empty()
        assert "monitoring" in result.context.tech_preference
        assert "2 weeks" in result.context.timeline_expectation

    def test_notes_are_trimmed(self):
        result = normalize([answer("notes", notes="  Prefers a manual  ")])
        assert result.context.notes == ["Prefers a manual"]

    def test_blank_notes_are_dropped(self):
        result = normalize([answer("notes", notes="   ")])
        assert result.context.notes is None


class TestRobustness:
    """Normalization never raises on bad input."""

    def test_empty_input(self):
        result = normalize([])
        assert result.profile.is_empty()
        assert result.context.model_dump(exclude_none=True) == {}

    def test_non_list_input(self):
        result = normalize({"questionId": "budget"})
        assert result.profile.is_empty()

    def test_generator_input(self):
        records = (answer(qid, value) for qid, value in [("budget", "value"), ("usage", "adventure")])
        result = normalize(records)
        assert result.profile.budget.max == 20000
        assert result.profile.usage.tags == [FitTag.WEEKEND_ADVENTURE]

    def test_tuple_input(self):
        assert normalize((answer("budget", "premium"),)).profile.budget.max == 50000

    def test_string_input_is_ignored(self):
        assert normalize("budget").profile.is_empty()

    def test_unknown_answer_type_keeps_axis(self):
        result = normalize([answer("budget", "value", type="slider")])
        assert result.profile.budget.max == 20000

    def test_none_input(self):
        assert normalize(None).profile.is_empty()

    def test_unrecognized_value_omits_axis(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = normalize([answer("budget", "lottery-win")])
        assert result.profile.budget is None
        assert result.unrecognized[0].value == "lottery-win"
        assert "lottery-win" in caplog.text

    def test_malformed_records_are_skipped(self):
        result = normalize(["budget", {"selectedValues": ["value"]}, answer("safety", "max-safety")])
        assert result.profile.budget is None
        assert result.profile.safety.level == SafetyLevel.MAX

    def test_first_answer_per_question_wins(self):
        result = normalize([answer("budget", "value"), answer("budget", "premium")])
        assert result.profile.budget.max == 20000

    def test_empty_selection_omits_axis(self):
        result = normalize([answer("usage")])
        assert result.profile.usage is None
        assert result.unrecognized == []

    def test_bare_string_selection_is_accepted(self):
        result = normalize([{"questionId": "usage", "selectedValues": "daily-commute"}])
        assert result.profile.usage.tags == [FitTag.DAILY_COMMUTE]

    def test_raw_answer_models_are_accepted(self):
        raw = RawAnswer(question_id="safety", selected_values=["advanced-adas"], priority=2)
        result = normalize([raw])
        assert result.profile.safety.priority == 2


class TestPriority:
    """Priority defaults and clamping."""

    def test_missing_priority_uses_default(self):
        result = normalize([answer("budget", "value")])
        assert result.profile.budget.priority == 3

    def test_custom_default_priority(self):
        result = PreferenceNormalizer(default_priority=1).normalize([answer("budget", "value")])
        assert result.profile.budget.priority == 1

    @pytest.mark.parametrize("given,expected", [(0, 1), (9, 5), (-2, 1)])
    def test_out_of_range_priority_is_clamped(self, given, expected):
        result = normalize([answer("safety", "max-safety", priority=given)])
        assert result.profile.safety.priority == expected

    def test_idempotent(self):
        answers = [answer("budget", "cpo-balance", priority=4), answer("extras", "bright-color")]
        assert normalize(answers) == normalize(answers)


class TestLoadAnswersFile:
    """Loading saved answer files."""

    def test_object_form(self, tmp_path):
        path = tmp_path / "answers.json"
        path.write_text(json.dumps({
            "description": "Commuter on a budget",
            "preferences": [answer("budget", "value")],
            "limit": 3,
        }))
        loaded = load_answers_file(str(path))
        assert loaded.description == "Commuter on a budget"
        assert loaded.limit == 3
        assert len(loaded.preferences) == 1

    def test_array_form(self, tmp_path):
        path = tmp_path / "answers.json"
        path.write_text(json.dumps([answer("usage", "adventure")]))
        assert load_answers_file(str(path)).preferences[0]["questionId"] == "usage"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            load_answers_file(str(tmp_path / "missing.json"))

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "answers.json"
        path.write_text(json.dumps({"answers": []}))
        with pytest.raises(ValueError, match="Invalid answers file"):
            load_answers_file(str(path))
