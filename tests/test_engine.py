"""Tests for the match engine: top-N retrieval and descriptor ranking."""

import pytest

from conftest import make_vehicle
from first_car_matcher.config import get_config
from first_car_matcher.engine import (
    DescriptorError,
    MatchEngine,
    clamp_leaderboard_size,
    find_catalog_row,
    parse_descriptor,
)
from first_car_matcher.schema import (
    BudgetPreference,
    PreferenceProfile,
    SafetyLevel,
    SafetyPreference,
    VehicleDescriptor,
)
from vehicle_catalog.catalog import InMemoryCatalogStore


def build_catalog():
    return [
        make_vehicle("honda-civic-2021", make="Honda", model="Civic", years=[2021, 2022],
                     msrp_min=21000, msrp_max=26000, safety_iihs_top_safety_pick=True,
                     safety_nhtsa_overall=5),
        make_vehicle("kia-soul-2020", make="Kia", model="Soul", years=[2020],
                     msrp_min=15000, msrp_max=18000, safety_nhtsa_overall=4),
        make_vehicle("subaru-outback-2019", make="Subaru", model="Outback", years=[2019, 2020],
                     msrp_min=26000, msrp_max=34000, safety_iihs_top_safety_pick=True,
                     safety_nhtsa_overall=5),
        make_vehicle("honda-civic-2016", make="Honda", model="Civic", years=[2016, 2017],
                     msrp_min=12000, msrp_max=16000, safety_nhtsa_overall=4),
        make_vehicle("toyota-corolla-2020", make="Toyota", model="Corolla", years=[2020],
                     msrp_min=19000, msrp_max=23000, safety_nhtsa_overall=5),
        make_vehicle("ford-escape-2021", make="Ford", model="Escape", years=[2021],
                     msrp_min=25000, msrp_max=30000),
    ]


@pytest.fixture
def engine() -> MatchEngine:
    return MatchEngine(InMemoryCatalogStore(build_catalog()))


@pytest.fixture
def profile() -> PreferenceProfile:
    return PreferenceProfile(
        budget=BudgetPreference(min=0, max=20000, priority=4),
        safety=SafetyPreference(level=SafetyLevel.BASELINE, priority=3),
    )


class TestTopVehicles:
    """Top-N retrieval."""

    def test_default_limit(self, engine, profile):
        assert len(engine.get_top_vehicles(profile)) == 4

    def test_explicit_limit(self, engine, profile):
        top = engine.get_top_vehicles(profile, 2)
        assert len(top) == 2
        assert top[0].score >= top[1].score

    def test_limit_larger_than_catalog(self, engine, profile):
        assert len(engine.get_top_vehicles(profile, 50)) == 6

    def test_zero_limit(self, engine, profile):
        assert engine.get_top_vehicles(profile, 0) == []

    def test_config_limit(self, engine, profile):
        get_config().ranking.default_limit = 3
        assert len(engine.get_top_vehicles(profile)) == 3

    def test_empty_profile_returns_catalog_order(self, engine):
        top = engine.get_top_vehicles(PreferenceProfile(), 3)
        assert [s.id for s in top] == ["honda-civic-2021", "kia-soul-2020", "subaru-outback-2019"]

    def test_empty_catalog(self, profile):
        engine = MatchEngine(InMemoryCatalogStore([]))
        assert engine.get_top_vehicles(profile) == []

    def test_idempotent(self, engine, profile):
        first = [(s.id, s.score) for s in engine.get_top_vehicles(profile)]
        second = [(s.id, s.score) for s in engine.get_top_vehicles(profile)]
        assert first == second

    def test_affordable_safe_car_first(self, engine, profile):
        top = engine.get_top_vehicles(profile, 1)
        assert top[0].id == "kia-soul-2020"


class TestRankVehicle:
    """Locating one make/model in the ranked catalog."""

    def test_exact_year(self, engine, profile):
        result = engine.rank_vehicle_against_profile(
            profile, {"make": "Honda", "model": "Civic", "year": 2016}
        )
        assert result.matched.id == "honda-civic-2016"
        assert result.year_exact is True
        assert result.available_years == [2016, 2017]
        assert result.total_compared == 6
        assert 1 <= result.rank <= 6

    def test_rank_matches_position_in_full_ranking(self, engine, profile):
        ranked = engine.rank_catalog(profile)
        result = engine.rank_vehicle_against_profile(profile, {"make": "Toyota", "model": "Corolla"})
        assert ranked[result.rank - 1].id == "toyota-corolla-2020"
        assert result.matched.score == ranked[result.rank - 1].score

    def test_case_insensitive(self, engine, profile):
        result = engine.rank_vehicle_against_profile(profile, {"make": "kia", "model": "SOUL"})
        assert result.matched.id == "kia-soul-2020"

    def test_no_year_picks_first_catalog_row(self, engine, profile):
        result = engine.rank_vehicle_against_profile(profile, {"make": "Honda", "model": "Civic"})
        assert result.matched.id == "honda-civic-2021"
        assert result.year_exact is None

    def test_far_future_year_is_approximate(self, engine, profile):
        result = engine.rank_vehicle_against_profile(
            profile, {"make": "Honda", "model": "Civic", "year": 2099}
        )
        assert result.matched.id == "honda-civic-2021"
        assert result.year_exact is False
        assert result.available_years == [2021, 2022]

    def test_nearest_year_row_is_chosen(self, engine, profile):
        result = engine.rank_vehicle_against_profile(
            profile, {"make": "Honda", "model": "Civic", "year": "2018"}
        )
        assert result.matched.id == "honda-civic-2016"
        assert result.year_exact is False

    def test_not_found(self, engine, profile):
        result = engine.rank_vehicle_against_profile(
            profile, {"make": "Tesla", "model": "Model 3", "year": 2022}
        )
        assert result.matched is None
        assert result.rank is None
        assert result.total_compared == 6
        assert len(result.leaderboard) == 5

    def test_leaderboard_is_top_of_ranking(self, engine, profile):
        result = engine.rank_vehicle_against_profile(
            profile, {"make": "Ford", "model": "Escape"}, leaderboard_size=3
        )
        expected = [s.id for s in engine.get_top_vehicles(profile, 3)]
        assert [s.id for s in result.leaderboard] == expected

    def test_leaderboard_size_is_clamped(self, engine, profile):
        result = engine.rank_vehicle_against_profile(
            profile, {"make": "Ford", "model": "Escape"}, leaderboard_size=500
        )
        assert len(result.leaderboard) == 6

    def test_accepts_descriptor_model(self, engine, profile):
        descriptor = VehicleDescriptor(make="Subaru", model="Outback", year=2020)
        result = engine.rank_vehicle_against_profile(profile, descriptor)
        assert result.year_exact is True

    def test_invalid_descriptor_raises(self, engine, profile):
        with pytest.raises(DescriptorError):
            engine.rank_vehicle_against_profile(profile, {"model": "Civic"})


class TestParseDescriptor:
    """Descriptor validation."""

    def test_trims_and_parses_string_year(self):
        descriptor = parse_descriptor({"make": " Honda ", "model": "Civic ", "year": " 2021 "})
        assert descriptor == VehicleDescriptor(make="Honda", model="Civic", year=2021)

    @pytest.mark.parametrize("year", [None, ""])
    def test_blank_year_means_none(self, year):
        assert parse_descriptor({"make": "Kia", "model": "Soul", "year": year}).year is None

    def test_whole_float_year(self):
        assert parse_descriptor({"make": "Kia", "model": "Soul", "year": 2020.0}).year == 2020

    @pytest.mark.parametrize("value,message", [
        ("Honda Civic", "Invalid vehicle descriptor."),
        ({"model": "Civic"}, "Vehicle make is required."),
        ({"make": "  ", "model": "Civic"}, "Vehicle make is required."),
        ({"make": "Honda"}, "Vehicle model is required."),
        ({"make": "Honda", "model": "Civic", "year": "twenty"}, "Year must be a valid number."),
        ({"make": "Honda", "model": "Civic", "year": 2020.5}, "Year must be a whole number."),
        ({"make": "Honda", "model": "Civic", "year": True}, "Year must be a string or number value."),
        ({"make": "Honda", "model": "Civic", "year": [2020]}, "Year must be a string or number value."),
    ])
    def test_errors(self, value, message):
        with pytest.raises(DescriptorError) as exc_info:
            parse_descriptor(value)
        assert str(exc_info.value) == message

    def test_descriptor_error_is_value_error(self):
        assert issubclass(DescriptorError, ValueError)


class TestHelpers:
    """Row lookup and leaderboard bounds."""

    @pytest.mark.parametrize("size,expected", [
        (None, 5), (0, 5), (-3, 5), (3, 3), (10, 10), (11, 10), ("7", 5),
    ])
    def test_clamp_leaderboard_size(self, size, expected):
        assert clamp_leaderboard_size(size) == expected

    def test_find_catalog_row_equidistant_years_prefers_earlier_row(self):
        rows = [
            make_vehicle("late", years=[2022]),
            make_vehicle("early", years=[2018]),
        ]
        descriptor = VehicleDescriptor(make="Honda", model="Civic", year=2020)
        assert find_catalog_row(rows, descriptor).id == "late"

    def test_find_catalog_row_missing(self):
        descriptor = VehicleDescriptor(make="Mazda", model="3")
        assert find_catalog_row([make_vehicle()], descriptor) is None
