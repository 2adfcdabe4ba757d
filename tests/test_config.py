"""Tests for matcher configuration loading."""

import pytest
import yaml

from first_car_matcher.config import (
    MatcherConfig,
    TieBreak,
    find_config_file,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from first_car_matcher.scorer import VehicleScorer


class TestConfig:

    def test_defaults(self):
        config = get_config()
        assert config.axis_weights.usage_base_weight == 4.0
        assert config.axis_weights.extras_base_weight == 2.0
        assert config.axis_weights.default_priority == 3
        assert config.ranking.default_limit == 4
        assert config.ranking.default_leaderboard_size == 5
        assert config.ranking.max_leaderboard_size == 10
        assert config.ranking.tie_break == TieBreak.CATALOG_ORDER

    def test_load_partial_yaml(self, tmp_path):
        path = tmp_path / "matcher-config.yaml"
        path.write_text("ranking:\n  tie_break: id\n  default_limit: 6\n")
        config = load_config(path)
        assert config.ranking.tie_break == TieBreak.ID
        assert config.ranking.default_limit == 6
        assert config.axis_weights.usage_base_weight == 4.0
        assert get_config() is config

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "matcher-config.yaml"
        path.write_text("")
        assert load_config(path) == MatcherConfig()

    def test_scorer_picks_up_loaded_config(self, tmp_path):
        path = tmp_path / "matcher-config.yaml"
        path.write_text("axis_weights:\n  usage_base_weight: 9\n")
        load_config(path)
        assert VehicleScorer().weights.usage_base_weight == 9.0

    def test_reset(self, tmp_path):
        path = tmp_path / "matcher-config.yaml"
        path.write_text("ranking:\n  default_limit: 9\n")
        load_config(path)
        reset_config()
        assert get_config().ranking.default_limit == 4

    @pytest.mark.parametrize("text,message", [
        ("ranking: [unclosed\n", "not valid YAML"),
        ("- just\n- a list\n", "must be a mapping"),
        ("axis_weights:\n  default_priority: 9\n", "Invalid config"),
        ("ranking:\n  default_leaderboard_size: 12\n", "exceeds max_leaderboard_size"),
    ])
    def test_bad_config_files(self, tmp_path, text, message):
        path = tmp_path / "matcher-config.yaml"
        path.write_text(text)
        with pytest.raises(ValueError, match=message):
            load_config(path)
        assert get_config() == MatcherConfig()

    def test_save_default_config_round_trips(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        save_default_config(path)
        text = path.read_text()
        assert text.startswith("# First-Car Matcher Configuration")
        assert yaml.safe_load(text)["ranking"]["tie_break"] == "catalog_order"
        assert load_config(path) == MatcherConfig()


class TestFindConfigFile:

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("{}")
        monkeypatch.setenv("FIRST_CAR_MATCHER_CONFIG", str(path))
        assert find_config_file() == path

    def test_current_directory(self, tmp_path, monkeypatch):
        monkeypatch.delenv("FIRST_CAR_MATCHER_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        (tmp_path / "matcher-config.yaml").write_text("{}")
        assert find_config_file().name == "matcher-config.yaml"

    def test_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.delenv("FIRST_CAR_MATCHER_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert find_config_file() is None
