"""Centralized configuration management for the first-car matcher."""

import os
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError


class TieBreak(str, Enum):
    """How vehicles with equal total scores are ordered."""
    CATALOG_ORDER = "catalog_order"
    ID = "id"


class AxisWeightsConfig(BaseModel):
    """Constants for the tag-overlap axes and priority weighting.

    Budget and safety point tables are fixed in the scorer; only the
    tag-overlap constants are tunable.
    """
    usage_base_weight: float = Field(
        4.0,
        description="Points per matching usage (fit) tag before priority weighting"
    )
    extras_base_weight: float = Field(
        2.0,
        description="Points per matching extras tag before priority weighting"
    )
    ratio_bonus: float = Field(
        2.0,
        description="Multiplier on the share of requested tags the vehicle covers"
    )
    no_overlap_penalty: float = Field(
        -3.0,
        description="Raw score when a vehicle shares no tags with the request"
    )
    default_priority: int = Field(
        3,
        ge=1,
        le=5,
        description="Priority used when an axis is present without one"
    )


class RankingConfig(BaseModel):
    """Defaults for top-N retrieval and descriptor ranking."""
    default_limit: int = Field(4, ge=1, description="Shortlist size for top-N retrieval")
    default_leaderboard_size: int = Field(
        5,
        ge=1,
        description="Leaderboard size when the caller gives none or an invalid one"
    )
    max_leaderboard_size: int = Field(10, ge=1, description="Upper bound on leaderboard size")
    tie_break: TieBreak = Field(
        TieBreak.CATALOG_ORDER,
        description="Order for equal scores: catalog_order (stable) or id (ascending)"
    )


class CatalogConfig(BaseModel):
    """Where the default catalog lives."""
    path: Optional[str] = Field(
        None,
        description="Default catalog JSON file used when --catalog is not given"
    )


class MatcherConfig(BaseModel):
    """Complete configuration for the first-car matcher."""
    axis_weights: AxisWeightsConfig = Field(default_factory=AxisWeightsConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)


CONFIG_ENV_VAR = "FIRST_CAR_MATCHER_CONFIG"

# Checked in order after the environment variable
CONFIG_SEARCH_PATHS = (
    Path("matcher-config.yaml"),
    Path("matcher-config.yml"),
    Path("~/.config/first-car-matcher/config.yaml"),
)

_config: Optional[MatcherConfig] = None


def get_config() -> MatcherConfig:
    """Active matcher settings; defaults until a file is loaded."""
    global _config
    if _config is None:
        _config = MatcherConfig()
    return _config


def load_config(path: Path) -> MatcherConfig:
    """Read a matcher-config YAML file and make it the active config.

    Sections left out of the file keep their defaults.

    Raises:
        ValueError: If the file is not valid YAML, is not a mapping, or
            holds out-of-range weights or ranking sizes.
    """
    global _config

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Config {path} is not valid YAML: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping of sections")

    try:
        config = MatcherConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid config {path}: {e}") from e

    ranking = config.ranking
    if ranking.default_leaderboard_size > ranking.max_leaderboard_size:
        raise ValueError(
            f"Invalid config {path}: default_leaderboard_size "
            f"({ranking.default_leaderboard_size}) exceeds max_leaderboard_size "
            f"({ranking.max_leaderboard_size})"
        )

    _config = config
    return _config


def reset_config() -> None:
    global _config
    _config = MatcherConfig()


def find_config_file() -> Optional[Path]:
    """First existing file from the env var, then ``CONFIG_SEARCH_PATHS``."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    candidates = [Path(env_path)] if env_path else []
    candidates.extend(p.expanduser() for p in CONFIG_SEARCH_PATHS)
    return next((p for p in candidates if p.exists()), None)


def save_default_config(path: Path) -> None:
    """Save the default configuration to a YAML file.

    Args:
        path: Path where to save the configuration.
    """
    config = MatcherConfig()
    data = config.model_dump(mode="json")

    yaml_content = """# First-Car Matcher Configuration
# ===============================
#
# Tunes the tag-overlap scoring constants and ranking defaults.
#
# Copy this file to one of these locations:
#   - ./matcher-config.yaml (current directory)
#   - ~/.config/first-car-matcher/config.yaml (user config)
#
# Or set the FIRST_CAR_MATCHER_CONFIG environment variable.

"""
    yaml_content += yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(yaml_content)
