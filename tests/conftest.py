"""Shared fixtures for the matcher tests."""

import pytest

from first_car_matcher.config import reset_config
from vehicle_catalog.schema import BodyStyle, Drivetrain, Vehicle


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts from default configuration."""
    reset_config()
    yield
    reset_config()


def make_vehicle(vehicle_id: str = "test-vehicle", **overrides) -> Vehicle:
    """Build a catalog row with sensible defaults."""
    data = {
        "id": vehicle_id,
        "make": "Honda",
        "model": "Civic",
        "years": [2021],
        "msrp_min": 18000,
        "msrp_max": 22000,
        "body_style": BodyStyle.SEDAN,
        "drivetrain": Drivetrain.FWD,
    }
    data.update(overrides)
    return Vehicle(**data)


def seed_record(vehicle_id: str = "honda-civic-2021", **overrides) -> dict:
    """Build a seed-format catalog record."""
    record = {
        "id": vehicle_id,
        "make": "Honda",
        "model": "Civic",
        "years": [2021, 2022],
        "bodyStyle": "sedan",
        "drivetrain": "fwd",
        "msrpRange": [22000, 28000],
        "insuranceTier": "moderate",
        "fuelEconomy": {"city": 31, "highway": 40, "combined": 35},
        "safety": {
            "iihsTopSafetyPick": True,
            "nhtsaOverall": 5,
            "notableFeatures": ["Honda Sensing", "Blind-spot monitoring"],
        },
        "fitTags": ["daily-commute"],
        "extrasTags": ["eco-conscious"],
        "imageUrl": "https://example.com/civic.jpg",
    }
    record.update(overrides)
    return record
