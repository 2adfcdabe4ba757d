"""Vehicle catalog models and the read-only store boundary."""

from vehicle_catalog.catalog import (
    CatalogFilters,
    CatalogLoadError,
    CatalogStore,
    InMemoryCatalogStore,
    JsonCatalogStore,
    load_catalog,
    parse_vehicle_record,
)
from vehicle_catalog.schema import (
    BodyStyle,
    Drivetrain,
    ExtrasTag,
    FitTag,
    InsuranceTier,
    Vehicle,
    VehicleCatalog,
    VehicleDataSource,
    VehicleSource,
)

__all__ = [
    "BodyStyle",
    "CatalogFilters",
    "CatalogLoadError",
    "CatalogStore",
    "Drivetrain",
    "ExtrasTag",
    "FitTag",
    "InMemoryCatalogStore",
    "InsuranceTier",
    "JsonCatalogStore",
    "Vehicle",
    "VehicleCatalog",
    "VehicleDataSource",
    "VehicleSource",
    "load_catalog",
    "parse_vehicle_record",
]
