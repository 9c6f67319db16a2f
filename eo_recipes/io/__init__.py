"""I/O sub-package – data loaders (collections, dataset catalog, STAC, rasters, GeoJSON)."""

from eo_recipes.io.catalog import DatasetRegistry, DatasetSpec, load_dataset
from eo_recipes.io.collection import (
    AWSCollectionLoader,
    CollectionLoader,
    MicrosoftPlanetaryComputerLoader,
    get_loader,
    load_collection,
)
from eo_recipes.io.geojson import GeoJsonLoader, load_geojson
from eo_recipes.io.raster import load_raster, load_raster_series
from eo_recipes.io.stac import StacLoader, load_stac

__all__ = [
    "AWSCollectionLoader",
    "CollectionLoader",
    "DatasetRegistry",
    "DatasetSpec",
    "GeoJsonLoader",
    "MicrosoftPlanetaryComputerLoader",
    "StacLoader",
    "get_loader",
    "load_collection",
    "load_dataset",
    "load_geojson",
    "load_raster",
    "load_raster_series",
    "load_stac",
]
