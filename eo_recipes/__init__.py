"""eo-recipes – Earth-observation analysis recipes on xarray, geopandas and STAC."""

from eo_recipes.datacube import DataCube
from eo_recipes.exceptions import (
    BandExists,
    BandNotAvailable,
    DatasetNotFound,
    DimensionAmbiguous,
    DimensionNotAvailable,
    EmptyCollection,
    IndexNotFound,
    KernelDimensionsUneven,
    NirBandAmbiguous,
    RedBandAmbiguous,
    UnitMismatch,
)
from eo_recipes.types import Cube, RasterCube, VectorCube

__all__ = [
    "DataCube",
    "Cube",
    "RasterCube",
    "VectorCube",
    "BandExists",
    "BandNotAvailable",
    "DatasetNotFound",
    "DimensionAmbiguous",
    "DimensionNotAvailable",
    "EmptyCollection",
    "IndexNotFound",
    "KernelDimensionsUneven",
    "NirBandAmbiguous",
    "RedBandAmbiguous",
    "UnitMismatch",
]

__version__ = "0.1.0"
