"""Library exceptions."""

from eo_recipes.exceptions.bands import (
    BandExists,
    BandNotAvailable,
    DimensionAmbiguous,
    NirBandAmbiguous,
    RedBandAmbiguous,
)
from eo_recipes.exceptions.general import (
    DatasetNotFound,
    DimensionNotAvailable,
    EmptyCollection,
    IndexNotFound,
    KernelDimensionsUneven,
    UnitMismatch,
)

__all__ = [
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
