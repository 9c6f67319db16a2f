"""Type aliases shared by the loaders and operations."""

from __future__ import annotations

from typing import Union

import geopandas as gpd
import xarray as xr

RasterCube = xr.DataArray
"""Pixels: a numpy- or dask-backed DataArray, usually ``(time, bands, latitude, longitude)``."""

VectorCube = gpd.GeoDataFrame
"""Features with their attributes."""

Cube = Union[RasterCube, VectorCube]
"""Whatever a :class:`~eo_recipes.DataCube` can wrap."""
