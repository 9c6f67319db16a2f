"""Spatial grid helpers – CRS detection, pixel spacing and geometry masks."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import geopandas as gpd
import numpy as np
import pyproj
import shapely
import xarray as xr
from shapely.geometry.base import BaseGeometry

from eo_recipes.types import RasterCube

# Mean Earth radius (IUGG), metres
EARTH_RADIUS_M = 6_371_008.8


def raster_crs(data: RasterCube) -> str | None:
    """Best-effort CRS of a raster cube as an ``"EPSG:xxxx"`` / WKT string."""
    if hasattr(data, "rio") and data.rio.crs is not None:
        return str(data.rio.crs)
    try:
        import stackstac

        epsg = stackstac.array_epsg(data, default=None)
        if epsg is not None:
            return f"EPSG:{epsg}"
    except Exception:
        # stackstac metadata missing or malformed; treat the CRS as unknown
        pass
    return None


def is_geographic(data: RasterCube, x_dim: str, y_dim: str) -> bool:
    """Return True when the cube's spatial coordinates are degrees.

    Without CRS metadata, coordinates inside ±180 / ±90 are assumed to be
    longitude / latitude.
    """
    crs = raster_crs(data)
    if crs is not None:
        return pyproj.CRS(crs).is_geographic
    xs = np.asarray(data.coords[x_dim].values, dtype=float)
    ys = np.asarray(data.coords[y_dim].values, dtype=float)
    return bool(np.nanmax(np.abs(xs)) <= 180 and np.nanmax(np.abs(ys)) <= 90)


def pixel_size_m(data: RasterCube, x_dim: str, y_dim: str) -> float:
    """Mean pixel edge length in metres."""
    xs = np.asarray(data.coords[x_dim].values, dtype=float)
    ys = np.asarray(data.coords[y_dim].values, dtype=float)
    dx = float(np.mean(np.abs(np.diff(xs))))
    dy = float(np.mean(np.abs(np.diff(ys))))
    if is_geographic(data, x_dim, y_dim):
        metres_per_degree = np.deg2rad(1.0) * EARTH_RADIUS_M
        dx *= metres_per_degree * float(np.cos(np.deg2rad(np.mean(ys))))
        dy *= metres_per_degree
    return (dx + dy) / 2


def load_geometries(geometries: Any) -> gpd.GeoSeries:
    """Coerce a path, GeoDataFrame, GeoSeries or shapely geometry to a GeoSeries."""
    if isinstance(geometries, (str, Path)):
        return gpd.read_file(geometries).geometry
    if isinstance(geometries, gpd.GeoDataFrame):
        return geometries.geometry
    if isinstance(geometries, gpd.GeoSeries):
        return geometries
    if isinstance(geometries, BaseGeometry):
        return gpd.GeoSeries([geometries])
    raise TypeError(
        f"Expected a path, GeoDataFrame, GeoSeries or shapely geometry; "
        f"got {type(geometries)!r}"
    )


def align_crs(geoms: gpd.GeoSeries, data: RasterCube) -> gpd.GeoSeries:
    """Reproject *geoms* to the raster CRS when both CRS are known."""
    data_crs = raster_crs(data)
    if data_crs is not None and geoms.crs is not None:
        if pyproj.CRS(geoms.crs) != pyproj.CRS(data_crs):
            return geoms.to_crs(data_crs)
    return geoms


def geometry_mask(
    data: RasterCube,
    geometries: Any,
    *,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> xr.DataArray:
    """Boolean ``(y, x)`` mask of pixel centres inside the union of *geometries*."""
    geoms = align_crs(load_geometries(geometries), data)
    region = shapely.union_all(np.asarray(geoms.values))
    xs = data.coords[x_dim].values
    ys = data.coords[y_dim].values
    xx, yy = np.meshgrid(xs, ys)
    inside = shapely.intersects_xy(region, xx, yy)
    return xr.DataArray(inside, dims=(y_dim, x_dim), coords={y_dim: ys, x_dim: xs})
