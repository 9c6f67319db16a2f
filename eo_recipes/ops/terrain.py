"""Terrain derivatives of a digital elevation model."""

from __future__ import annotations

import numpy as np
import xarray as xr

from eo_recipes.ops._grid import EARTH_RADIUS_M, is_geographic
from eo_recipes.types import RasterCube


def _gradients(
    dem: RasterCube, x_dim: str, y_dim: str
) -> tuple[xr.DataArray, xr.DataArray]:
    """Return ``(dz/dx, dz/dy)`` with x pointing east and y pointing north."""
    dem = dem.astype(np.float64)
    if dem.chunks:
        dem = dem.chunk({y_dim: -1, x_dim: -1})
    xs = np.asarray(dem.coords[x_dim].values, dtype=np.float64)
    ys = np.asarray(dem.coords[y_dim].values, dtype=np.float64)

    if is_geographic(dem, x_dim, y_dim):
        metres_per_degree = np.deg2rad(1.0) * EARTH_RADIUS_M
        y_m = ys * metres_per_degree
        x_scale = metres_per_degree * np.cos(np.deg2rad(ys))
    else:
        y_m = ys
        x_scale = np.ones_like(ys)

    def _grad(arr: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        gy = np.gradient(arr, y_m, axis=0)
        gx = np.gradient(arr, xs, axis=1) / x_scale[:, None]
        return gx, gy

    gx, gy = xr.apply_ufunc(
        _grad,
        dem,
        input_core_dims=[[y_dim, x_dim]],
        output_core_dims=[[y_dim, x_dim], [y_dim, x_dim]],
        vectorize=True,
        dask="parallelized",
        output_dtypes=[np.float64, np.float64],
    )
    return gx, gy


def slope(
    dem: RasterCube,
    *,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> RasterCube:
    """Slope in degrees (0 = flat, 90 = vertical).

    Pixel spacing is taken from the coordinates; on geographic grids it is
    converted to metres with the local metres-per-degree.
    """
    gx, gy = _gradients(dem, x_dim, y_dim)
    result = np.degrees(np.arctan(np.hypot(gx, gy)))
    result.name = "slope"
    return result


def aspect(
    dem: RasterCube,
    *,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> RasterCube:
    """Aspect in degrees clockwise from north of the downslope direction.

    A surface falling towards the east has aspect 90, towards the south 180.
    Flat cells get 0.
    """
    gx, gy = _gradients(dem, x_dim, y_dim)
    result = np.degrees(np.arctan2(-gx, -gy)) % 360
    result = xr.where((gx == 0) & (gy == 0), 0.0, result)
    result.name = "aspect"
    return result


def suitability(
    dem: RasterCube,
    *,
    min_elevation: float | None = None,
    max_slope: float | None = None,
    max_aspect: float | None = None,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> RasterCube:
    """Boolean mask of cells meeting every given terrain criterion.

    Criteria left as ``None`` are ignored; with none given every valid
    elevation cell is suitable.
    """
    keep = dem.notnull()
    if min_elevation is not None:
        keep = keep & (dem >= min_elevation)
    if max_slope is not None:
        keep = keep & (slope(dem, x_dim=x_dim, y_dim=y_dim) <= max_slope)
    if max_aspect is not None:
        keep = keep & (aspect(dem, x_dim=x_dim, y_dim=y_dim) <= max_aspect)
    keep.name = "suitable"
    return keep
