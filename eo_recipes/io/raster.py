"""Raster file loader – GeoTIFF / COG / VRT via rioxarray, netCDF / OPeNDAP via xarray.

Used for products that aren't published as STAC collections: yearly GIMMS
NDVI files, TerraClimate netCDF, SoilGrids VRTs, VIIRS monthly composites.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import pandas as pd
import xarray as xr

logger = logging.getLogger(__name__)

_NETCDF_SUFFIXES = (".nc", ".nc4", ".netcdf", ".cdf")

# Spatial / band dimension spellings found in the wild
_DIM_ALIASES: dict[str, str] = {
    "band": "bands",
    "y": "latitude",
    "lat": "latitude",
    "x": "longitude",
    "lon": "longitude",
}


def _is_netcdf(source: str | Path) -> bool:
    text = str(source)
    if text.startswith(("http://", "https://")) and "/dodsC/" in text:
        return True
    return text.lower().split("#")[0].endswith(_NETCDF_SUFFIXES)


def _normalise_dims(da: xr.DataArray) -> xr.DataArray:
    rename = {
        old: new
        for old, new in _DIM_ALIASES.items()
        if old in da.dims and new not in da.dims
    }
    if rename:
        da = da.rename(rename)
    order = [d for d in ("time", "bands", "latitude", "longitude") if d in da.dims]
    rest = [d for d in da.dims if d not in order]
    return da.transpose(*rest, *order)


def load_raster(
    source: str | Path,
    *,
    variable: str | None = None,
    band_names: list[str] | None = None,
    chunks: Any = None,
    **kwargs: Any,
) -> xr.DataArray:
    """Open a raster file as a ``(time?, bands?, latitude, longitude)`` cube.

    Parameters
    ----------
    source : str | Path
        GeoTIFF / COG / VRT path or URL, netCDF path, or OPeNDAP URL.
    variable : str | None
        Variable to select from a netCDF dataset.  Required when the
        dataset holds more than one data variable.
    band_names : list[str] | None
        Labels for the bands dimension.  A single-band raster without a
        bands dimension gets one.
    chunks
        Passed to the opener for dask-backed lazy loading.
    **kwargs
        Forwarded to :func:`rioxarray.open_rasterio` or
        :func:`xarray.open_dataset`.

    Raises
    ------
    ValueError
        If *band_names* doesn't match the number of bands, or *variable*
        is needed but missing.
    """
    if _is_netcdf(source):
        ds = xr.open_dataset(source, chunks=chunks, **kwargs)
        if variable is None:
            names = list(ds.data_vars)
            if len(names) != 1:
                raise ValueError(
                    f"{source} holds {len(names)} variables {names}; pass variable="
                )
            variable = names[0]
        da = ds[variable]
    else:
        import rioxarray

        da = rioxarray.open_rasterio(source, chunks=chunks, **kwargs)
        if isinstance(da, list):
            raise ValueError(f"{source} holds several subdatasets; open one of them")
        if isinstance(da, xr.Dataset):
            if variable is None:
                raise ValueError(f"{source} holds variables {list(da.data_vars)}; pass variable=")
            da = da[variable]

    da = _normalise_dims(da)

    if band_names is not None:
        if "bands" not in da.dims:
            da = da.expand_dims(bands=1, axis=-3)
        if len(band_names) != da.sizes["bands"]:
            raise ValueError(
                f"Got {len(band_names)} band name(s) for {da.sizes['bands']} band(s)"
            )
        da = da.assign_coords(bands=list(band_names))

    logger.info("load_raster: %s %s", source, dict(da.sizes))
    return da


def load_raster_series(
    sources: Mapping[Any, str | Path],
    **kwargs: Any,
) -> xr.DataArray:
    """Load one raster per date and stack them along ``time``.

    Parameters
    ----------
    sources : Mapping
        Date (anything :func:`pandas.Timestamp` accepts) → raster source.
    **kwargs
        Forwarded to :func:`load_raster`.
    """
    if not sources:
        raise ValueError("sources must not be empty")
    ordered = sorted(((pd.Timestamp(k), v) for k, v in sources.items()), key=lambda kv: kv[0])
    arrays = []
    for ts, src in ordered:
        da = load_raster(src, **kwargs)
        if "time" in da.dims:
            da = da.isel(time=0, drop=True)
        arrays.append(da)
    times = pd.DatetimeIndex([ts for ts, _ in ordered], name="time")
    return xr.concat(arrays, dim=times, coords="minimal", join="override")
