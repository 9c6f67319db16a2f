"""Cube operations on xarray, lazy wherever the data is dask-backed.

Filtering, compositing, calendar aggregation, band stacking, zonal and
regional reductions, neighbourhood filters, masking and area.
"""

from __future__ import annotations

import itertools
import logging
import pkgutil
import re
from typing import Any, Callable, Iterable, Mapping

import geopandas as gpd
import numpy as np
import pandas as pd
import xarray as xr
import xvec  # noqa: F401
from shapely.geometry import box

from eo_recipes.exceptions import DimensionNotAvailable, KernelDimensionsUneven
from eo_recipes.ops._bands import band_labels
from eo_recipes.ops._grid import (
    EARTH_RADIUS_M,
    align_crs,
    geometry_mask,
    is_geographic,
    load_geometries,
    pixel_size_m,
)
from eo_recipes.types import RasterCube, VectorCube

logger = logging.getLogger(__name__)

_CUBE_REDUCERS = ("mean", "median", "sum", "min", "max", "std", "count")


def _require_dim(data: RasterCube, dim: str) -> None:
    if dim not in data.dims:
        raise DimensionNotAvailable(
            f"A dimension with the specified name '{dim}' does not exist. "
            f"Available dimensions: {list(data.dims)}"
        )


def _check_reducer(reducer: str, allowed: Iterable[str]) -> None:
    allowed = tuple(allowed)
    if reducer not in allowed:
        raise ValueError(f"Unsupported reducer {reducer!r}. Choose from: {', '.join(allowed)}")


# ---------------------------------------------------------------------------
# Subsetting
# ---------------------------------------------------------------------------


def filter_bbox(
    data: RasterCube,
    *,
    west: float,
    south: float,
    east: float,
    north: float,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> RasterCube:
    """Crop to a box given in the cube's own coordinates.

    Works with north-up (descending) and south-up latitude axes.
    """
    lat = data.coords[y_dim].values
    descending = lat.size > 1 and lat[0] > lat[-1]
    lat_range = slice(north, south) if descending else slice(south, north)
    return data.sel({x_dim: slice(west, east), y_dim: lat_range})


def filter_temporal(data: RasterCube, *, extent: tuple[str, str], t_dim: str = "time") -> RasterCube:
    """Time steps between the two dates of *extent*, both ends included."""
    return data.sel({t_dim: slice(*extent)})


def filter_calendar(
    data: RasterCube,
    *,
    months: Iterable[int] | None = None,
    years: Iterable[int] | None = None,
    t_dim: str = "time",
) -> RasterCube:
    """Time steps in any of *months* and any of *years*.

    ``months=[6, 7, 8]`` keeps the June to August scenes of every year.
    """
    when = pd.DatetimeIndex(data.coords[t_dim].values)
    keep = np.ones(len(when), dtype=bool)
    if months is not None:
        keep &= when.month.isin(list(months))
    if years is not None:
        keep &= when.year.isin(list(years))
    return data.isel({t_dim: np.flatnonzero(keep)})


def clip(
    data: RasterCube,
    geometries: Any,
    *,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> RasterCube:
    """NaN every pixel whose centre is outside *geometries*."""
    return data.where(geometry_mask(data, geometries, x_dim=x_dim, y_dim=y_dim))


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


def composite(data: RasterCube, *, reducer: str = "median", t_dim: str = "time") -> RasterCube:
    """Collapse the time series into one image, pixel by pixel."""
    _check_reducer(reducer, _CUBE_REDUCERS)
    _require_dim(data, t_dim)
    return getattr(data, reducer)(dim=t_dim)


def _season_label(ts: pd.Timestamp) -> str:
    # December opens the following year's djf season
    if ts.month == 12:
        return f"{ts.year + 1}-djf"
    names = {1: "djf", 2: "djf", 3: "mam", 4: "mam", 5: "mam", 6: "jja", 7: "jja", 8: "jja"}
    return f"{ts.year}-{names.get(ts.month, 'son')}"


def _dekad_label(ts: pd.Timestamp) -> str:
    """``YYYY-NN``, NN counting ten-day periods from 01 to 36."""
    third = min((ts.day - 1) // 10, 2)
    return f"{ts.year}-{3 * (ts.month - 1) + third + 1:02d}"


def _tropical_season_label(ts: pd.Timestamp) -> str:
    """The wet season (November to April) is named after the year it starts in."""
    if 5 <= ts.month <= 10:
        return f"{ts.year}-mjjaso"
    start_year = ts.year if ts.month >= 11 else ts.year - 1
    return f"{start_year}-ndjfma"


# period -> (pandas resample frequency or None, label of a bin timestamp)
_PERIODS: dict[str, tuple[str | None, Callable[[pd.Timestamp], str]]] = {
    "hour": ("h", lambda ts: ts.strftime("%Y-%m-%d-%H")),
    "day": ("D", lambda ts: f"{ts.year}-{ts.dayofyear:03d}"),
    "week": ("W", lambda ts: "{0}-{1:02d}".format(*ts.isocalendar()[:2])),
    "dekad": (None, _dekad_label),
    "month": ("ME", lambda ts: ts.strftime("%Y-%m")),
    "season": ("QS-DEC", _season_label),
    "tropical-season": (None, _tropical_season_label),
    "year": ("YE", lambda ts: str(ts.year)),
    "decade": (None, lambda ts: str(ts.year // 10 * 10)),
    "decade-ad": (None, lambda ts: str((ts.year - 1) // 10 * 10 + 1)),
}


def aggregate_temporal(
    data: RasterCube,
    *,
    period: str = "month",
    reducer: str = "mean",
    t_dim: str = "time",
) -> RasterCube:
    """Reduce the series to one image per calendar period.

    Periods with a fixed pandas frequency are resampled; dekads, tropical
    seasons and decades are grouped by label instead, so only periods
    with observations appear. Time labels follow the openEO
    ``aggregate_temporal_period`` conventions: ``2024-03`` for months,
    ``2024-djf`` for seasons, ``2024-07`` for the seventh dekad.

    Parameters
    ----------
    period : str
        One of ``hour``, ``day``, ``week``, ``dekad``, ``month``,
        ``season``, ``tropical-season``, ``year``, ``decade``,
        ``decade-ad``.
    reducer : str
        xarray reduction run within each period, e.g. ``"mean"``.
    """
    if period not in _PERIODS:
        raise ValueError(f"Unsupported period {period!r}. Choose from: {', '.join(_PERIODS)}")
    _check_reducer(reducer, _CUBE_REDUCERS)
    freq, label = _PERIODS[period]

    if freq is not None:
        result = getattr(data.resample({t_dim: freq}), reducer)()
        stamps = pd.DatetimeIndex(result.coords[t_dim].values)
        return result.assign_coords({t_dim: [label(ts) for ts in stamps]})

    keys = [label(ts) for ts in pd.DatetimeIndex(data.coords[t_dim].values)]
    grouped = getattr(data.groupby(xr.DataArray(keys, dims=[t_dim], name="_period")), reducer)()
    # groupby sorts labels; put them back in order of first appearance
    ordered = list(dict.fromkeys(keys))
    return grouped.sel(_period=ordered).rename({"_period": t_dim})


def aggregate_calendar(
    data: RasterCube,
    *,
    by: str = "month",
    reducer: str = "median",
    labels: Iterable[int] | None = None,
    t_dim: str = "time",
) -> RasterCube:
    """Composite per calendar month (pooling all years) or per year.

    The time dimension is replaced by an integer dimension named *by*
    (``month`` 1..12 or ``year``).

    Parameters
    ----------
    labels : iterable of int, optional
        Reindex the result to these labels (e.g. ``range(1, 13)``) so that
        periods without any observation are present as all-NaN slices.
    """
    if by not in ("month", "year"):
        raise ValueError(f"by must be 'month' or 'year', got {by!r}")
    _check_reducer(reducer, _CUBE_REDUCERS)

    keys = getattr(data.coords[t_dim].dt, by).rename(by)
    result = getattr(data.groupby(keys), reducer)()
    if labels is not None:
        result = result.reindex({by: list(labels)})
    return result


_SUMMARY_STATS = ("mean", "median", "std", "min", "max", "sum", "count")


def summarise_temporal(
    data: RasterCube,
    *,
    by: Iterable[str] = ("year", "month"),
    stats: Iterable[str] = ("mean",),
    t_dim: str = "time",
    bands_dim: str = "bands",
) -> RasterCube:
    """Grouped multi-statistic summary of an image time series.

    Time steps are grouped by the calendar fields in *by* and each group
    is reduced with every statistic in *stats*.  The result has a
    ``period`` dimension labelled ``"2024-06"`` (``by=("year", "month")``),
    ``"2024"`` or ``"06"``, and bands named ``"{band}_{stat}"``.
    """
    by = tuple(by)
    stats = tuple(stats)
    for field in by:
        if field not in ("year", "month"):
            raise ValueError(f"Unsupported grouping field {field!r}; use 'year' and/or 'month'")
    for stat in stats:
        _check_reducer(stat, _SUMMARY_STATS)

    times = pd.DatetimeIndex(data.coords[t_dim].values)
    keys = [
        "-".join(str(t.year) if field == "year" else f"{t.month:02d}" for field in by)
        for t in times
    ]
    grouped = data.groupby(xr.DataArray(keys, dims=[t_dim], name="period"))

    if bands_dim in data.dims:
        base_names = band_labels(data, bands_dim)
        stacked = data
    else:
        base_names = [str(data.name or "value")]
        stacked = None

    pieces = []
    for stat in stats:
        reduced = getattr(grouped, stat)()
        if stacked is None:
            reduced = reduced.expand_dims({bands_dim: 1})
        reduced = reduced.assign_coords({bands_dim: [f"{b}_{stat}" for b in base_names]})
        pieces.append(reduced)

    return xr.concat(pieces, dim=bands_dim, coords="minimal", join="override")


# ---------------------------------------------------------------------------
# Band stacking
# ---------------------------------------------------------------------------


def _label_str(value: Any) -> str:
    if isinstance(value, (np.datetime64, pd.Timestamp)):
        return pd.Timestamp(value).strftime("%Y-%m-%d")
    if isinstance(value, (np.integer, int)):
        return str(int(value))
    return str(value)


def to_bands(
    data: RasterCube,
    *,
    dim: str,
    prefix: str,
    index_prefix: bool = False,
    bands_dim: str = "bands",
) -> RasterCube:
    """Flatten *dim* into the bands dimension with names ``"{prefix}_{label}"``.

    With ``index_prefix=True`` the names carry a leading ``"{i}_"`` the
    way an ImageCollection's ``toBands`` emits them; see
    :func:`clean_band_names` to strip it again.
    """
    _require_dim(data, dim)
    if bands_dim in data.dims:
        if data.sizes[bands_dim] != 1:
            raise ValueError(
                f"to_bands needs a single-band cube, got {data.sizes[bands_dim]} bands"
            )
        data = data.isel({bands_dim: 0}, drop=True)

    names = [f"{prefix}_{_label_str(v)}" for v in data.coords[dim].values]
    if index_prefix:
        names = [f"{i}_{n}" for i, n in enumerate(names)]
    return data.rename({dim: bands_dim}).assign_coords({bands_dim: names})


def clean_band_names(names: Iterable[str], pattern: str = r"^X?[0-9]+_") -> list[str]:
    """Strip numeric ``toBands`` prefixes (``"0_ndvi_1"`` → ``"ndvi_1"``).

    The default pattern also removes the ``X`` that R's name repair puts
    in front (``"X2_wvp_3"`` → ``"wvp_3"``).
    """
    rx = re.compile(pattern)
    return [rx.sub("", str(n), count=1) for n in names]


def rename_bands(
    data: RasterCube,
    mapping: Mapping[str, str] | Callable[[str], str],
    *,
    bands_dim: str = "bands",
) -> RasterCube:
    """Relabel bands with a mapping (missing keys are kept) or a function."""
    labels = band_labels(data, bands_dim)
    if callable(mapping):
        new = [mapping(b) for b in labels]
    else:
        new = [mapping.get(b, b) for b in labels]
    return data.assign_coords({bands_dim: new})


# ---------------------------------------------------------------------------
# Zonal statistics
# ---------------------------------------------------------------------------


def aggregate_spatial(
    data: RasterCube,
    geometries: Any,
    *,
    reducer: str = "mean",
    x_dim: str = "longitude",
    y_dim: str = "latitude",
    t_dim: str = "time",
    bands_dim: str = "bands",
) -> RasterCube | VectorCube:
    """Zonal statistics of a cube over plots, fields or admin units.

    Parameters
    ----------
    geometries : str, GeoDataFrame, GeoSeries or None
        Polygons, or the path of a vector file holding them. ``None``
        reduces the whole extent and returns a DataArray.
    reducer : str
        ``mean``, ``median``, ``sum``, ``min``, ``max``, ``std`` or
        ``count``.

    Returns
    -------
    geopandas.GeoDataFrame
        One row per feature overlapping the raster. The feature's own
        attributes come first, then one value column per band and time
        step (``"ndvi_2024-06"``). A cube with neither gets a single
        column named after *reducer*.
    """
    _check_reducer(reducer, _CUBE_REDUCERS)
    if geometries is None:
        return getattr(data, reducer)(dim=[x_dim, y_dim])

    features = gpd.read_file(geometries) if isinstance(geometries, str) else geometries
    attributes = (
        features.drop(columns=[features.geometry.name])
        if isinstance(features, gpd.GeoDataFrame)
        else None
    )
    geoms = align_crs(load_geometries(features), data)

    footprint = box(
        float(data.coords[x_dim].min()),
        float(data.coords[y_dim].min()),
        float(data.coords[x_dim].max()),
        float(data.coords[y_dim].max()),
    )
    overlaps = geoms.intersects(footprint).to_numpy()
    if not overlaps.any():
        raise ValueError(
            "No geometries intersect the raster extent; make sure the features "
            "and the raster cover the same area in the same CRS."
        )
    geoms = geoms[overlaps]

    zonal = data.xvec.zonal_stats(
        geoms, x_coords=x_dim, y_coords=y_dim, stats=reducer, method="iterate"
    ).compute()
    table = _zonal_table(zonal, reducer, t_dim=t_dim, bands_dim=bands_dim)
    if attributes is not None and len(attributes.columns):
        table = pd.concat([attributes.loc[overlaps].reset_index(drop=True), table], axis=1)
    logger.debug("Zonal %s over %d feature(s), %d value column(s)", reducer, len(table), table.shape[1])
    return gpd.GeoDataFrame(table, geometry=list(geoms.values), crs=geoms.crs)


def _zonal_table(zonal: xr.DataArray, reducer: str, *, t_dim: str, bands_dim: str) -> pd.DataFrame:
    """Flatten xvec output to one row per geometry, one column per label combination."""
    rest = [d for d in zonal.dims if d != "geometry"]
    values = zonal.transpose("geometry", *rest).values.reshape(zonal.sizes["geometry"], -1)
    if not rest:
        return pd.DataFrame(values, columns=[reducer])

    def label(combo: tuple) -> str:
        by_dim = dict(zip(rest, combo))
        parts = [str(by_dim.pop(bands_dim))] if bands_dim in by_dim else []
        for dim, value in by_dim.items():
            if dim == t_dim and isinstance(value, np.datetime64):
                parts.append(str(value)[:7])
            else:
                parts.append(_label_str(value))
        return "_".join(parts)

    axes = [zonal.coords[d].values if d in zonal.coords else range(zonal.sizes[d]) for d in rest]
    return pd.DataFrame(values, columns=[label(c) for c in itertools.product(*axes)])


# ---------------------------------------------------------------------------
# reduce_region (one geometry → scalars)
# ---------------------------------------------------------------------------


def _mode(values: np.ndarray) -> float:
    uniq, counts = np.unique(values, return_counts=True)
    # argmax returns the first maximum, i.e. the smallest tied value
    return float(uniq[np.argmax(counts)])


_REGION_REDUCERS: dict[str, Callable[[np.ndarray], float]] = {
    "mean": lambda v: float(np.mean(v)),
    "median": lambda v: float(np.median(v)),
    "min": lambda v: float(np.min(v)),
    "max": lambda v: float(np.max(v)),
    "sum": lambda v: float(np.sum(v)),
    "std": lambda v: float(np.std(v)),
    "variance": lambda v: float(np.var(v)),
    "mode": _mode,
    "count": lambda v: float(v.size),
}


def reduce_region(
    data: RasterCube,
    geometry: Any,
    *,
    reducers: str | Iterable[str] = ("mean",),
    x_dim: str = "longitude",
    y_dim: str = "latitude",
    bands_dim: str = "bands",
) -> dict[str, float]:
    """Reduce a single image over a region to a dict of scalars.

    Several *reducers* are evaluated on the same pixels (shared inputs).
    With one reducer the keys are band names; with several they are
    ``"{band}_{reducer}"``.  A cube without a bands dimension is treated
    as one band named after the DataArray (or ``"value"``).

    ``std`` and ``variance`` are population statistics (ddof=0).  A
    region without any pixel centre inside yields NaN (``count`` → 0).
    """
    reducers = (reducers,) if isinstance(reducers, str) else tuple(reducers)
    for r in reducers:
        _check_reducer(r, _REGION_REDUCERS)

    inside = geometry_mask(data, geometry, x_dim=x_dim, y_dim=y_dim)

    if bands_dim in data.dims:
        layers = {b: data.sel({bands_dim: b}) for b in data.coords[bands_dim].values}
    else:
        layers = {data.name or "value": data}

    out: dict[str, float] = {}
    for band, layer in layers.items():
        extra = [d for d in layer.dims if d not in (x_dim, y_dim)]
        if extra:
            raise ValueError(
                f"reduce_region expects a single image, found extra dimension(s) {extra}; "
                f"composite them first"
            )
        values = np.asarray(layer.where(inside).values, dtype=np.float64).ravel()
        values = values[np.isfinite(values)]
        for r in reducers:
            key = str(band) if len(reducers) == 1 else f"{band}_{r}"
            if values.size == 0:
                out[key] = 0.0 if r == "count" else float("nan")
            else:
                out[key] = _REGION_REDUCERS[r](values)
    return out


def reduce_at_scales(
    data: RasterCube,
    geometry: Any,
    scales: Iterable[float],
    *,
    reducer: str = "mean",
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> pd.DataFrame:
    """Reduce a single-band image over *geometry* at several pixel sizes.

    For every target scale (metres) the image is block-averaged by the
    nearest integer factor of its native pixel size, then reduced.
    Returns a DataFrame with ``scale`` and ``value`` columns.
    """
    native = pixel_size_m(data, x_dim, y_dim)
    rows = []
    for scale in scales:
        if scale < native * 0.999:
            raise ValueError(
                f"Scale {scale} m is finer than the native pixel size ({native:.1f} m)"
            )
        factor = max(1, int(round(scale / native)))
        coarse = data
        if factor > 1:
            coarse = data.coarsen({x_dim: factor, y_dim: factor}, boundary="trim").mean()
        stats = reduce_region(coarse, geometry, reducers=reducer, x_dim=x_dim, y_dim=y_dim)
        rows.append({"scale": scale, "value": next(iter(stats.values()))})
    return pd.DataFrame(rows)


def sample_points(
    data: RasterCube,
    points: gpd.GeoDataFrame,
    *,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
    bands_dim: str = "bands",
    drop_nulls: bool = True,
) -> gpd.GeoDataFrame:
    """Sample nearest-pixel values at point features.

    Returns the point attributes plus one column per band.  Points outside
    the raster extent are dropped, and so are points whose values are all
    NaN when *drop_nulls* is true.
    """
    geoms = align_crs(points.geometry, data)
    xs = np.asarray(data.coords[x_dim].values, dtype=float)
    ys = np.asarray(data.coords[y_dim].values, dtype=float)
    px = geoms.x.to_numpy()
    py = geoms.y.to_numpy()
    inside = (px >= xs.min()) & (px <= xs.max()) & (py >= ys.min()) & (py <= ys.max())

    attrs = points.drop(columns=[points.geometry.name]).loc[inside].reset_index(drop=True)
    kept = geoms[inside]

    sampled = data.sel(
        {
            x_dim: xr.DataArray(px[inside], dims="point"),
            y_dim: xr.DataArray(py[inside], dims="point"),
        },
        method="nearest",
    )
    if bands_dim in sampled.dims:
        columns = [str(b) for b in sampled.coords[bands_dim].values]
        values = np.asarray(sampled.transpose("point", bands_dim).values)
    else:
        columns = [str(data.name or "value")]
        values = np.asarray(sampled.values).reshape(-1, 1)

    table = pd.concat([attrs, pd.DataFrame(values, columns=columns)], axis=1)
    out = gpd.GeoDataFrame(table, geometry=list(kept.values), crs=kept.crs)
    if drop_nulls:
        out = out.loc[~out[columns].isna().all(axis=1)].reset_index(drop=True)
    return out


# ---------------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------------

# gdalwarp method names
_RESAMPLING_METHODS = (
    "near", "bilinear", "cubic", "cubicspline", "lanczos", "average", "mode",
    "max", "min", "med", "q1", "q3", "sum", "rms",
)


def resample_spatial(
    data: RasterCube,
    *,
    resolution: float | list[float] = 0,
    projection: int | str | None = None,
    method: str = "near",
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> RasterCube:
    """Warp the cube to a new pixel size and/or CRS with rioxarray.

    Parameters
    ----------
    resolution : float or [x_res, y_res]
        Pixel size in units of the target CRS; ``0`` keeps it.
    projection : int or str, optional
        EPSG code or WKT of the target CRS; ``None`` keeps it. A cube
        without CRS metadata is taken to be WGS 84.
    method : str
        gdalwarp resampling name: ``near``, ``bilinear``, ``cubic``,
        ``average``, ``mode``, ...
    """
    from rasterio.enums import Resampling

    if method not in _RESAMPLING_METHODS:
        raise ValueError(
            f"Unknown resampling method {method!r}. Choose from {list(_RESAMPLING_METHODS)}"
        )
    if resolution == 0 and projection is None:
        return data

    renamed = {"near": "nearest", "cubicspline": "cubic_spline"}
    options: dict[str, Any] = {"resampling": Resampling[renamed.get(method, method)]}
    if isinstance(resolution, (list, tuple)):
        options["resolution"] = (float(resolution[0]), float(resolution[1]))
    elif resolution:
        options["resolution"] = float(resolution)
    if isinstance(projection, int):
        projection = f"EPSG:{projection}"
    return _warp(data, projection, options, x_dim, y_dim)


def _warp(
    data: RasterCube,
    projection: str | None,
    options: dict[str, Any],
    x_dim: str,
    y_dim: str,
) -> RasterCube:
    # rioxarray reprojects (y, x) and (band, y, x) arrays; split anything deeper
    outer = [d for d in data.dims if d not in (x_dim, y_dim)]
    if len(outer) > 1:
        dim = outer[0]
        layers = [
            _warp(data.isel({dim: i}, drop=True), projection, options, x_dim, y_dim)
            for i in range(data.sizes[dim])
        ]
        index = data.indexes[dim] if dim in data.indexes else dim
        return xr.concat(layers, dim=index).transpose(*data.dims)

    import rioxarray  # noqa: F401

    grid = data.rio.set_spatial_dims(x_dim=x_dim, y_dim=y_dim)
    if grid.rio.crs is None:
        grid = grid.rio.write_crs("EPSG:4326")
    warped = grid.rio.reproject(projection or grid.rio.crs, **options)
    return _restore_spatial_dim_names(warped, x_dim, y_dim)


def _restore_spatial_dim_names(data: RasterCube, x_dim: str, y_dim: str) -> RasterCube:
    """Rename rioxarray's default ``y``/``x`` dims back to the caller's names."""
    rename: dict[str, str] = {}
    if x_dim != "x" and "x" in data.dims and x_dim not in data.dims:
        rename["x"] = x_dim
    if y_dim != "y" and "y" in data.dims and y_dim not in data.dims:
        rename["y"] = y_dim
    if rename:
        data = data.rename(rename)
    return data


# ---------------------------------------------------------------------------
# Per-pixel functions and reductions along one dimension
# ---------------------------------------------------------------------------


def apply(data: RasterCube, process: Callable[..., Any], *, context: Any = None) -> RasterCube:
    """Run *process* on every value; dask-backed cubes stay lazy.

    *context*, when given, is passed to *process* as a keyword.
    """
    extra = {} if context is None else {"context": context}
    return xr.apply_ufunc(
        process, data, kwargs=extra, dask="parallelized", output_dtypes=[data.dtype]
    )


def _count_valid(values: np.ndarray, axis: int | None = None) -> np.ndarray:
    return np.isfinite(values).sum(axis=axis)


_DIMENSION_REDUCERS: dict[str, Callable[..., Any]] = {
    "mean": np.mean,
    "average": np.mean,
    "median": np.median,
    "sum": np.sum,
    "prod": np.prod,
    "min": np.min,
    "max": np.max,
    "std": np.std,
    "var": np.var,
    "any": np.any,
    "all": np.all,
    "count": _count_valid,
}


def _resolve_reducer(reducer: str | Callable[..., Any]) -> Callable[..., Any]:
    """A callable, a name from ``_DIMENSION_REDUCERS`` or an importable dotted path."""
    if callable(reducer):
        return reducer
    if not isinstance(reducer, str):
        raise TypeError(f"reducer must be a callable or a string, got {type(reducer)!r}")
    if reducer in _DIMENSION_REDUCERS:
        return _DIMENSION_REDUCERS[reducer]
    if "." in reducer:
        try:
            found = pkgutil.resolve_name(reducer)
        except (ImportError, AttributeError, ValueError):
            found = None
        if callable(found):
            return found
    raise ValueError(
        f"Unknown reducer {reducer!r}: pass a callable, one of "
        f"{', '.join(sorted(_DIMENSION_REDUCERS))}, or a dotted path such as 'numpy.nanmean'"
    )


def reduce_dimension(
    data: RasterCube,
    reducer: str | Callable[..., Any],
    *,
    dimension: str,
) -> RasterCube:
    """Collapse *dimension*, e.g. ``bands`` into a single index layer.

    Raises
    ------
    DimensionNotAvailable
        When the cube has no *dimension*.
    """
    _require_dim(data, dimension)
    return data.reduce(_resolve_reducer(reducer), dim=dimension)


# ---------------------------------------------------------------------------
# Neighbourhood operations
# ---------------------------------------------------------------------------

# border name -> scipy.ndimage mode
_BORDER_MODES: dict[str, str] = {
    "replicate": "nearest",
    "reflect": "reflect",
    "reflect_pixel": "mirror",
    "wrap": "wrap",
}


def _per_image(
    fn: Callable[[np.ndarray], np.ndarray], data: RasterCube, x_dim: str, y_dim: str, dtype: Any
) -> RasterCube:
    """Run *fn* on every 2-D ``(y, x)`` image of the cube.

    Dask-backed cubes are rechunked so each image is a single block.
    """
    if data.chunks:
        data = data.chunk({y_dim: -1, x_dim: -1})
    return xr.apply_ufunc(
        fn,
        data,
        input_core_dims=[[y_dim, x_dim]],
        output_core_dims=[[y_dim, x_dim]],
        vectorize=True,
        dask="parallelized",
        output_dtypes=[dtype],
    )


def apply_kernel(
    data: RasterCube,
    *,
    kernel: list[list[float]],
    factor: float = 1.0,
    border: float | str = 0,
    replace_invalid: float = 0.0,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> RasterCube:
    """Convolve each image with *kernel*, then multiply by *factor*.

    *border* is a constant fill value or one of ``replicate``,
    ``reflect``, ``reflect_pixel`` and ``wrap``. NaN pixels are replaced
    with *replace_invalid* before convolving.

    Raises
    ------
    KernelDimensionsUneven
        When the kernel is not 2-D or has an even side.
    """
    from scipy.ndimage import convolve

    weights = np.asarray(kernel, dtype=np.float64)
    if weights.ndim != 2:
        raise KernelDimensionsUneven("The kernel must be a two-dimensional array.")
    if not all(side % 2 for side in weights.shape):
        raise KernelDimensionsUneven(
            "Each dimension of the kernel must have an uneven number of elements."
        )
    _require_spatial_dims(data, x_dim, y_dim)

    if isinstance(border, str):
        if border not in _BORDER_MODES:
            raise ValueError(
                f"Unknown border mode {border!r}; use a number or one of {list(_BORDER_MODES)}"
            )
        mode, fill = _BORDER_MODES[border], 0.0
    else:
        mode, fill = "constant", float(border)

    def convolve_image(image: np.ndarray) -> np.ndarray:
        filled = np.where(np.isfinite(image), image, replace_invalid)
        return factor * convolve(filled, weights, mode=mode, cval=fill)

    return _per_image(convolve_image, data, x_dim, y_dim, data.dtype)


_NEIGHBORHOOD_REDUCERS: dict[str, Callable[..., Any]] = {
    "mean": np.nanmean,
    "median": np.nanmedian,
    "min": np.nanmin,
    "max": np.nanmax,
    "sum": np.nansum,
    "std": np.nanstd,
    "variance": np.nanvar,
}


def kernel_footprint(radius: int, kernel: str = "circle") -> np.ndarray:
    """Boolean ``(2r+1, 2r+1)`` footprint of a circle or square kernel."""
    if radius < 1:
        raise ValueError(f"radius must be >= 1, got {radius}")
    if kernel == "square":
        return np.ones((2 * radius + 1, 2 * radius + 1), dtype=bool)
    if kernel == "circle":
        yy, xx = np.ogrid[-radius : radius + 1, -radius : radius + 1]
        return (xx**2 + yy**2) <= radius**2
    raise ValueError(f"Unknown kernel {kernel!r}; use 'circle' or 'square'")


def reduce_neighborhood(
    data: RasterCube,
    *,
    reducer: str = "std",
    radius: int = 1,
    kernel: str = "circle",
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> RasterCube:
    """Focal statistic over a circular or square pixel neighbourhood.

    Pixels outside the image (and NaN pixels) don't contribute, so edge
    pixels are reduced over the part of the kernel that overlaps the image.
    """
    from scipy.ndimage import generic_filter

    _check_reducer(reducer, _NEIGHBORHOOD_REDUCERS)
    _require_spatial_dims(data, x_dim, y_dim)
    footprint = kernel_footprint(radius, kernel)
    fn = _NEIGHBORHOOD_REDUCERS[reducer]

    def focal(image: np.ndarray) -> np.ndarray:
        return generic_filter(
            image.astype(np.float64), fn, footprint=footprint, mode="constant", cval=np.nan
        )

    return _per_image(focal, data, x_dim, y_dim, np.float64)


def _require_spatial_dims(data: RasterCube, x_dim: str, y_dim: str) -> None:
    for dim in (y_dim, x_dim):
        _require_dim(data, dim)


# ---------------------------------------------------------------------------
# Masks and area
# ---------------------------------------------------------------------------


def update_mask(data: RasterCube, mask: xr.DataArray) -> RasterCube:
    """Set pixels where *mask* is false (or NaN) to NaN."""
    return data.where(mask.fillna(0).astype(bool))


def self_mask(data: RasterCube) -> RasterCube:
    """Mask pixels equal to zero / False, keeping the others' values."""
    return data.where(data.fillna(0) != 0)


def pixel_area(
    data: RasterCube,
    *,
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> xr.DataArray:
    """Per-pixel area in square metres as a ``(y, x)`` DataArray.

    Geographic grids use the spherical cell area
    ``R² · Δλ · |sin φ₂ − sin φ₁|``; projected grids use ``|Δx · Δy|``.
    """
    xs = np.asarray(data.coords[x_dim].values, dtype=np.float64)
    ys = np.asarray(data.coords[y_dim].values, dtype=np.float64)
    dx = np.abs(np.gradient(xs)) if xs.size > 1 else np.array([0.0])
    dy = np.abs(np.gradient(ys)) if ys.size > 1 else np.array([0.0])

    if is_geographic(data, x_dim, y_dim):
        lat = np.deg2rad(ys)
        half = np.deg2rad(dy) / 2
        band = np.abs(np.sin(lat + half) - np.sin(lat - half))
        area = EARTH_RADIUS_M**2 * np.outer(band, np.deg2rad(dx))
    else:
        area = np.outer(dy, dx)

    return xr.DataArray(
        area,
        dims=(y_dim, x_dim),
        coords={y_dim: data.coords[y_dim].values, x_dim: data.coords[x_dim].values},
        name="area",
    )


_AREA_UNITS = {"m2": 1.0, "ha": 1e4, "km2": 1e6}


def masked_area(
    mask: xr.DataArray,
    *,
    geometry: Any = None,
    units: str = "km2",
    x_dim: str = "longitude",
    y_dim: str = "latitude",
) -> float:
    """Total area of true (non-zero, non-NaN) pixels, optionally inside *geometry*."""
    if units not in _AREA_UNITS:
        raise ValueError(f"Unknown area units {units!r}. Choose from {list(_AREA_UNITS)}")
    selected = mask.fillna(0).astype(bool)
    if geometry is not None:
        selected = selected & geometry_mask(mask, geometry, x_dim=x_dim, y_dim=y_dim)
    area = pixel_area(mask, x_dim=x_dim, y_dim=y_dim)
    total = float(area.where(selected).sum())
    return total / _AREA_UNITS[units]
