"""Region of interest construction.

An ROI is a GeoDataFrame in EPSG:4326: a bounding box, a buffered point or
polygons read from a vector file.  :func:`spatial_extent` turns it into the
``{west, south, east, north}`` dict the loaders expect.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import geopandas as gpd
from shapely.geometry import Point, box

from eo_recipes.io.geojson import load_geojson


def _frame(geometry: Any, crs: Any, name: str | None) -> gpd.GeoDataFrame:
    data = {"name": [name]} if name is not None else {}
    return gpd.GeoDataFrame(data, geometry=[geometry], crs=crs)


def roi_from_bbox(
    west: float,
    south: float,
    east: float,
    north: float,
    *,
    crs: str = "EPSG:4326",
    name: str | None = None,
) -> gpd.GeoDataFrame:
    """One rectangular feature."""
    if west >= east or south >= north:
        raise ValueError(
            f"Invalid bounding box: west={west}, south={south}, east={east}, north={north}"
        )
    return _frame(box(west, south, east, north), crs, name)


def roi_from_point(
    lon: float,
    lat: float,
    *,
    buffer_m: float,
    name: str | None = None,
) -> gpd.GeoDataFrame:
    """A circle of radius *buffer_m* metres around ``(lon, lat)``.

    The buffer is computed in an azimuthal equidistant projection centred
    on the point, so the radius is true in every direction.
    """
    if buffer_m <= 0:
        raise ValueError(f"buffer_m must be positive, got {buffer_m}")
    local = f"+proj=aeqd +lat_0={lat} +lon_0={lon} +datum=WGS84 +units=m +no_defs"
    point = gpd.GeoSeries([Point(lon, lat)], crs="EPSG:4326").to_crs(local)
    circle = point.buffer(buffer_m, quad_segs=32).to_crs("EPSG:4326")
    return _frame(circle.iloc[0], "EPSG:4326", name)


def load_roi(source: str | Path | dict, *, layer: str | None = None) -> gpd.GeoDataFrame:
    """Read an ROI from a GeoJSON dict or a GeoJSON / GeoPackage / shapefile path.

    A source without CRS is assumed to be EPSG:4326.
    """
    if isinstance(source, dict):
        return load_geojson(source)
    kwargs = {"layer": layer} if layer is not None else {}
    return load_geojson(str(source), **kwargs)


def label_features(
    gdf: gpd.GeoDataFrame,
    column: str,
    labels: Sequence[Any],
) -> gpd.GeoDataFrame:
    """Assign one label per feature, keeping only *column* and the geometry.

    Raises
    ------
    ValueError
        If the number of labels differs from the number of features.
    """
    if len(labels) != len(gdf):
        raise ValueError(f"Got {len(labels)} label(s) for {len(gdf)} feature(s)")
    return gpd.GeoDataFrame(
        {column: list(labels)},
        geometry=list(gdf.geometry.values),
        crs=gdf.crs,
    )


def spatial_extent(gdf: gpd.GeoDataFrame, *, buffer_m: float = 0) -> dict[str, float]:
    """Bounding box of *gdf* in EPSG:4326, optionally grown by *buffer_m* metres."""
    geoms = gdf.geometry
    if geoms.crs is None:
        geoms = geoms.set_crs("EPSG:4326")
    if buffer_m:
        utm = geoms.estimate_utm_crs()
        geoms = geoms.to_crs(utm).buffer(buffer_m)
    west, south, east, north = geoms.to_crs("EPSG:4326").total_bounds
    return {"west": float(west), "south": float(south), "east": float(east), "north": float(north)}
