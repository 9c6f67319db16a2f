"""Feature collections: attribute filters, geodesic measures, buffers and reprojection."""

from __future__ import annotations

from typing import Any, Callable, Iterable

import geopandas as gpd
import pandas as pd
import pyproj
from shapely.geometry import box

from eo_recipes.exceptions import UnitMismatch
from eo_recipes.ops._grid import load_geometries
from eo_recipes.types import VectorCube

# ---------------------------------------------------------------------------
# Property filters
# ---------------------------------------------------------------------------


class Filter:
    """A predicate on feature properties.

    Filters are built with the class methods below and combined with
    ``&``, ``|`` and ``~``::

        flt = Filter.eq("continent", "Africa") & ~Filter.in_list("name", ["Chad"])
        filter_features(countries, flt)
    """

    def __init__(self, predicate: Callable[[pd.DataFrame], pd.Series], label: str) -> None:
        self._predicate = predicate
        self.label = label

    def __call__(self, df: pd.DataFrame) -> pd.Series:
        return self._predicate(df).fillna(False).astype(bool)

    def __and__(self, other: Filter) -> Filter:
        return Filter(lambda df: self(df) & other(df), f"({self.label} & {other.label})")

    def __or__(self, other: Filter) -> Filter:
        return Filter(lambda df: self(df) | other(df), f"({self.label} | {other.label})")

    def __invert__(self) -> Filter:
        return Filter(lambda df: ~self(df), f"~{self.label}")

    def __repr__(self) -> str:
        return f"Filter({self.label})"

    @classmethod
    def eq(cls, column: str, value: Any) -> Filter:
        return cls(lambda df: df[column] == value, f"{column} == {value!r}")

    @classmethod
    def neq(cls, column: str, value: Any) -> Filter:
        return cls(lambda df: df[column] != value, f"{column} != {value!r}")

    @classmethod
    def in_list(cls, column: str, values: Iterable[Any]) -> Filter:
        values = list(values)
        return cls(lambda df: df[column].isin(values), f"{column} in {values!r}")

    @classmethod
    def range_contains(cls, column: str, low: float, high: float) -> Filter:
        """Inclusive range ``low <= value <= high``."""
        return cls(
            lambda df: df[column].between(low, high, inclusive="both"),
            f"{low} <= {column} <= {high}",
        )

    @classmethod
    def string_contains(cls, column: str, text: str) -> Filter:
        return cls(
            lambda df: df[column].astype(str).str.contains(text, regex=False),
            f"{column} contains {text!r}",
        )

    @classmethod
    def string_starts_with(cls, column: str, text: str) -> Filter:
        return cls(
            lambda df: df[column].astype(str).str.startswith(text),
            f"{column} starts with {text!r}",
        )

    @classmethod
    def string_ends_with(cls, column: str, text: str) -> Filter:
        return cls(
            lambda df: df[column].astype(str).str.endswith(text),
            f"{column} ends with {text!r}",
        )


def filter_features(data: gpd.GeoDataFrame, flt: Filter) -> gpd.GeoDataFrame:
    """Keep the features for which *flt* is true."""
    return data.loc[flt(data)].copy()


def filter_bounds(data: gpd.GeoDataFrame, geometry: Any) -> gpd.GeoDataFrame:
    """Keep the features that intersect *geometry* (any supported geometry input)."""
    region = load_geometries(geometry)
    if region.crs is not None and data.crs is not None:
        region = region.to_crs(data.crs)
    mask = data.geometry.intersects(region.union_all())
    return data.loc[mask].copy()


# ---------------------------------------------------------------------------
# Geodesic measures
# ---------------------------------------------------------------------------


def add_geodesic_measures(
    data: gpd.GeoDataFrame,
    *,
    area_col: str = "area",
    perimeter_col: str = "perimeter",
) -> gpd.GeoDataFrame:
    """Add ellipsoidal area (km²) and perimeter (km) columns.

    Measures are computed on the WGS 84 ellipsoid with :class:`pyproj.Geod`,
    so they are independent of the features' projection.
    """
    if data.crs is None:
        raise ValueError("Features have no CRS; set one before measuring them")
    geod = pyproj.Geod(ellps="WGS84")
    wgs84 = data.geometry.to_crs("EPSG:4326")

    areas, perimeters = [], []
    for geom in wgs84:
        if geom is None or geom.is_empty:
            areas.append(float("nan"))
            perimeters.append(float("nan"))
            continue
        area, perimeter = geod.geometry_area_perimeter(geom)
        areas.append(abs(area) / 1e6)
        perimeters.append(perimeter / 1e3)

    result = data.copy()
    result[area_col] = areas
    result[perimeter_col] = perimeters
    return result


# ---------------------------------------------------------------------------
# Buffering and reprojection
# ---------------------------------------------------------------------------


def _require_metres(crs: Any) -> None:
    if crs is None:
        raise UnitMismatch(
            "The geometries have no CRS; assign a projected one or call vector_reproject() first."
        )
    units = {axis.unit_name for axis in pyproj.CRS.from_user_input(crs).axis_info}
    if not units & {"metre", "meter"}:
        raise UnitMismatch(
            "Buffer distances are in metres but the CRS units are not metres; "
            "call vector_reproject() with a projected CRS first."
        )


def _require_features(data: Any, operation: str) -> None:
    if not isinstance(data, gpd.GeoDataFrame):
        raise TypeError(f"{operation} only supports a GeoDataFrame, got {type(data)!r}")


def vector_buffer(geometries: VectorCube, *, distance: float) -> VectorCube:
    """Grow (positive *distance*) or shrink (negative) every geometry, in metres.

    Plot centres buffered by 30 m become 30 m discs; a field buffered by
    -50 m loses a 50 m margin. Attributes are kept.

    Raises
    ------
    UnitMismatch
        When the CRS is missing or not in metres, e.g. EPSG:4326.
    """
    if distance == 0:
        raise ValueError("distance must not be 0")
    _require_features(geometries, "vector_buffer")
    _require_metres(geometries.crs)
    result = geometries.copy()
    result[result.geometry.name] = result.geometry.buffer(distance)
    return result


def vector_reproject(data: VectorCube, *, projection: int | str) -> VectorCube:
    """Transform the geometries to *projection* (EPSG code or WKT)."""
    _require_features(data, "vector_reproject")
    return data.to_crs(f"EPSG:{projection}" if isinstance(projection, int) else projection)


def filter_bbox(
    data: VectorCube,
    *,
    west: float,
    south: float,
    east: float,
    north: float,
) -> VectorCube:
    """Features lying entirely inside the box (in the data's CRS)."""
    _require_features(data, "filter_bbox")
    region = box(west, south, east, north)
    return data.loc[data.geometry.within(region)].copy()
