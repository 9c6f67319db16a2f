"""Reading regions of interest and field plots from GeoJSON."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import geopandas as gpd


@runtime_checkable
class GeoJsonLoader(Protocol):
    def load_geojson(
        self,
        source: str | dict,
        *,
        crs: str | None = None,
        **kwargs: Any,
    ) -> gpd.GeoDataFrame:
        ...


class DefaultGeoJsonLoader:
    """Reads GeoJSON with geopandas.

    ``source`` may be a path, a URL, or an already parsed object: a
    ``FeatureCollection``, a single ``Feature`` or a bare geometry.
    Data without a CRS is taken to be WGS 84 (RFC 7946), unless *crs* is
    given, which always wins.
    """

    def load_geojson(
        self,
        source: str | dict,
        *,
        crs: str | None = None,
        **kwargs: Any,
    ) -> gpd.GeoDataFrame:
        if isinstance(source, dict):
            gdf = gpd.GeoDataFrame.from_features(_features_of(source))
        else:
            gdf = gpd.read_file(source, **kwargs)
        if crs is not None:
            return gdf.set_crs(crs, allow_override=True)
        return gdf if gdf.crs is not None else gdf.set_crs("EPSG:4326")


def _features_of(obj: dict) -> list[dict]:
    """Wrap a GeoJSON object as a list of Features."""
    kind = obj.get("type")
    if kind == "FeatureCollection":
        return list(obj.get("features", []))
    if kind == "Feature":
        return [obj]
    return [{"type": "Feature", "geometry": obj, "properties": {}}]


_default = DefaultGeoJsonLoader()


def load_geojson(
    source: str | dict,
    *,
    crs: str | None = None,
    adapter: GeoJsonLoader | None = None,
    **kwargs: Any,
) -> gpd.GeoDataFrame:
    """Read *source* into a GeoDataFrame; see :class:`DefaultGeoJsonLoader`."""
    return (adapter or _default).load_geojson(source, crs=crs, **kwargs)
