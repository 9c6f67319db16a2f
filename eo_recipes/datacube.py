"""Chainable recipe steps over raster and vector cubes.

A recipe usually reads top to bottom as one expression::

    from eo_recipes import DataCube

    monthly = (
        DataCube.load_dataset("sentinel-2-l2a", spatial_extent=..., temporal_extent=...,
                              bands=["red", "nir"])
        .ndvi()
        .aggregate_calendar(by="month", reducer="median", labels=range(1, 13))
        .to_bands(dim="month", prefix="ndvi")
        .aggregate_spatial(plots, reducer="mean")
        .data
    )

Every step hands back a fresh :class:`DataCube`; the wrapped object is
never modified in place. Steps that only make sense on pixels raise
``TypeError`` when called on a vector cube.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Iterable, Mapping

import geopandas as gpd
import xarray as xr

from eo_recipes.io import catalog, collection, geojson, stac
from eo_recipes.io import raster as raster_io
from eo_recipes.ops import indices, masks
from eo_recipes.ops import raster as raster_ops
from eo_recipes.ops import vector as vector_ops
from eo_recipes.types import Cube

_XY = {"x_dim": "longitude", "y_dim": "latitude"}


def _raster_only(step: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(step)
    def checked(self: "DataCube", *args: Any, **kwargs: Any) -> Any:
        if not self.is_raster:
            raise TypeError(
                f"{step.__name__}() requires a raster cube, got {type(self.data).__name__}"
            )
        return step(self, *args, **kwargs)

    return checked


class DataCube:
    """A raster (:class:`xarray.DataArray`) or vector (:class:`geopandas.GeoDataFrame`) cube."""

    def __init__(self, data: Cube) -> None:
        self._data = data

    @property
    def data(self) -> Cube:
        return self._data

    @property
    def is_raster(self) -> bool:
        return isinstance(self._data, xr.DataArray)

    @property
    def is_vector(self) -> bool:
        return isinstance(self._data, gpd.GeoDataFrame)

    # -- sources --------------------------------------------------------

    @classmethod
    def load_collection(
        cls,
        collection_id: str,
        *,
        adapter: Any | None = None,
        spatial_extent: dict | None = None,
        temporal_extent: tuple[str, str] | None = None,
        bands: list[str] | None = None,
        properties: dict | None = None,
        **kwargs: Any,
    ) -> "DataCube":
        """Raw assets of a STAC API collection; see
        :func:`eo_recipes.io.collection.load_collection`."""
        return cls(
            collection.load_collection(
                collection_id,
                spatial_extent=spatial_extent,
                temporal_extent=temporal_extent,
                bands=bands,
                properties=properties,
                adapter=adapter,
                **kwargs,
            )
        )

    @classmethod
    def load_dataset(
        cls,
        dataset_id: str,
        *,
        spatial_extent: dict | None = None,
        temporal_extent: tuple[str, str] | None = None,
        bands: list[str] | None = None,
        mask_clouds: bool = True,
        adapter: Any | None = None,
        **kwargs: Any,
    ) -> "DataCube":
        """A catalog dataset, cloud-masked and in physical units.

        Parameters
        ----------
        dataset_id : str
            Entry of the dataset catalog, e.g. ``"landsat-8-9-c2-l2"``.
        bands : list of str, optional
            Catalog band aliases (``"red"``, ``"nir"``). Defaults to every
            non-quality band of the dataset.
        mask_clouds : bool
            Apply the dataset's quality mask and drop the quality bands.
        adapter : CollectionLoader, optional
            Loader to use instead of the dataset's provider.
        """
        return cls(
            catalog.load_dataset(
                dataset_id,
                spatial_extent=spatial_extent,
                temporal_extent=temporal_extent,
                bands=bands,
                mask_clouds=mask_clouds,
                adapter=adapter,
                **kwargs,
            )
        )

    @classmethod
    def load_stac(
        cls,
        source: str | dict,
        *,
        adapter: Any | None = None,
        assets: list[str] | None = None,
        spatial_extent: dict | None = None,
        temporal_extent: tuple[str, str] | None = None,
        **kwargs: Any,
    ) -> "DataCube":
        return cls(
            stac.load_stac(
                source,
                assets=assets,
                spatial_extent=spatial_extent,
                temporal_extent=temporal_extent,
                adapter=adapter,
                **kwargs,
            )
        )

    @classmethod
    def load_raster(cls, source: Any, **kwargs: Any) -> "DataCube":
        """A GeoTIFF, COG, VRT or netCDF file or URL."""
        return cls(raster_io.load_raster(source, **kwargs))

    @classmethod
    def load_geojson(cls, source: str | dict, *, crs: str | None = None, **kwargs: Any) -> "DataCube":
        return cls(geojson.load_geojson(source, crs=crs, **kwargs))

    # -- pixels ---------------------------------------------------------

    @_raster_only
    def mask(self, method: str, **kwargs: Any) -> "DataCube":
        """Null out cloudy or bad pixels with a named mask
        (``scl``, ``qa_bits``, ``score``, ``digit_qc``)."""
        return DataCube(masks.apply_mask(self._data, method, **kwargs))

    @_raster_only
    def scale_offset(self, *, scale: float, offset: float = 0.0, bands: Any = None) -> "DataCube":
        return DataCube(masks.scale_offset(self._data, scale=scale, offset=offset, bands=bands))

    @_raster_only
    def ndvi(
        self,
        *,
        nir: str = "nir",
        red: str = "red",
        target_band: str | None = None,
        bands_dim: str = "bands",
    ) -> "DataCube":
        return DataCube(
            indices.ndvi(self._data, nir=nir, red=red, target_band=target_band, bands_dim=bands_dim)
        )

    @_raster_only
    def index(self, name: str, **kwargs: Any) -> "DataCube":
        """A named index or unit conversion, e.g. ``"nbr"`` or ``"lst"``."""
        return DataCube(indices.compute_index(self._data, name, **kwargs))

    @_raster_only
    def apply(self, process: Callable[..., Any], *, context: Any = None) -> "DataCube":
        return DataCube(raster_ops.apply(self._data, process, context=context))

    # -- subsetting -----------------------------------------------------

    def filter_bbox(
        self,
        *,
        west: float,
        south: float,
        east: float,
        north: float,
        x_dim: str = "longitude",
        y_dim: str = "latitude",
    ) -> "DataCube":
        """Crop a raster, or keep the features lying entirely inside the box."""
        bounds = {"west": west, "south": south, "east": east, "north": north}
        if self.is_raster:
            return DataCube(raster_ops.filter_bbox(self._data, **bounds, x_dim=x_dim, y_dim=y_dim))
        return DataCube(vector_ops.filter_bbox(self._data, **bounds))

    @_raster_only
    def filter_temporal(self, *, extent: tuple[str, str], t_dim: str = "time") -> "DataCube":
        return DataCube(raster_ops.filter_temporal(self._data, extent=extent, t_dim=t_dim))

    @_raster_only
    def filter_calendar(
        self,
        *,
        months: Iterable[int] | None = None,
        years: Iterable[int] | None = None,
        t_dim: str = "time",
    ) -> "DataCube":
        return DataCube(raster_ops.filter_calendar(self._data, months=months, years=years, t_dim=t_dim))

    @_raster_only
    def clip(self, geometries: Any, *, x_dim: str = "longitude", y_dim: str = "latitude") -> "DataCube":
        """Null out pixels falling outside *geometries*."""
        return DataCube(raster_ops.clip(self._data, geometries, x_dim=x_dim, y_dim=y_dim))

    # -- time -----------------------------------------------------------

    @_raster_only
    def composite(self, *, reducer: str = "median", t_dim: str = "time") -> "DataCube":
        return DataCube(raster_ops.composite(self._data, reducer=reducer, t_dim=t_dim))

    @_raster_only
    def aggregate_temporal(
        self,
        *,
        period: str = "month",
        reducer: str = "mean",
        dimension: str | None = None,
        t_dim: str = "time",
    ) -> "DataCube":
        """One reduced image per calendar period.

        *period* is one of ``hour``, ``day``, ``week``, ``dekad``,
        ``month``, ``season``, ``tropical-season``, ``year``, ``decade``
        or ``decade-ad``. *dimension*, when given, names the time
        dimension and takes precedence over *t_dim*.
        """
        return DataCube(
            raster_ops.aggregate_temporal(
                self._data, period=period, reducer=reducer, t_dim=dimension or t_dim
            )
        )

    aggregate_temporal_period = aggregate_temporal

    @_raster_only
    def aggregate_calendar(
        self,
        *,
        by: str = "month",
        reducer: str = "median",
        labels: Iterable[int] | None = None,
        t_dim: str = "time",
    ) -> "DataCube":
        """Composites per month of year (``by="month"``) or per year."""
        return DataCube(
            raster_ops.aggregate_calendar(self._data, by=by, reducer=reducer, labels=labels, t_dim=t_dim)
        )

    @_raster_only
    def summarise_temporal(
        self,
        *,
        by: Iterable[str] = ("year", "month"),
        stats: Iterable[str] = ("mean",),
        t_dim: str = "time",
    ) -> "DataCube":
        return DataCube(raster_ops.summarise_temporal(self._data, by=by, stats=stats, t_dim=t_dim))

    # -- band labels ----------------------------------------------------

    @_raster_only
    def to_bands(self, *, dim: str, prefix: str, index_prefix: bool = False) -> "DataCube":
        """Fold *dim* into the band axis as ``"{prefix}_{label}"`` bands."""
        return DataCube(
            raster_ops.to_bands(self._data, dim=dim, prefix=prefix, index_prefix=index_prefix)
        )

    @_raster_only
    def rename_bands(self, mapping: Mapping[str, str] | Callable[[str], str]) -> "DataCube":
        return DataCube(raster_ops.rename_bands(self._data, mapping))

    # -- space ----------------------------------------------------------

    @_raster_only
    def aggregate_spatial(
        self, geometries: Any = None, *, reducer: str = "mean", **xy: str
    ) -> "DataCube":
        """Zonal statistics.

        With *geometries* the result is a vector cube holding one row per
        feature. Without, the whole extent is reduced and a raster is
        returned.
        """
        return DataCube(
            raster_ops.aggregate_spatial(self._data, geometries, reducer=reducer, **{**_XY, **xy})
        )

    @_raster_only
    def reduce_region(
        self,
        geometry: Any,
        *,
        reducers: str | Iterable[str] = ("mean",),
        **xy: str,
    ) -> dict[str, float]:
        """Reduce a single image over *geometry* to ``{"<band>_<reducer>": value}``.

        Lazy data is computed first.
        """
        data = self.compute().data
        return raster_ops.reduce_region(data, geometry, reducers=reducers, **{**_XY, **xy})

    @_raster_only
    def sample_points(self, points: gpd.GeoDataFrame, **kwargs: Any) -> "DataCube":
        return DataCube(raster_ops.sample_points(self._data, points, **kwargs))

    @_raster_only
    def reduce_neighborhood(
        self,
        *,
        reducer: str = "std",
        radius: int = 1,
        kernel: str = "circle",
        **xy: str,
    ) -> "DataCube":
        """Focal statistic over a ``circle`` or ``square`` of *radius* pixels."""
        return DataCube(
            raster_ops.reduce_neighborhood(
                self._data, reducer=reducer, radius=radius, kernel=kernel, **{**_XY, **xy}
            )
        )

    @_raster_only
    def resample_spatial(
        self,
        *,
        resolution: float | list[float] = 0,
        projection: int | str | None = None,
        method: str = "near",
        **xy: str,
    ) -> "DataCube":
        """Change pixel size and/or CRS.

        ``resolution=0`` keeps the pixel size and ``projection=None`` the
        CRS. *method* names a rasterio resampling (``near``,
        ``bilinear``, ``cubic``, ...).
        """
        return DataCube(
            raster_ops.resample_spatial(
                self._data, resolution=resolution, projection=projection, method=method, **{**_XY, **xy}
            )
        )

    # -- output ---------------------------------------------------------

    def compute(self) -> "DataCube":
        """Load dask-backed data into memory."""
        compute = getattr(self._data, "compute", None)
        return DataCube(compute()) if compute is not None else self

    def plot(self, *args: Any, **kwargs: Any) -> Any:
        return self._data.plot(*args, **kwargs)

    def __repr__(self) -> str:
        if self.is_raster:
            shape = ", ".join(f"{dim}: {size}" for dim, size in self._data.sizes.items())
            return f"<DataCube(Raster) {shape}>"
        return f"<DataCube(Vector) {type(self._data).__name__}>"
