"""Searching STAC APIs and stacking the matches into raster cubes.

Recipes pick a provider by name:

``earth-search``
    Element 84's `Earth Search <https://earth-search.aws.element84.com/v1>`_
    on AWS, the default. Assets use common band names (``red``, ``nir``).
``planetary-computer``
    The Microsoft `Planetary Computer <https://planetarycomputer.microsoft.com/>`_.
    Its blob-storage assets are signed with SAS tokens by the
    **planetary-computer** package before they are read.

**pystac-client** runs the item search and **stackstac** lazily stacks the
items into a dask-backed ``(time, bands, latitude, longitude)`` array.
"""

from __future__ import annotations

import logging
from abc import ABC
from typing import Any, Protocol, runtime_checkable

import planetary_computer
import pystac_client
import stackstac
import xarray as xr
from pyproj import CRS, Transformer

from eo_recipes.exceptions import EmptyCollection

logger = logging.getLogger(__name__)

_WGS84 = 4326

#: stackstac emits ``band``/``y``/``x``; recipes work with these names.
_DIM_NAMES = {"band": "bands", "y": "latitude", "x": "longitude"}


@runtime_checkable
class CollectionLoader(Protocol):
    """Anything that can turn a collection id and filters into a raster array."""

    def load_collection(
        self,
        collection_id: str,
        *,
        spatial_extent: dict | None = None,
        temporal_extent: tuple[str, str] | None = None,
        bands: list[str] | None = None,
        properties: dict | None = None,
        **kwargs: Any,
    ) -> xr.DataArray:
        ...


class BaseCollectionLoader(ABC):
    """STAC search and stacking shared by every provider.

    A provider subclass sets ``DEFAULT_API_URL``. Providers whose assets
    need signing override ``_open_catalog``.

    Parameters
    ----------
    api_url : str, optional
        Endpoint to query instead of ``DEFAULT_API_URL``.
    max_items : int
        Default cap on the number of items a search may return.
    """

    DEFAULT_API_URL: str = ""

    def __init__(self, api_url: str | None = None, *, max_items: int = 500) -> None:
        if not type(self).DEFAULT_API_URL:
            raise ValueError(f"{type(self).__name__} has no DEFAULT_API_URL set")
        self.api_url = api_url or self.DEFAULT_API_URL
        self.max_items = max_items

    def _open_catalog(self) -> pystac_client.Client:
        return pystac_client.Client.open(self.api_url)

    def search(
        self,
        collection_id: str,
        *,
        spatial_extent: dict | None = None,
        temporal_extent: tuple[str, str] | None = None,
        properties: dict | None = None,
        max_items: int | None = None,
    ) -> list:
        """Run an item search and return the matching items.

        A projected ``spatial_extent`` is converted to a WGS 84 bbox
        first, since STAC APIs only accept geographic bounding boxes.

        Raises
        ------
        EmptyCollection
            When the search returns no items.
        """
        query: dict[str, Any] = {
            "collections": [collection_id],
            "max_items": max_items or self.max_items,
        }
        if spatial_extent is not None:
            query["bbox"] = _reproject_bbox(
                _bbox(spatial_extent), _extent_crs(spatial_extent), _WGS84
            )
        if temporal_extent is not None:
            start, end = temporal_extent
            query["datetime"] = f"{start}/{end}"
        if properties:
            query["query"] = properties

        items = list(self._open_catalog().search(**query).item_collection())
        logger.info(
            "Found %d %s item(s) at %s (%s)",
            len(items),
            collection_id,
            self.api_url,
            query.get("datetime", "no date filter"),
        )
        if not items:
            raise EmptyCollection(
                f"No items found for collection {collection_id!r} with the given filters."
            )
        return items

    def load_collection(
        self,
        collection_id: str,
        *,
        spatial_extent: dict | None = None,
        temporal_extent: tuple[str, str] | None = None,
        bands: list[str] | None = None,
        properties: dict | None = None,
        **kwargs: Any,
    ) -> xr.DataArray:
        """Search for items and stack them into a lazy raster array.

        Parameters
        ----------
        collection_id : str
            Collection on the provider, e.g. ``"sentinel-2-l2a"``.
        spatial_extent : dict, optional
            ``{west, south, east, north}``. Without a ``crs`` entry the
            numbers are read as longitude and latitude.
        temporal_extent : tuple of str, optional
            Inclusive ``(start, end)`` dates.
        bands : list of str, optional
            Asset keys to stack. All assets are stacked when omitted.
        properties : dict, optional
            STAC query on item properties, e.g.
            ``{"eo:cloud_cover": {"lt": 50}}``.
        **kwargs
            ``max_items`` limits the search. The rest is handed to
            :func:`stackstac.stack` (``resolution``, ``rescale``, ...).

        Returns
        -------
        xarray.DataArray
            Dims ``(time, bands, latitude, longitude)``.
        """
        items = self.search(
            collection_id,
            spatial_extent=spatial_extent,
            temporal_extent=temporal_extent,
            properties=properties,
            max_items=kwargs.pop("max_items", None),
        )
        options = _stack_options(items, spatial_extent)
        if bands is not None:
            options["assets"] = bands
        options.update(kwargs)
        return _normalise_dims(stackstac.stack(items, **options))


class AWSCollectionLoader(BaseCollectionLoader):
    """Earth Search on AWS."""

    DEFAULT_API_URL = "https://earth-search.aws.element84.com/v1"


class MicrosoftPlanetaryComputerLoader(BaseCollectionLoader):
    """Microsoft Planetary Computer.

    Every item coming back from a search passes through
    ``planetary_computer.sign_inplace`` so its asset hrefs carry a SAS
    token (https://planetarycomputer.microsoft.com/docs/quickstarts/reading-stac/).
    """

    DEFAULT_API_URL = "https://planetarycomputer.microsoft.com/api/stac/v1"

    def _open_catalog(self) -> pystac_client.Client:
        return pystac_client.Client.open(self.api_url, modifier=planetary_computer.sign_inplace)


PROVIDERS: dict[str, type[BaseCollectionLoader]] = {
    "earth-search": AWSCollectionLoader,
    "planetary-computer": MicrosoftPlanetaryComputerLoader,
}


def get_loader(provider: str, **kwargs: Any) -> BaseCollectionLoader:
    """Build the loader for a provider name listed in :data:`PROVIDERS`."""
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown provider {provider!r}; known: {', '.join(sorted(PROVIDERS))}")
    return PROVIDERS[provider](**kwargs)


_default = AWSCollectionLoader()


def load_collection(
    collection_id: str,
    *,
    spatial_extent: dict | None = None,
    temporal_extent: tuple[str, str] | None = None,
    bands: list[str] | None = None,
    properties: dict | None = None,
    adapter: CollectionLoader | None = None,
    **kwargs: Any,
) -> xr.DataArray:
    """Load *collection_id* with *adapter*, or from Earth Search by default.

    Arguments are those of :meth:`BaseCollectionLoader.load_collection`.
    """
    return (adapter or _default).load_collection(
        collection_id,
        spatial_extent=spatial_extent,
        temporal_extent=temporal_extent,
        bands=bands,
        properties=properties,
        **kwargs,
    )


def _bbox(spatial_extent: dict) -> list[float]:
    return [spatial_extent[k] for k in ("west", "south", "east", "north")]


def _extent_crs(spatial_extent: dict) -> int | str:
    return spatial_extent.get("crs", _WGS84)


def _stack_options(items: list, spatial_extent: dict | None) -> dict[str, Any]:
    """Output projection and bounds for :func:`stackstac.stack`.

    An integer ``crs`` on the extent fixes the output EPSG. Otherwise the
    EPSG the items share is used.
    """
    crs = _WGS84 if spatial_extent is None else _extent_crs(spatial_extent)
    explicit = spatial_extent is not None and isinstance(spatial_extent.get("crs"), int)
    options: dict[str, Any] = {"epsg": crs if explicit else _detect_common_epsg(items)}
    if spatial_extent is not None:
        key = "bounds_latlon" if _is_epsg_4326(crs) else "bounds"
        options[key] = _bbox(spatial_extent)
    return options


def _normalise_dims(da: xr.DataArray) -> xr.DataArray:
    """Rename stackstac's dimensions to ``bands``/``latitude``/``longitude``."""
    present = {old: new for old, new in _DIM_NAMES.items() if old in da.dims}
    return da.rename(present) if present else da


def _is_epsg_4326(crs: int | str) -> bool:
    """True when *crs* (EPSG int or user string) is WGS 84."""
    if isinstance(crs, int):
        return crs == _WGS84
    if isinstance(crs, str):
        return crs.strip().upper() in ("4326", "EPSG:4326")
    return False


def _reproject_bbox(bbox: list[float], src_crs: int | str, dst_crs: int | str) -> list[float]:
    """Reproject ``[west, south, east, north]`` and return the enclosing box."""
    if CRS.from_user_input(src_crs) == CRS.from_user_input(dst_crs):
        return list(bbox)
    transformer = Transformer.from_crs(src_crs, dst_crs, always_xy=True)
    west, south, east, north = bbox
    xs, ys = transformer.transform([west, east, west, east], [south, south, north, north])
    return [min(xs), min(ys), max(xs), max(ys)]


def _item_epsg(item: Any) -> set[int]:
    props = getattr(item, "properties", None) or {}
    found: set[int] = set()
    code = props.get("proj:code") or ""
    authority, _, number = code.partition(":")
    if authority.upper() == "EPSG" and number.isdigit():
        found.add(int(number))
    if isinstance(props.get("proj:epsg"), int):
        found.add(props["proj:epsg"])
    return found


def _detect_common_epsg(items: list) -> int:
    """EPSG shared by all *items* (``proj:code`` or ``proj:epsg``), else 4326.

    Scenes spanning several UTM zones, or lacking projection metadata,
    fall back to WGS 84.
    """
    codes = set().union(*(_item_epsg(item) for item in items)) if items else set()
    return codes.pop() if len(codes) == 1 else _WGS84
