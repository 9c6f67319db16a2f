"""Loading static STAC documents (no search API) into raster cubes.

Some recipes ship a STAC Item, ItemCollection or Catalog on disk or at a
URL rather than querying an API. **pystac** parses the document and
**stackstac** stacks the resulting items.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import dateutil.parser
import pystac
import stackstac
import xarray as xr

from eo_recipes.exceptions import EmptyCollection
from eo_recipes.io.collection import _bbox, _normalise_dims

logger = logging.getLogger(__name__)


@runtime_checkable
class StacLoader(Protocol):
    def load_stac(
        self,
        source: str | dict,
        *,
        assets: list[str] | None = None,
        spatial_extent: dict | None = None,
        temporal_extent: tuple[str, str] | None = None,
        **kwargs: Any,
    ) -> xr.DataArray:
        ...


class DefaultStacLoader:
    """Stack the items of a static STAC document.

    *source* is a path or URL pystac can read, or the parsed JSON of an
    Item, ItemCollection, Collection or Catalog. Collections and catalogs
    are walked recursively.
    """

    def load_stac(
        self,
        source: str | dict,
        *,
        assets: list[str] | None = None,
        spatial_extent: dict | None = None,
        temporal_extent: tuple[str, str] | None = None,
        **kwargs: Any,
    ) -> xr.DataArray:
        items = self.resolve_items(source)
        if temporal_extent is not None:
            items = _filter_items_by_time(items, temporal_extent)

        where = source if isinstance(source, str) else f"inline {source.get('type', 'STAC')}"
        logger.info("Stacking %d STAC item(s) from %s", len(items), where)
        if not items:
            raise EmptyCollection("No STAC items matched the given filters.")

        options: dict[str, Any] = {}
        if assets is not None:
            options["assets"] = assets
        if spatial_extent is not None:
            options["bounds_latlon"] = _bbox(spatial_extent)
        return _normalise_dims(stackstac.stack(items, **{**options, **kwargs}))

    @staticmethod
    def resolve_items(source: str | dict) -> list[pystac.Item]:
        """Every :class:`pystac.Item` reachable from *source*."""
        if isinstance(source, dict):
            kind = source.get("type", "")
            if kind == "Feature":
                return [pystac.Item.from_dict(source)]
            if kind == "FeatureCollection":
                return list(pystac.ItemCollection.from_dict(source))
            container_cls = pystac.Collection if kind == "Collection" else pystac.Catalog
            return list(container_cls.from_dict(source).get_items(recursive=True))

        if pystac.StacIO.default().read_json(source).get("type") == "FeatureCollection":
            # read_file only knows Items, Collections and Catalogs
            return list(pystac.ItemCollection.from_file(source))
        stac_obj = pystac.read_file(source)
        if isinstance(stac_obj, pystac.Item):
            return [stac_obj]
        if isinstance(stac_obj, pystac.Catalog):
            return list(stac_obj.get_items(recursive=True))
        raise ValueError(f"{source!r} is not a STAC Item, ItemCollection or Catalog")


def _filter_items_by_time(items: list, temporal_extent: tuple[str, str]) -> list:
    """Items dated within ``[start, end]``; undated items are dropped.

    Naive bounds are compared with the items' wall-clock time, ignoring
    their UTC offset.
    """
    start, end = (dateutil.parser.isoparse(t) for t in temporal_extent)
    naive = start.tzinfo is None
    return [
        item
        for item in items
        if item.datetime is not None
        and start <= (item.datetime.replace(tzinfo=None) if naive else item.datetime) <= end
    ]


_default = DefaultStacLoader()


def load_stac(
    source: str | dict,
    *,
    assets: list[str] | None = None,
    spatial_extent: dict | None = None,
    temporal_extent: tuple[str, str] | None = None,
    adapter: StacLoader | None = None,
    **kwargs: Any,
) -> xr.DataArray:
    """Stack a static STAC document with *adapter*, or :class:`DefaultStacLoader`."""
    return (adapter or _default).load_stac(
        source,
        assets=assets,
        spatial_extent=spatial_extent,
        temporal_extent=temporal_extent,
        **kwargs,
    )
