"""Dataset catalog – named, ready-to-use datasets on top of STAC collections.

Each dataset is a JSON file shipped under ``eo_recipes/resources/datasets``
that records which provider and collection to search, how band aliases map
to asset names, how raw digital numbers are scaled and which cloud mask
applies.  :func:`load_dataset` turns such an entry into a masked, scaled
cube whose bands carry the aliases::

    cube = load_dataset(
        "landsat-8-9-c2-l2",
        spatial_extent={"west": 36.8, "south": -1.3, "east": 36.9, "north": -1.2},
        temporal_extent=("2023-01-01", "2023-12-31"),
        bands=["red", "nir"],
    )
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import xarray as xr

from eo_recipes.exceptions import BandNotAvailable, DatasetNotFound
from eo_recipes.io.collection import CollectionLoader, get_loader
from eo_recipes.ops._bands import drop_bands
from eo_recipes.ops.masks import apply_mask, mask_bands, scale_offset

logger = logging.getLogger(__name__)


@dataclass
class DatasetSpec:
    """One dataset catalog entry.

    Attributes
    ----------
    bands : dict[str, str]
        Alias → asset name (``{"nir": "B08"}``).  Cubes returned by
        :func:`load_dataset` are labelled with the aliases.
    scaling : list[dict]
        ``{"bands": [...] | None, "scale": float, "offset": float}`` groups
        applied after loading; ``bands`` lists aliases, ``None`` means all.
    cloud_mask : dict | None
        ``{"method": "scl", "kwargs": {...}}`` passed to
        :func:`~eo_recipes.ops.masks.apply_mask`.  Mask band names in
        ``kwargs`` are aliases too.
    classes : dict[str, dict]
        Class value → ``{"name": ..., "color": ...}`` for categorical maps.
    """

    id: str
    collection: str
    provider: str = "earth-search"
    description: str = ""
    bands: dict[str, str] = field(default_factory=dict)
    scaling: list[dict[str, Any]] = field(default_factory=list)
    resolution: float | None = None
    cloud_mask: dict[str, Any] | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    classes: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DatasetSpec:
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in d.items() if k in known})

    def asset(self, alias: str) -> str:
        """Asset name for a band alias (unknown aliases are passed through)."""
        return self.bands.get(alias, alias)

    def mask_aliases(self) -> list[str]:
        """Band aliases read by the cloud mask (empty without a mask)."""
        if not self.cloud_mask:
            return []
        return mask_bands(self.cloud_mask["method"], **self.cloud_mask.get("kwargs", {}))

    def class_names(self) -> dict[int, str]:
        return {int(k): v.get("name", str(k)) for k, v in self.classes.items()}


class DatasetRegistry:
    """Registry of the dataset catalog entries.

    Usage::

        registry = DatasetRegistry()
        registry.list_datasets()
        spec = registry.get_dataset("sentinel-2-l2a")
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        self._specs: dict[str, DatasetSpec] = {}
        if directory is None:
            self._load()
        else:
            self._load_dir(Path(directory))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_datasets(self) -> list[str]:
        """Return sorted list of dataset IDs."""
        return sorted(self._specs.keys())

    def get_dataset(self, dataset_id: str) -> DatasetSpec:
        """Return the entry for *dataset_id*.

        Raises
        ------
        DatasetNotFound
            If the dataset ID is not in the catalog.
        """
        try:
            return self._specs[dataset_id]
        except KeyError:
            raise DatasetNotFound(
                f"Dataset {dataset_id!r} not found. Available: {self.list_datasets()}"
            ) from None

    def search(self, text: str) -> list[DatasetSpec]:
        """Datasets whose id, collection or description contains *text* (case-insensitive)."""
        text_lower = text.lower()
        return [
            spec
            for spec in self._specs.values()
            if text_lower in f"{spec.id} {spec.collection} {spec.description}".lower()
        ]

    def register(self, spec: DatasetSpec) -> None:
        """Add or replace a catalog entry at runtime."""
        self._specs[spec.id] = spec

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _add(self, text: str, fallback_id: str) -> None:
        data = json.loads(text)
        data.setdefault("id", fallback_id)
        self._specs[data["id"]] = DatasetSpec.from_dict(data)

    def _load(self) -> None:
        """Load all JSON files from the packaged resources directory."""
        try:
            spec_dir = resources.files("eo_recipes") / "resources" / "datasets"
            for entry in spec_dir.iterdir():
                if entry.name.endswith(".json"):
                    self._add(entry.read_text(encoding="utf-8"), entry.name.removesuffix(".json"))
        except (TypeError, AttributeError, ModuleNotFoundError, FileNotFoundError):
            # Fallback – resolve via __file__
            here = Path(__file__).resolve().parent.parent
            self._load_dir(here / "resources" / "datasets")

    def _load_dir(self, path: Path) -> None:
        if path.is_dir():
            for fp in sorted(path.glob("*.json")):
                self._add(fp.read_text(encoding="utf-8"), fp.stem)


_registry: DatasetRegistry | None = None


def default_registry() -> DatasetRegistry:
    """The registry of packaged datasets (loaded on first use)."""
    global _registry
    if _registry is None:
        _registry = DatasetRegistry()
    return _registry


def load_dataset(
    dataset_id: str,
    *,
    spatial_extent: dict | None = None,
    temporal_extent: tuple[str, str] | None = None,
    bands: list[str] | None = None,
    properties: dict | None = None,
    mask_clouds: bool = True,
    adapter: CollectionLoader | None = None,
    registry: DatasetRegistry | None = None,
    **kwargs: Any,
) -> xr.DataArray:
    """Load a catalog dataset as a masked, scaled raster cube.

    Parameters
    ----------
    bands : list[str] | None
        Band aliases to return.  ``None`` returns every alias of the entry
        except the quality bands read by its cloud mask.
    properties : dict | None
        STAC query merged over the entry's default ``properties``.
    mask_clouds : bool
        Apply the entry's cloud mask.  Mask-only bands are dropped from the
        result either way.
    adapter : CollectionLoader | None
        Loader to use instead of the one registered for the entry's provider.
    **kwargs
        Forwarded to the loader (``resolution``, ``max_items``, ``chunksize``…).
        Without ``resolution`` stackstac uses the items' native grid; the
        entry's ``resolution`` only documents the native pixel size in metres.

    Raises
    ------
    DatasetNotFound
        Unknown *dataset_id*.
    BandNotAvailable
        A requested alias is not defined for the dataset.
    """
    spec = (registry or default_registry()).get_dataset(dataset_id)
    loader = adapter or get_loader(spec.provider)

    mask_aliases = spec.mask_aliases()
    if bands is not None:
        wanted = list(bands)
    else:
        wanted = [b for b in spec.bands if b not in mask_aliases]
    unknown = [b for b in wanted if spec.bands and b not in spec.bands]
    if unknown:
        raise BandNotAvailable(
            f"Band(s) {unknown} not defined for dataset {dataset_id!r}. "
            f"Available bands: {sorted(spec.bands)}"
        )

    extra = [b for b in mask_aliases if b not in wanted]
    load_aliases = wanted + extra

    query = {**spec.properties, **(properties or {})}
    kwargs.setdefault("rescale", False)

    logger.info(
        "dataset %s -> %s/%s bands=%s", dataset_id, spec.provider, spec.collection, load_aliases
    )
    cube = loader.load_collection(
        spec.collection,
        spatial_extent=spatial_extent,
        temporal_extent=temporal_extent,
        bands=[spec.asset(b) for b in load_aliases],
        properties=query or None,
        **kwargs,
    )

    cube = cube.assign_coords(bands=load_aliases)
    for group in spec.scaling:
        targets = group.get("bands")
        if targets is not None:
            targets = [b for b in targets if b in load_aliases]
            if not targets:
                continue
        cube = scale_offset(
            cube, scale=group["scale"], offset=group.get("offset", 0.0), bands=targets
        )

    if spec.cloud_mask and mask_clouds:
        cube = apply_mask(
            cube, spec.cloud_mask["method"], drop=False, **spec.cloud_mask.get("kwargs", {})
        )
    if extra:
        cube = drop_bands(cube, extra)
    return cube
