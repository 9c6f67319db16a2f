"""Band lookup helpers shared by the ops modules."""

from __future__ import annotations

from typing import Iterable

from eo_recipes.exceptions import BandNotAvailable, DimensionAmbiguous
from eo_recipes.types import RasterCube


def band_labels(data: RasterCube, bands_dim: str = "bands") -> list[str]:
    """Return the band labels of *data* as plain strings."""
    if bands_dim not in data.dims:
        raise DimensionAmbiguous(
            f"Dimension of type 'bands' ('{bands_dim}') is not available. "
            f"Available dimensions: {list(data.dims)}"
        )
    return [str(b) for b in data.coords[bands_dim].values]


def require_bands(
    data: RasterCube, bands: Iterable[str], bands_dim: str = "bands"
) -> None:
    """Raise :class:`BandNotAvailable` unless every band in *bands* exists."""
    labels = band_labels(data, bands_dim)
    missing = [b for b in bands if b not in labels]
    if missing:
        raise BandNotAvailable(
            f"Band(s) {missing} not found. Available bands: {labels}"
        )


def select_band(data: RasterCube, band: str, bands_dim: str = "bands") -> RasterCube:
    """Select one band, dropping the bands dimension."""
    require_bands(data, [band], bands_dim)
    return data.sel({bands_dim: band}, drop=True)


def drop_bands(data: RasterCube, bands: Iterable[str], bands_dim: str = "bands") -> RasterCube:
    labels = band_labels(data, bands_dim)
    keep = [b for b in labels if b not in set(bands)]
    return data.sel({bands_dim: keep})
