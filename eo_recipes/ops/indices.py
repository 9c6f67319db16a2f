"""Spectral indices and unit conversions computed by per-pixel band arithmetic."""

from __future__ import annotations

from typing import Any, Callable

import numpy as np
import xarray as xr

from eo_recipes.exceptions import (
    BandExists,
    DimensionAmbiguous,
    IndexNotFound,
    NirBandAmbiguous,
    RedBandAmbiguous,
)
from eo_recipes.ops._bands import band_labels, require_bands, select_band
from eo_recipes.types import RasterCube

# ---------------------------------------------------------------------------
# Normalized differences
# ---------------------------------------------------------------------------


def normalized_difference(
    data: RasterCube,
    a: str,
    b: str,
    *,
    target_band: str | None = None,
    name: str = "nd",
    bands_dim: str = "bands",
) -> RasterCube:
    """Compute ``(a - b) / (a + b)`` from two bands.

    Pixels where ``a + b == 0`` become NaN and the result is clipped to
    ``[-1, 1]``.

    Parameters
    ----------
    target_band : str | None
        If given, the index is appended as a new band with this name and
        the bands dimension is kept.  Otherwise the bands dimension is
        dropped and the result is named *name*.

    Raises
    ------
    BandNotAvailable
        If *a* or *b* is missing.
    BandExists
        If *target_band* is already a band label.
    """
    require_bands(data, [a, b], bands_dim)
    if target_band is not None and target_band in band_labels(data, bands_dim):
        raise BandExists(f"A band with the name '{target_band}' already exists.")

    a_data = select_band(data, a, bands_dim).astype(np.float32)
    b_data = select_band(data, b, bands_dim).astype(np.float32)
    return _finish_nd(data, a_data, b_data, target_band, name, bands_dim)


def _finish_nd(
    data: RasterCube,
    a_data: xr.DataArray,
    b_data: xr.DataArray,
    target_band: str | None,
    name: str,
    bands_dim: str,
) -> RasterCube:
    denominator = a_data + b_data
    result = xr.where(denominator != 0, (a_data - b_data) / denominator, np.nan)
    result = result.clip(-1, 1).astype(np.float32)

    if target_band is not None:
        result = result.expand_dims({bands_dim: [target_band]})
        # coords="minimal" + join="override" so that per-band metadata
        # coordinates on `data` don't break the concat
        return xr.concat(
            [data, result],
            dim=bands_dim,
            coords="minimal",
            join="override",
        )
    result.name = name
    return result


def ndvi(
    data: RasterCube,
    *,
    nir: str = "nir",
    red: str = "red",
    target_band: str | None = None,
    bands_dim: str = "bands",
) -> RasterCube:
    """Compute the Normalized Difference Vegetation Index.

    Implements the ``ndvi`` openEO process: ``(nir - red) / (nir + red)``.
    Non-positive reflectances are treated as nodata.

    Raises
    ------
    DimensionAmbiguous
        If *bands_dim* is not present in the data cube.
    NirBandAmbiguous
        If the NIR band cannot be found.
    RedBandAmbiguous
        If the red band cannot be found.
    BandExists
        If *target_band* already exists as a label in the bands dimension.
    """
    if bands_dim not in data.dims:
        raise DimensionAmbiguous(
            f"Dimension of type 'bands' ('{bands_dim}') is not available. "
            f"Available dimensions: {list(data.dims)}"
        )

    labels = band_labels(data, bands_dim)

    if nir not in labels:
        raise NirBandAmbiguous(
            f"The NIR band '{nir}' can't be resolved. "
            f"Available bands: {labels}. "
            f"Please specify the NIR band name."
        )
    if red not in labels:
        raise RedBandAmbiguous(
            f"The red band '{red}' can't be resolved. "
            f"Available bands: {labels}. "
            f"Please specify the red band name."
        )
    if target_band is not None and target_band in labels:
        raise BandExists(f"A band with the name '{target_band}' already exists.")

    nir_data = data.sel({bands_dim: nir}, drop=True).astype(np.float32)
    red_data = data.sel({bands_dim: red}, drop=True).astype(np.float32)

    # Sentinel-2 L2A uses 0 as nodata
    nir_data = xr.where(nir_data > 0, nir_data, np.nan)
    red_data = xr.where(red_data > 0, red_data, np.nan)

    return _finish_nd(data, nir_data, red_data, target_band, "ndvi", bands_dim)


def ndwi(
    data: RasterCube,
    *,
    green: str = "green",
    nir: str = "nir",
    target_band: str | None = None,
    bands_dim: str = "bands",
) -> RasterCube:
    """McFeeters water index ``(green - nir) / (green + nir)``; water is > 0."""
    return normalized_difference(
        data, green, nir, target_band=target_band, name="ndwi", bands_dim=bands_dim
    )


def nbr(
    data: RasterCube,
    *,
    nir: str = "nir",
    swir: str = "swir22",
    target_band: str | None = None,
    bands_dim: str = "bands",
) -> RasterCube:
    """Normalized Burn Ratio ``(nir - swir) / (nir + swir)``."""
    return normalized_difference(
        data, nir, swir, target_band=target_band, name="nbr", bands_dim=bands_dim
    )


def dnbr(before: RasterCube, after: RasterCube) -> RasterCube:
    """Differenced NBR (``before - after``); burned surfaces are positive."""
    result = before - after
    result.name = "dnbr"
    return result


def burned_area(dnbr_data: RasterCube, *, threshold: float = 0.1) -> RasterCube:
    """Boolean burn mask where dNBR exceeds *threshold*."""
    result = dnbr_data > threshold
    result.name = "burned"
    return result


# ---------------------------------------------------------------------------
# Unit conversions of single-band products
# ---------------------------------------------------------------------------


def _scaled_band(
    data: RasterCube,
    band: str | None,
    scale: float,
    offset: float,
    name: str,
    bands_dim: str,
) -> RasterCube:
    if band is not None and bands_dim in data.dims:
        data = select_band(data, band, bands_dim)
    result = data * scale + offset
    result.name = name
    return result


def lst_celsius(
    data: RasterCube,
    *,
    band: str | None = "lwir11",
    scale: float = 0.00341802,
    offset: float = 149.0,
    bands_dim: str = "bands",
) -> RasterCube:
    """Land surface temperature in °C from Landsat C2 surface temperature.

    The defaults convert raw ``ST_B10`` digital numbers to Kelvin; pass
    ``scale=1, offset=0`` for a band that is already in Kelvin.
    """
    return _scaled_band(data, band, scale, offset - 273.15, "lst", bands_dim)


def wvp_cm(data: RasterCube, *, band: str | None = "wvp", bands_dim: str = "bands") -> RasterCube:
    """Sentinel-2 water vapour (``WVP``) to centimetres."""
    return _scaled_band(data, band, 0.001, 0.0, "wvp", bands_dim)


def vpd_kpa(data: RasterCube, *, band: str | None = "vpd", bands_dim: str = "bands") -> RasterCube:
    """TerraClimate vapour pressure deficit to kPa."""
    return _scaled_band(data, band, 0.01, 0.0, "vpd", bands_dim)


def soc_gkg(data: RasterCube, *, band: str | None = None, bands_dim: str = "bands") -> RasterCube:
    """OpenLandMap soil organic carbon (5 g/kg units) to g/kg."""
    return _scaled_band(data, band, 0.2, 0.0, "soc", bands_dim)


def ph_h2o(data: RasterCube, *, band: str | None = None, bands_dim: str = "bands") -> RasterCube:
    """iSDAsoil pH (×10) to pH units."""
    return _scaled_band(data, band, 0.1, 0.0, "ph", bands_dim)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

INDICES: dict[str, Callable[..., RasterCube]] = {
    "ndvi": ndvi,
    "ndwi": ndwi,
    "nbr": nbr,
    "lst": lst_celsius,
    "wvp": wvp_cm,
    "vpd": vpd_kpa,
    "soc": soc_gkg,
    "ph": ph_h2o,
}


def compute_index(data: RasterCube, name: str, **kwargs: Any) -> RasterCube:
    """Compute a registered index by *name*.

    Keyword arguments override band names (``nir="B08"``) or any other
    parameter of the index function.

    Raises
    ------
    IndexNotFound
        If *name* is not registered in :data:`INDICES`.
    """
    fn = INDICES.get(name.lower())
    if fn is None:
        raise IndexNotFound(
            f"Index {name!r} not found. Available: {sorted(INDICES)}"
        )
    return fn(data, **kwargs)
