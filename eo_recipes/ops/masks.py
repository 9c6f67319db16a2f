"""Cloud and quality masks – set low-quality pixels to NaN before compositing.

Every mask reads one quality band from the ``bands`` dimension, keeps the
pixels that pass the predicate and (by default) drops the quality band so
that it doesn't end up in composites or indices.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable

import numpy as np
import xarray as xr

from eo_recipes.ops._bands import band_labels, drop_bands, select_band
from eo_recipes.types import RasterCube

logger = logging.getLogger(__name__)

# Sentinel-2 scene classification: vegetation, bare soil, water,
# unclassified, snow.  Clouds (8-10), shadows (3), dark (2),
# saturated (1) and nodata (0) are masked.
SCL_CLEAR_CLASSES: tuple[int, ...] = (4, 5, 6, 7, 11)

# Landsat Collection 2 QA_PIXEL bits 0-4: fill, dilated cloud, cirrus,
# cloud, cloud shadow.
LANDSAT_QA_CLOUD_BITS: int = 0x1F


def _finish(
    data: RasterCube,
    keep: xr.DataArray,
    quality_bands: list[str],
    bands_dim: str,
) -> RasterCube:
    out = data.where(keep)
    if quality_bands:
        out = drop_bands(out, quality_bands, bands_dim)
    return out


def mask_by_score(
    data: RasterCube,
    *,
    score_band: str = "cs",
    threshold: float = 0.6,
    drop: bool = True,
    bands_dim: str = "bands",
) -> RasterCube:
    """Keep pixels whose quality score is strictly greater than *threshold*.

    Suits probability-of-clear bands such as Cloud Score+ (``cs`` /
    ``cs_cdf``), where 1 is a clear pixel and 0 an occluded one.
    """
    score = select_band(data, score_band, bands_dim)
    return _finish(data, score > threshold, [score_band] if drop else [], bands_dim)


def mask_scl(
    data: RasterCube,
    *,
    scl_band: str = "scl",
    keep: Iterable[int] = SCL_CLEAR_CLASSES,
    drop: bool = True,
    bands_dim: str = "bands",
) -> RasterCube:
    """Keep pixels whose Sentinel-2 scene classification is in *keep*."""
    scl = select_band(data, scl_band, bands_dim)
    return _finish(data, scl.isin(list(keep)), [scl_band] if drop else [], bands_dim)


def mask_qa_bits(
    data: RasterCube,
    *,
    qa_band: str = "qa_pixel",
    bits: int = LANDSAT_QA_CLOUD_BITS,
    saturation_band: str | None = None,
    drop: bool = True,
    bands_dim: str = "bands",
) -> RasterCube:
    """Keep pixels where none of the *bits* are set in the QA band.

    When *saturation_band* is given (Landsat ``qa_radsat``), pixels with
    any saturated band are masked too.
    """
    qa = select_band(data, qa_band, bands_dim)
    # NaN marks pixels outside the scene footprint
    keep = qa.notnull() & ((qa.fillna(0).astype(np.int64) & bits) == 0)
    quality = [qa_band]
    if saturation_band is not None:
        sat = select_band(data, saturation_band, bands_dim)
        keep = keep & (sat == 0)
        quality.append(saturation_band)
    return _finish(data, keep, quality if drop else [], bands_dim)


def mask_digit_qc(
    data: RasterCube,
    *,
    value_band: str = "b1",
    qc_band: str = "b2",
    good_digits: Iterable[int] = (0, 9),
    min_value: float | None = 100,
    drop: bool = True,
    bands_dim: str = "bands",
) -> RasterCube:
    """Decimal-digit QC mask of the PKU GIMMS consolidated NDVI product.

    The tens digit of the QC value carries the AVHRR flag and the units
    digit the MODIS flag; a pixel is kept when both digits are in
    *good_digits* and the value band is at least *min_value*.
    """
    qc = select_band(data, qc_band, bands_dim)
    good = list(good_digits)
    tens = np.floor(qc / 10) % 10
    units = qc % 10
    keep = tens.isin(good) & units.isin(good)
    if min_value is not None:
        keep = keep & (select_band(data, value_band, bands_dim) >= min_value)
    return _finish(data, keep, [qc_band] if drop else [], bands_dim)


_MASKS: dict[str, Callable[..., RasterCube]] = {
    "score": mask_by_score,
    "scl": mask_scl,
    "qa_bits": mask_qa_bits,
    "digit_qc": mask_digit_qc,
}


def mask_bands(method: str, **kwargs: Any) -> list[str]:
    """Return the quality bands a mask *method* reads with *kwargs*."""
    if method == "score":
        return [kwargs.get("score_band", "cs")]
    if method == "scl":
        return [kwargs.get("scl_band", "scl")]
    if method == "qa_bits":
        bands = [kwargs.get("qa_band", "qa_pixel")]
        if kwargs.get("saturation_band"):
            bands.append(kwargs["saturation_band"])
        return bands
    if method == "digit_qc":
        return [kwargs.get("qc_band", "b2")]
    raise ValueError(f"Unknown mask method {method!r}. Choose from {sorted(_MASKS)}")


def apply_mask(data: RasterCube, method: str, **kwargs: Any) -> RasterCube:
    """Dispatch to a mask function by name (``score``, ``scl``, ``qa_bits``, ``digit_qc``)."""
    fn = _MASKS.get(method)
    if fn is None:
        raise ValueError(f"Unknown mask method {method!r}. Choose from {sorted(_MASKS)}")
    logger.debug("applying %s mask with %s", method, kwargs)
    return fn(data, **kwargs)


def scale_offset(
    data: RasterCube,
    *,
    scale: float,
    offset: float = 0.0,
    bands: list[str] | str | None = None,
    bands_dim: str = "bands",
) -> RasterCube:
    """Return ``data * scale + offset`` for the selected bands.

    Parameters
    ----------
    bands : list[str] | str | None
        ``None`` scales every value.  A list selects band labels; a string
        is a regular expression that must match the full label
        (``"SR_B."`` selects ``SR_B1`` … ``SR_B7``).  Unselected bands are
        returned unchanged.
    """
    if bands is None or bands_dim not in data.dims:
        return data * scale + offset

    labels = band_labels(data, bands_dim)
    if isinstance(bands, str):
        pattern = re.compile(bands)
        targets = {b for b in labels if pattern.fullmatch(b)}
    else:
        targets = set(bands)

    coords = {bands_dim: data.coords[bands_dim].values}
    scales = xr.DataArray(
        [scale if b in targets else 1.0 for b in labels], dims=[bands_dim], coords=coords
    )
    offsets = xr.DataArray(
        [offset if b in targets else 0.0 for b in labels], dims=[bands_dim], coords=coords
    )
    logger.debug("scaling %s by %s%+g", sorted(targets), scale, offset)
    return data * scales + offsets
