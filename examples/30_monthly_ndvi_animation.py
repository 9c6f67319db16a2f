"""Animated GIF of monthly Sentinel-2 NDVI composites, 2020-2024."""

import logging
from pathlib import Path

import pystac

from eo_recipes import DataCube
from eo_recipes.io.collection import get_loader
from eo_recipes.plot import animate
from eo_recipes.roi import roi_from_point, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_point(35.28653, -0.46916, buffer_m=2000, name="kericho")
extent = spatial_extent(roi)

# Five years of scenes: search once, then re-render from the saved items
ITEMS_PATH = Path("kericho_s2_items.json")
if not ITEMS_PATH.exists():
    items = get_loader("earth-search").search(
        "sentinel-2-l2a",
        spatial_extent=extent,
        temporal_extent=("2020-01-01", "2024-12-31"),
        properties={"eo:cloud_cover": {"lt": 60}},
        max_items=2000,
    )
    pystac.ItemCollection(items).save_object(str(ITEMS_PATH))

monthly = (
    DataCube.load_stac(
        str(ITEMS_PATH),
        assets=["red", "nir", "scl"],
        spatial_extent=extent,
        resolution=10,
        epsg=32736,
    )
    .mask("scl")
    .scale_offset(scale=0.0001)
    .ndvi()
    .aggregate_temporal(period="month", reducer="median")
    .clip(roi)
    .compute()
)

animate(
    monthly.data,
    "monthly_ndvi.gif",
    fps=5,
    vmin=0.1,
    vmax=0.8,
    bounce=True,
    title="NDVI",
)
