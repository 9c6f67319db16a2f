"""Terrain suitability: high, gentle, east-to-south-facing slopes."""

import logging

from eo_recipes import DataCube
from eo_recipes.ops.raster import masked_area, self_mask
from eo_recipes.ops.terrain import suitability
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_bbox(35.05, 0.05, 35.25, 0.25, name="Nandi")

elevation = (
    DataCube.load_dataset("nasadem", spatial_extent=spatial_extent(roi), bands=["elevation"])
    .composite(reducer="max")
    .clip(roi)
    .compute()
    .data.squeeze("bands", drop=True)
)

suitable = suitability(elevation, min_elevation=2000, max_slope=30, max_aspect=180)
print(f"Suitable terrain: {masked_area(suitable, units='km2'):.1f} km²")

ax = elevation.where(self_mask(suitable).notnull()).plot(cmap="Greens")
ax.axes.set_title("Suitable terrain (elevation >= 2000 m, slope <= 30°, aspect <= 180°)")
ax.figure.savefig("suitability.png", dpi=160)
