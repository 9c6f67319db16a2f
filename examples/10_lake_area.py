"""Open-water area of Lake Naivasha from the median NDWI."""

import logging

from eo_recipes import DataCube
from eo_recipes.ops.raster import masked_area, self_mask
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_bbox(36.25, -0.85, 36.45, -0.70, name="naivasha")

ndwi = (
    DataCube.load_dataset(
        "sentinel-2-l2a",
        spatial_extent=spatial_extent(roi),
        temporal_extent=("2024-01-01", "2024-12-31"),
        bands=["green", "nir"],
        resolution=100,
    )
    .index("ndwi")
    .composite(reducer="median")
    .compute()
)

water = self_mask(ndwi.data > 0)
area_km2 = masked_area(water, geometry=roi, units="km2")
print(f"Open water inside the ROI: {area_km2:.1f} km²")

ax = water.plot(cmap="Blues", add_colorbar=False)
ax.axes.set_title("Water mask (NDWI > 0)")
ax.figure.savefig("lake_area.png", dpi=160)
