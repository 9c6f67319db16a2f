"""Elevation statistics of a hillside with several reducers at once."""

import logging

from eo_recipes import DataCube
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_bbox(35.27, -0.40, 35.31, -0.36, name="hillside")

dem = (
    DataCube.load_dataset("nasadem", spatial_extent=spatial_extent(roi))
    .composite(reducer="max")
    .compute()
)

print("mean only:", dem.reduce_region(roi, reducers="mean"))

stats = dem.reduce_region(
    roi,
    reducers=["mean", "std", "min", "max", "median", "mode", "variance"],
)
for key, value in stats.items():
    print(f"{key:>20}: {value:.2f}")
