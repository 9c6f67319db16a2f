"""Dominant land-cover class of a catchment for every year since 2017."""

import logging

import pandas as pd

from eo_recipes import DataCube
from eo_recipes.io.catalog import default_registry
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_bbox(35.25, -0.42, 35.32, -0.35, name="catchment")
classes = default_registry().get_dataset("io-lulc-annual-v02").class_names()

annual = (
    DataCube.load_dataset(
        "io-lulc-annual-v02",
        spatial_extent=spatial_extent(roi),
        temporal_extent=("2017-01-01", "2023-12-31"),
        resolution=10,
    )
    .aggregate_calendar(by="year", reducer="max")
    .to_bands(dim="year", prefix="lc")
    .compute()
)

modes = annual.reduce_region(roi, reducers="mode")
df = pd.DataFrame({"band": list(modes), "class": [int(v) for v in modes.values()]})
df["name"] = df["class"].map(classes)
print(df)
