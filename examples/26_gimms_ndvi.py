"""Annual mean PKU GIMMS NDVI of a county, 1982-2022."""

import logging

import pandas as pd

from eo_recipes.io.raster import load_raster_series
from eo_recipes.ops.masks import mask_digit_qc
from eo_recipes.ops.raster import aggregate_calendar, aggregate_spatial, to_bands
from eo_recipes.ops.vector import Filter, filter_features
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import load_roi
from eo_recipes.table import to_long

logging.basicConfig(level=logging.INFO)

# Half-monthly PKU GIMMS NDVI v1.2 tiles: band 1 NDVI x 1000, band 2 QC
GIMMS_DIR = "data/gimms"
GAUL_LEVEL1 = "data/gaul_level1.gpkg"

county = filter_features(load_roi(GAUL_LEVEL1), Filter.eq("ADM1_NAME", "Kericho"))

dates = pd.date_range("1982-01-01", "2022-12-31", freq="SMS")
sources = {d: f"{GIMMS_DIR}/PKU_GIMMS_NDVI_{d:%Y%m%d}.tif" for d in dates}

series = load_raster_series(sources, band_names=["b1", "b2"])
series = mask_digit_qc(series, value_band="b1", qc_band="b2")

annual = aggregate_calendar(series, by="year", reducer="mean") * 0.001
annual = to_bands(annual, dim="year", prefix="ndvi")

stats = aggregate_spatial(annual, county, reducer="mean")
df = to_long(stats, id_cols=["ADM1_NAME"], prefix="ndvi_", values_to="ndvi", label_name="year")
print(df.tail())

ax = plot_time_series(df, x="year", y="ndvi", title="Kericho annual GIMMS NDVI", ylabel="NDVI")
ax.figure.savefig("gimms_ndvi.png", dpi=160)
