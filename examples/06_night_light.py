"""Annual mean VIIRS night-time radiance in two agricultural zones."""

import logging

import geopandas as gpd
import numpy as np
from shapely.geometry import box

from eo_recipes import DataCube
from eo_recipes.io.raster import load_raster_series
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import label_features
from eo_recipes.table import to_long

logging.basicConfig(level=logging.INFO)

# Monthly VIIRS DNB (vcmslcfg avg_rad) tiles downloaded from the EOG site
VIIRS_MONTHLY = "data/viirs/{year}{month:02d}_avg_rad.tif"
YEARS = range(2013, 2025)

zones = label_features(
    gpd.GeoDataFrame(
        geometry=[box(35.20, -0.45, 35.40, -0.30), box(34.70, -0.15, 34.90, 0.00)],
        crs="EPSG:4326",
    ),
    "zone",
    ["Tea zone", "Sugarcane zone"],
)

sources = {
    f"{year}-{month:02d}-01": VIIRS_MONTHLY.format(year=year, month=month)
    for year in YEARS
    for month in range(1, 13)
}
night_light = DataCube(load_raster_series(sources, band_names=["avg_rad"], chunks={}))
# Stray-light correction leaves small negative radiances over dark land
night_light = night_light.apply(lambda rad: np.where(rad < 0, 0.0, rad))

stats = (
    night_light.aggregate_calendar(by="year", reducer="mean")
    .to_bands(dim="year", prefix="light")
    .compute()
    .aggregate_spatial(zones, reducer="mean")
    .data
)

df = to_long(stats, id_cols=["zone"], prefix="light_", values_to="light", label_name="year")
print(df)

ax = plot_time_series(
    df,
    x="year",
    y="light",
    group="zone",
    title="Annual night-time light intensity (VIIRS)",
    xlabel="Year",
    ylabel="Mean radiance (nW/sr/cm²)",
)
ax.figure.savefig("night_light.png", dpi=160)
