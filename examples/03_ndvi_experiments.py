"""Monthly median NDVI of four experimental plots."""

import logging

import geopandas as gpd
from shapely.geometry import box

from eo_recipes import DataCube
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import label_features, spatial_extent
from eo_recipes.table import month_abbr, to_long

logging.basicConfig(level=logging.INFO)

START, END = "2024-01-01", "2024-12-31"

plots = label_features(
    gpd.GeoDataFrame(
        geometry=[
            box(35.2850, -0.4700, 35.2870, -0.4680),
            box(35.2880, -0.4700, 35.2900, -0.4680),
            box(35.2850, -0.4670, 35.2870, -0.4650),
            box(35.2880, -0.4670, 35.2900, -0.4650),
        ],
        crs="EPSG:4326",
    ),
    "plot_id",
    ["A", "B", "C", "D"],
)

wide = (
    DataCube.load_dataset(
        "sentinel-2-l2a",
        spatial_extent=spatial_extent(plots, buffer_m=100),
        temporal_extent=(START, END),
        bands=["red", "nir"],
    )
    .ndvi()
    .aggregate_calendar(by="month", reducer="median", labels=range(1, 13))
    .to_bands(dim="month", prefix="ndvi")
    .compute()
    .aggregate_spatial(plots, reducer="mean")
    .data
)

df = to_long(
    wide,
    id_cols=["plot_id"],
    prefix="ndvi_",
    names_to="band",
    values_to="ndvi",
    label_name="month",
)
df = month_abbr(df)
print(df)

ax = plot_time_series(
    df,
    x="month",
    y="ndvi",
    group="plot_id",
    title="Monthly NDVI per plot (2024)",
    xlabel="Month",
    ylabel="NDVI",
)
ax.figure.savefig("ndvi_experiments.png", dpi=160)
