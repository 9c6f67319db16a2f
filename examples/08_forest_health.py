"""Landsat 7 annual NDVI of Arabuko-Sokoke forest, 2000-2024."""

import logging

from eo_recipes import DataCube
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import roi_from_bbox, spatial_extent
from eo_recipes.table import to_long

logging.basicConfig(level=logging.INFO)

roi = roi_from_bbox(39.80, -3.45, 39.95, -3.25, name="Arabuko")

annual = (
    DataCube.load_dataset(
        "landsat-7-c2-l2",
        spatial_extent=spatial_extent(roi),
        temporal_extent=("2000-01-01", "2024-12-31"),
        bands=["red", "nir"],
        resolution=100,
    )
    .ndvi()
    .aggregate_calendar(by="year", reducer="mean")
    .to_bands(dim="year", prefix="ndvi")
    .compute()
)

stats = annual.aggregate_spatial(roi, reducer="median").data
df = to_long(stats, id_cols=["name"], prefix="ndvi_", values_to="ndvi", label_name="year")
print(df)

ax = plot_time_series(
    df,
    x="year",
    y="ndvi",
    group="name",
    title="Annual NDVI, Arabuko-Sokoke (Landsat 7)",
    xlabel="Year",
    ylabel="Median NDVI",
)
ax.figure.savefig("forest_health.png", dpi=160)
