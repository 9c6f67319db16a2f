"""Annual Landsat 7 NDVI of two tea fields, 2000-2023."""

import logging

import geopandas as gpd
from shapely.geometry import box

from eo_recipes import DataCube
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import label_features, spatial_extent
from eo_recipes.table import to_long

logging.basicConfig(level=logging.INFO)

fields = label_features(
    gpd.GeoDataFrame(
        geometry=[box(35.3400, -0.3700, 35.3430, -0.3670), box(35.3440, -0.3700, 35.3470, -0.3670)],
        crs="EPSG:4326",
    ),
    "name",
    ["Field_1", "Field_2"],
)

annual = (
    DataCube.load_dataset(
        "landsat-7-c2-l2",
        spatial_extent=spatial_extent(fields, buffer_m=100),
        temporal_extent=("2000-01-01", "2023-12-31"),
        bands=["red", "nir"],
        resolution=30,
    )
    .ndvi()
    .aggregate_calendar(by="year", reducer="mean", labels=range(2000, 2024))
    .to_bands(dim="year", prefix="ndvi")
    .compute()
)

stats = annual.aggregate_spatial(fields, reducer="median").data
df = to_long(stats, id_cols=["name"], prefix="ndvi_", values_to="ndvi", label_name="year")
print(df)

ax = plot_time_series(
    df,
    x="year",
    y="ndvi",
    group="name",
    title="Tea field health (Landsat 7)",
    xlabel="Year",
    ylabel="Median NDVI",
)
ax.figure.savefig("tea_field_health.png", dpi=160)
