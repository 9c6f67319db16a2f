"""Annual NDVI of treated versus control conservation sites, 2018-2024."""

import logging

from eo_recipes import DataCube
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import label_features, load_roi, spatial_extent
from eo_recipes.table import to_long

logging.basicConfig(level=logging.INFO)

# 40 polygons: the first 20 are treated sites, the rest controls
SITES_PATH = "data/conservation_sites.geojson"

sites = label_features(load_roi(SITES_PATH), "label", ["treated"] * 20 + ["control"] * 20)

annual = (
    DataCube.load_dataset(
        "sentinel-2-l2a",
        spatial_extent=spatial_extent(sites, buffer_m=200),
        temporal_extent=("2018-01-01", "2024-12-31"),
        bands=["red", "nir"],
        resolution=10,
    )
    .ndvi()
    .aggregate_calendar(by="year", reducer="median", labels=range(2018, 2025))
    .to_bands(dim="year", prefix="ndvi", index_prefix=True)
    .compute()
)

stats = annual.aggregate_spatial(sites, reducer="mean").data
df = to_long(stats, id_cols=["label"], prefix="ndvi_", values_to="ndvi", label_name="year")
summary = df.groupby(["label", "year"], as_index=False)["ndvi"].mean()
print(summary)

ax = plot_time_series(
    summary,
    x="year",
    y="ndvi",
    group="label",
    title="Mean annual NDVI: treated vs control",
    xlabel="Year",
    ylabel="NDVI",
)
ax.figure.savefig("conservation_sites.png", dpi=160)
