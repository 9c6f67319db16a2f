"""October NDVI of four tea experiment plots, ranked."""

import logging

import geopandas as gpd
from shapely.geometry import box

from eo_recipes import DataCube
from eo_recipes.ops.vector import vector_buffer, vector_reproject
from eo_recipes.roi import label_features, spatial_extent
from eo_recipes.table import drop_geometry, rank

logging.basicConfig(level=logging.INFO)

plots = label_features(
    gpd.GeoDataFrame(
        geometry=[
            box(35.3401, -0.3702, 35.3409, -0.3694),
            box(35.3411, -0.3702, 35.3419, -0.3694),
            box(35.3401, -0.3692, 35.3409, -0.3684),
            box(35.3411, -0.3692, 35.3419, -0.3684),
        ],
        crs="EPSG:4326",
    ),
    "plot",
    ["Control", "Fertiliser", "Irrigated", "Fertiliser+Irrigated"],
)

# Drop a 10 m margin so pixels mixing neighbouring plots are left out
utm = plots.estimate_utm_crs().to_epsg()
cores = vector_buffer(vector_reproject(plots, projection=utm), distance=-10.0)

october = (
    DataCube.load_dataset(
        "sentinel-2-l2a",
        spatial_extent=spatial_extent(plots, buffer_m=50),
        temporal_extent=("2024-10-01", "2024-10-31"),
        bands=["red", "nir"],
        resolution=10,
    )
    .ndvi()
    .composite(reducer="mean")
    .compute()
)

stats = drop_geometry(october.aggregate_spatial(cores, reducer="mean").data)
print(rank(stats.rename(columns={"mean": "ndvi"}), "ndvi")[["rank", "plot", "ndvi"]])
