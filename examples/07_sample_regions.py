"""Sample a cloud-free Sentinel-2 composite at point locations."""

import logging

import geopandas as gpd
from shapely.geometry import Point

from eo_recipes import DataCube
from eo_recipes.roi import spatial_extent
from eo_recipes.table import drop_geometry

logging.basicConfig(level=logging.INFO)

BANDS = ["blue", "green", "red", "rededge1", "rededge2", "rededge3", "nir", "nir08", "swir16", "swir22"]

points = gpd.GeoDataFrame(
    {"id": list("abcde")},
    geometry=[
        Point(35.281, -0.468),
        Point(35.286, -0.471),
        Point(35.290, -0.466),
        Point(35.295, -0.474),
        Point(35.299, -0.469),
    ],
    crs="EPSG:4326",
)

composite = (
    DataCube.load_dataset(
        "sentinel-2-l2a",
        spatial_extent=spatial_extent(points, buffer_m=2000),
        temporal_extent=("2024-01-01", "2024-12-31"),
        bands=BANDS,
    )
    .composite(reducer="median")
    .compute()
)

samples = composite.sample_points(points).data
print(drop_geometry(samples))
