"""Terrain texture: standard deviation of elevation in a 7-pixel circle."""

import logging

import matplotlib.pyplot as plt

from eo_recipes import DataCube
from eo_recipes.ops.raster import apply_kernel
from eo_recipes.ops.vector import Filter, filter_features
from eo_recipes.roi import load_roi, spatial_extent

logging.basicConfig(level=logging.INFO)

ADMIN2_PATH = "data/gaul_level2.gpkg"

# 4-neighbour Laplacian: positive in valleys, negative on ridges
LAPLACIAN = [[0, 1, 0], [1, -4, 1], [0, 1, 0]]

kericho = filter_features(load_roi(ADMIN2_PATH), Filter.eq("ADM2_NAME", "Kericho"))

dem = (
    DataCube.load_dataset("nasadem", spatial_extent=spatial_extent(kericho))
    .composite(reducer="max")
    .compute()
)
elevation = dem.clip(kericho)
texture = elevation.reduce_neighborhood(reducer="std", radius=7, kernel="circle")
curvature = DataCube(apply_kernel(dem.data, kernel=LAPLACIAN, border="replicate")).clip(kericho)

fig, axes = plt.subplots(1, 3, figsize=(18, 5))
elevation.data.squeeze().plot(ax=axes[0], vmin=1200, vmax=2800, cmap="terrain")
axes[0].set_title("Elevation (m)")
texture.data.squeeze().plot(ax=axes[1], vmin=1.6, vmax=120, cmap="YlOrBr")
axes[1].set_title("Terrain texture (SD of elevation)")
curvature.data.squeeze().plot(ax=axes[2], vmin=-20, vmax=20, cmap="RdBu")
axes[2].set_title("Curvature (Laplacian of elevation)")
fig.tight_layout()
fig.savefig("terrain_texture.png", dpi=160)
