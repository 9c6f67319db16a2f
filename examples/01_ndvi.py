"""NDVI median composites of the same fields seven years apart."""

import logging

import matplotlib.pyplot as plt

from eo_recipes import DataCube
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

# Tea estates east of Kericho, Kenya
roi = roi_from_bbox(35.30, -0.40, 35.34, -0.36, name="kericho")
extent = spatial_extent(roi)


def ndvi_composite(start: str, end: str) -> DataCube:
    return (
        DataCube.load_dataset(
            "sentinel-2-l2a",
            spatial_extent=extent,
            temporal_extent=(start, end),
            bands=["red", "nir"],
        )
        .ndvi()
        .composite(reducer="median")
        .clip(roi)
    )


ndvi_2018 = ndvi_composite("2018-01-01", "2018-12-31").compute()
ndvi_2024 = ndvi_composite("2024-01-01", "2024-12-31").compute()

fig, axes = plt.subplots(1, 2, figsize=(12, 5))
for ax, (label, cube) in zip(axes, [("2018", ndvi_2018), ("2024", ndvi_2024)]):
    cube.plot(ax=ax, vmin=0.1, vmax=0.8, cmap="RdYlGn")
    ax.set_title(f"NDVI {label}")
fig.tight_layout()
fig.savefig("ndvi_2018_2024.png", dpi=160)
