"""How the pixel scale of a reduction changes the mean NDVI of a field."""

import logging

from eo_recipes import DataCube
from eo_recipes.ops.raster import reduce_at_scales
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_bbox(35.282, -0.472, 35.292, -0.462, name="field")

ndvi = (
    DataCube.load_dataset(
        "sentinel-2-l2a",
        spatial_extent=spatial_extent(roi, buffer_m=300),
        temporal_extent=("2025-01-01", "2025-01-31"),
        bands=["red", "nir"],
        resolution=10,
    )
    .ndvi()
    .composite(reducer="median")
    .compute()
)

df = reduce_at_scales(ndvi.data, roi, scales=range(10, 201, 10), reducer="mean")
df = df.rename(columns={"value": "ndvi"})
print(df)

ax = plot_time_series(
    df,
    x="scale",
    y="ndvi",
    title="Effect of pixel scale on NDVI extraction",
    xlabel="Scale (m)",
    ylabel="Mean NDVI",
)
ax.figure.savefig("scale_of_reducer.png", dpi=160)
