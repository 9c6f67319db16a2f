"""Landsat 8/9 land surface temperature of Nairobi in °C."""

import logging

from eo_recipes import DataCube
from eo_recipes.ops.indices import lst_celsius
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

city = roi_from_bbox(36.70, -1.35, 36.95, -1.20, name="Nairobi")

# The catalog scales lwir11 to Kelvin already
kelvin = (
    DataCube.load_dataset(
        "landsat-8-9-c2-l2",
        spatial_extent=spatial_extent(city),
        temporal_extent=("2024-01-01", "2024-12-31"),
        bands=["lwir11"],
    )
    .composite(reducer="median")
    .clip(city)
    .compute()
)
lst = DataCube(lst_celsius(kelvin.data, scale=1.0, offset=0.0))

stats = lst.reduce_region(city, reducers=["min", "max"])
print(f"Minimum LST (°C): {stats['lst_min']:.1f}")
print(f"Maximum LST (°C): {stats['lst_max']:.1f}")

ax = lst.data.plot(vmin=18, vmax=36, cmap="RdYlBu_r")
ax.axes.set_title("Land surface temperature (°C)")
ax.figure.savefig("lst_nairobi.png", dpi=160)
