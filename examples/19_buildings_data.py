"""Building footprints inside a neighbourhood of Kericho town."""

import logging

import geopandas as gpd

from eo_recipes.ops.vector import add_geodesic_measures, filter_bounds
from eo_recipes.roi import roi_from_point

logging.basicConfig(level=logging.INFO)

# Open Buildings footprints for the quadkey tile covering (35.35, -0.36)
BUILDINGS_PATH = "data/open_buildings_300110.gpkg"

roi = roi_from_point(35.2860, -0.3680, buffer_m=750, name="kericho_town")

buildings = gpd.read_file(BUILDINGS_PATH, bbox=tuple(roi.total_bounds))
inside = add_geodesic_measures(filter_bounds(buildings, roi))
print(f"{len(inside)} building(s), {inside['area'].sum() * 1e6:,.0f} m² of roof area")

ax = inside.plot(color="red", figsize=(8, 8))
roi.boundary.plot(ax=ax, color="blue")
ax.set_axis_off()
ax.figure.savefig("buildings.png", dpi=160)
