"""Extract a country boundary and write it to disk."""

import logging

from eo_recipes.ops.vector import Filter, filter_features
from eo_recipes.roi import load_roi

logging.basicConfig(level=logging.INFO)

LSIB_PATH = "data/lsib_simple_2017.gpkg"

kenya = filter_features(load_roi(LSIB_PATH), Filter.eq("country_na", "Kenya"))

ax = kenya.boundary.plot(color="magenta")
ax.set_title("Kenya boundary")
ax.figure.savefig("kenya.png", dpi=160)

kenya.to_file("kenya.shp")
kenya.to_file("kenya.geojson", driver="GeoJSON")
