"""African countries coloured by their geodesic area and perimeter."""

import logging

import matplotlib.pyplot as plt

from eo_recipes.ops.vector import Filter, add_geodesic_measures, filter_features
from eo_recipes.plot import plot_choropleth
from eo_recipes.roi import load_roi

logging.basicConfig(level=logging.INFO)

# Large Scale International Boundaries (LSIB simplified) as GeoPackage
LSIB_PATH = "data/lsib_simple_2017.gpkg"

africa = filter_features(load_roi(LSIB_PATH), Filter.eq("wld_rgn", "Africa"))
africa = add_geodesic_measures(africa)
print(africa[["country_na", "area", "perimeter"]].sort_values("area", ascending=False).head())

fig, axes = plt.subplots(1, 2, figsize=(14, 7))
plot_choropleth(africa, "area", cmap="YlOrRd", title="Area (km²)", ax=axes[0])
plot_choropleth(africa, "perimeter", cmap="YlOrRd", title="Perimeter (km)", ax=axes[1])
fig.tight_layout()
fig.savefig("africa_area_perimeter.png", dpi=160)
