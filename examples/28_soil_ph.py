"""iSDAsoil pH at 0-20 cm and 20-50 cm for three counties."""

import logging

from eo_recipes.io.raster import load_raster
from eo_recipes.ops.indices import ph_h2o
from eo_recipes.ops.raster import aggregate_spatial
from eo_recipes.ops.vector import Filter, filter_features
from eo_recipes.plot import plot_grouped_bars
from eo_recipes.roi import load_roi
from eo_recipes.table import relabel, to_long

logging.basicConfig(level=logging.INFO)

# iSDAsoil pH in H2O (x10), mean prediction for two depth intervals
PH_PATH = "data/isda_ph_kenya.tif"
GAUL_LEVEL1 = "data/gaul_level1.gpkg"

counties = filter_features(
    load_roi(GAUL_LEVEL1),
    Filter.in_list("ADM1_NAME", ["Kericho", "Bomet", "Nandi"]),
)

ph = ph_h2o(load_raster(PH_PATH, band_names=["mean_0_20", "mean_20_50"]))
stats = aggregate_spatial(ph, counties, reducer="mean")

df = to_long(stats, id_cols=["ADM1_NAME"], prefix="mean_", names_to="depth", values_to="ph")
df = relabel(df, "depth", {"mean_0_20": "0-20 cm", "mean_20_50": "20-50 cm"})
print(df)

ax = plot_grouped_bars(
    df, x="ADM1_NAME", y="ph", group="depth", title="Soil pH", xlabel="County", ylabel="pH"
)
ax.figure.savefig("soil_ph.png", dpi=160)
