"""OpenLandMap soil organic carbon by depth for three counties."""

import logging

from eo_recipes.io.raster import load_raster
from eo_recipes.ops.indices import soc_gkg
from eo_recipes.ops.raster import aggregate_spatial
from eo_recipes.ops.vector import Filter, filter_features
from eo_recipes.plot import plot_grouped_bars
from eo_recipes.roi import load_roi
from eo_recipes.table import relabel, to_long

logging.basicConfig(level=logging.INFO)

# OpenLandMap SOC content (5 g/kg units) at six standard depths
SOC_PATH = "data/openlandmap_soc_kenya.tif"
GAUL_LEVEL1 = "data/gaul_level1.gpkg"
DEPTHS = ["b0", "b10", "b30", "b60", "b100", "b200"]

counties = filter_features(
    load_roi(GAUL_LEVEL1),
    Filter.in_list("ADM1_NAME", ["Kericho", "Bomet", "Nandi"]),
)

soc = soc_gkg(load_raster(SOC_PATH, band_names=DEPTHS))
stats = aggregate_spatial(soc, counties, reducer="mean")

df = to_long(stats, id_cols=["ADM1_NAME"], prefix="b", names_to="depth", values_to="soc")
df = relabel(df, "depth", {b: f"{b[1:]}cm" for b in DEPTHS})
print(df)

ax = plot_grouped_bars(
    df,
    x="depth",
    y="soc",
    group="ADM1_NAME",
    title="Soil organic carbon by depth",
    xlabel="Depth",
    ylabel="SOC (g/kg)",
)
ax.figure.savefig("soc_by_depth.png", dpi=160)
