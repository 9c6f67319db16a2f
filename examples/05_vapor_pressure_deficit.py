"""Annual mean vapour pressure deficit over Kericho county from TerraClimate."""

import logging

from eo_recipes import DataCube
from eo_recipes.ops.indices import vpd_kpa
from eo_recipes.ops.vector import Filter, filter_features
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import load_roi, spatial_extent
from eo_recipes.table import to_long

logging.basicConfig(level=logging.INFO)

# TerraClimate aggregated VPD on the THREDDS OPeNDAP server
TERRACLIMATE_VPD = (
    "http://thredds.northwestknowledge.net:8080/thredds/dodsC/"
    "agg_terraclimate_vpd_1958_CurrentYear_GLOBE.nc"
)
ADMIN2_PATH = "data/gaul_level2.gpkg"

kericho = filter_features(load_roi(ADMIN2_PATH), Filter.eq("ADM2_NAME", "Kericho"))
kericho = kericho[["ADM2_NAME", "geometry"]]

vpd = DataCube.load_raster(TERRACLIMATE_VPD, variable="vpd", chunks={"time": 12})
extent = spatial_extent(kericho, buffer_m=10_000)
vpd = vpd.filter_bbox(**extent).filter_temporal(extent=("1958-01-01", "2024-12-31"))

annual = vpd.aggregate_calendar(by="year", reducer="mean")
annual = DataCube(vpd_kpa(annual.data, band=None))
stats = annual.to_bands(dim="year", prefix="vpd_mean").compute().aggregate_spatial(kericho).data

df = to_long(stats, id_cols=["ADM2_NAME"], prefix="vpd_mean_", values_to="vpd", label_name="year")
print(df.tail())

ax = plot_time_series(
    df,
    x="year",
    y="vpd",
    title="Annual vapour pressure deficit in Kericho",
    xlabel="Year",
    ylabel="VPD (kPa)",
)
ax.figure.savefig("vpd_kericho.png", dpi=160)
