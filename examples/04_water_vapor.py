"""Monthly Sentinel-2 water vapour over a field."""

import logging

from eo_recipes import DataCube
from eo_recipes.ops.indices import wvp_cm
from eo_recipes.plot import plot_time_series
from eo_recipes.roi import roi_from_bbox, spatial_extent
from eo_recipes.table import month_abbr, to_long

logging.basicConfig(level=logging.INFO)

site = roi_from_bbox(35.280, -0.475, 35.290, -0.465, name="Field_1")

cube = DataCube.load_dataset(
    "sentinel-2-l2a-pc",
    spatial_extent=spatial_extent(site),
    temporal_extent=("2024-01-01", "2024-12-31"),
    bands=["wvp"],
)

monthly = cube.aggregate_calendar(by="month", reducer="median", labels=range(1, 13))
monthly_cm = DataCube(wvp_cm(monthly.data))
stats = (
    monthly_cm.to_bands(dim="month", prefix="wvp", index_prefix=True)
    .compute()
    .aggregate_spatial(site, reducer="min")
    .data
)

df = month_abbr(
    to_long(stats, id_cols=["name"], prefix="wvp_", values_to="wvp", label_name="month")
)
print(df)

ax = plot_time_series(
    df,
    x="month",
    y="wvp",
    group="name",
    title="Monthly water vapour for Field_1",
    xlabel="Month",
    ylabel="WVP (cm)",
)
ax.figure.savefig("water_vapor.png", dpi=160)
