"""Tidy temporal summaries of Sentinel-2 NDVI around a point."""

import logging

from eo_recipes import DataCube
from eo_recipes.ops.raster import reduce_dimension
from eo_recipes.roi import roi_from_point, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_point(36.0, -0.5, buffer_m=20000, name="nakuru")

ndvi = (
    DataCube.load_dataset(
        "sentinel-2-l2a",
        spatial_extent=spatial_extent(roi),
        temporal_extent=("2021-01-01", "2024-12-31"),
        bands=["red", "nir"],
        resolution=100,
    )
    .ndvi()
)

# June to August of every year, one summary per year-month
jja = (
    ndvi.filter_calendar(months=[6, 7, 8])
    .summarise_temporal(by=("year", "month"), stats=("mean", "std", "min"))
    .compute()
)
print(jja.data.coords["period"].values, list(jja.data.coords["bands"].values))

# Climatology: one summary per calendar month across all years
monthly = ndvi.summarise_temporal(
    by=("month",), stats=("mean", "median", "std", "min", "max")
).compute()
for band in monthly.data.coords["bands"].values:
    stats = monthly.data.sel(bands=band).mean(dim=["latitude", "longitude"])
    print(band, [round(float(v), 3) for v in stats.values])

# Seasonal amplitude: range of the monthly mean NDVI across the calendar
monthly_mean = monthly.data.sel(bands="ndvi_mean")
amplitude = reduce_dimension(monthly_mean, "numpy.nanmax", dimension="period") - reduce_dimension(
    monthly_mean, "numpy.nanmin", dimension="period"
)
print("median seasonal amplitude:", round(float(amplitude.median()), 3))
