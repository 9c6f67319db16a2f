"""Monthly NDVI (red-edge) bands written as multi-band GeoTIFFs at 10 m and 250 m."""

import logging

import rioxarray  # noqa: F401
import stackstac
import xarray as xr

from eo_recipes import DataCube
from eo_recipes.ops.raster import clean_band_names
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_bbox(35.282, -0.472, 35.292, -0.462, name="field")

scenes = DataCube.load_dataset(
    "sentinel-2-l2a",
    spatial_extent=spatial_extent(roi),
    temporal_extent=("2024-01-01", "2024-12-31"),
    bands=["rededge1", "nir"],
    resolution=10,
)
crs = f"EPSG:{stackstac.array_epsg(scenes.data)}"

monthly = (
    scenes.index("ndvi", red="rededge1")
    .aggregate_calendar(by="month", reducer="median", labels=range(1, 13))
    .to_bands(dim="month", prefix="ndvi", index_prefix=True)
    .clip(roi)
    .compute()
    .data
)
monthly = monthly.assign_coords(bands=clean_band_names(monthly.coords["bands"].values))
monthly = monthly.rio.write_crs(crs)
print(list(monthly.coords["bands"].values))


def write_geotiff(bands: xr.DataArray, path: str) -> None:
    out = bands.rename(latitude="y", longitude="x", bands="band")
    out.attrs["long_name"] = tuple(bands.coords["bands"].values)
    out.rio.to_raster(path)


write_geotiff(monthly, "monthly_ndvi_2024.tif")

# Coarse copy for sharing: block averages on a 250 m grid
coarse = DataCube(monthly).resample_spatial(resolution=250, method="average").data
write_geotiff(coarse, "monthly_ndvi_2024_250m.tif")
