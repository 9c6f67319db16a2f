"""Burn severity from the difference of NBR composites before and after a fire."""

import logging

from eo_recipes import DataCube
from eo_recipes.ops.indices import burned_area, dnbr
from eo_recipes.ops.raster import masked_area
from eo_recipes.roi import roi_from_bbox, spatial_extent

logging.basicConfig(level=logging.INFO)

roi = roi_from_bbox(36.05, -0.95, 36.15, -0.85, name="burn_site")


def nbr_composite(start: str, end: str):
    return (
        DataCube.load_dataset(
            "sentinel-2-l2a",
            spatial_extent=spatial_extent(roi),
            temporal_extent=(start, end),
            bands=["nir", "swir22"],
            resolution=20,
        )
        .index("nbr")
        .composite(reducer="median")
        .clip(roi)
        .compute()
        .data
    )


before = nbr_composite("2023-01-01", "2023-06-01")
after = nbr_composite("2023-06-02", "2023-12-31")

severity = dnbr(before, after)
burned = burned_area(severity, threshold=0.1)
print(f"Burned area: {masked_area(burned, geometry=roi, units='ha'):.1f} ha")

ax = severity.plot(vmin=0, vmax=0.6, cmap="YlOrRd")
ax.axes.set_title("dNBR (burn severity)")
ax.figure.savefig("dnbr.png", dpi=160)
