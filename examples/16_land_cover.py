"""ESA WorldCover classes of Kericho county and their area shares."""

import logging

import numpy as np
import pandas as pd
from matplotlib.colors import ListedColormap

from eo_recipes import DataCube
from eo_recipes.io.catalog import default_registry
from eo_recipes.ops.vector import Filter, filter_features
from eo_recipes.roi import load_roi, spatial_extent

logging.basicConfig(level=logging.INFO)

ADMIN2_PATH = "data/gaul_level2.gpkg"

kericho = filter_features(load_roi(ADMIN2_PATH), Filter.eq("ADM2_NAME", "Kericho"))
spec = default_registry().get_dataset("esa-worldcover")

landcover = (
    DataCube.load_dataset(
        "esa-worldcover",
        spatial_extent=spatial_extent(kericho),
        temporal_extent=("2020-01-01", "2020-12-31"),
        resolution=0.0005,
    )
    .composite(reducer="max")
    .clip(kericho)
    .compute()
    .data.squeeze("bands", drop=True)
)

values = landcover.values[np.isfinite(landcover.values)].astype(int)
shares = (
    pd.Series(values)
    .map(spec.class_names())
    .value_counts(normalize=True)
    .mul(100)
    .round(1)
    .rename("percent")
)
print(shares)

codes = sorted(int(k) for k in spec.classes)
colors = [spec.classes[str(c)]["color"] for c in codes]
index = landcover.copy(data=np.searchsorted(codes, landcover.fillna(codes[0]).values))
ax = index.where(landcover.notnull()).plot(
    cmap=ListedColormap(colors), vmin=-0.5, vmax=len(codes) - 0.5, add_colorbar=False
)
ax.axes.set_title("ESA WorldCover 2020, Kericho")
ax.figure.savefig("land_cover.png", dpi=160)
