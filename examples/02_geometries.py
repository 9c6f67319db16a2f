"""Building regions of interest: points, buffers, boxes, polygons and boundaries."""

import logging

from shapely.geometry import LineString, Point, Polygon

from eo_recipes.ops.vector import Filter, add_geodesic_measures, filter_bounds, filter_features
from eo_recipes.roi import load_roi, roi_from_bbox, roi_from_point, spatial_extent

logging.basicConfig(level=logging.INFO)

# Admin level-1 boundaries (e.g. FAO GAUL 2015 level 1 exported as GeoPackage)
ADMIN1_PATH = "data/gaul_level1.gpkg"

point = Point(35.1330, -0.4468)
line = LineString([(35.133, -0.4468), (35.135, -0.4368), (35.136, -0.445)])
rect = roi_from_bbox(35.13, -0.45, 35.14, -0.435, name="rectangle")
poly = Polygon(
    [
        (35.12709, -0.45349),
        (35.12159, -0.43976),
        (35.12709, -0.42827),
        (35.14177, -0.42827),
        (35.14599, -0.43976),
        (35.14083, -0.45349),
    ]
)
circle = roi_from_point(35.1330, -0.4468, buffer_m=500, name="circle")

print("line length (deg):", line.length)
print("rectangle extent:", spatial_extent(rect))
print(add_geodesic_measures(rect)[["name", "area", "perimeter"]])
print(add_geodesic_measures(circle)[["name", "area", "perimeter"]])

admin1 = load_roi(ADMIN1_PATH)
nyanza = filter_features(admin1, Filter.eq("ADM1_NAME", "Nyanza"))
print(nyanza[["ADM1_NAME"]])

# The province containing a point
malawi_region = filter_bounds(admin1, Point(37.1061, -12.74735))
print(malawi_region[["ADM0_NAME", "ADM1_NAME"]])

ax = admin1.boundary.plot(color="0.6", linewidth=0.3)
nyanza.plot(ax=ax, color="gold")
ax.figure.savefig("nyanza.png", dpi=160)
