"""Filtering a country layer by attribute values and by location."""

import logging

from eo_recipes.ops.vector import Filter, filter_bbox, filter_bounds, filter_features
from eo_recipes.roi import load_roi, roi_from_bbox

logging.basicConfig(level=logging.INFO)

# Country boundaries (e.g. FAO GAUL 2015 level 0 exported as GeoPackage)
COUNTRIES_PATH = "data/gaul_level0.gpkg"

world = load_roi(COUNTRIES_PATH)
africa = filter_bounds(world, roi_from_bbox(-18.0, -35.0, 52.0, 38.0))

filters = {
    "Kenya": Filter.eq("ADM0_NAME", "Kenya"),
    "Selected countries": Filter.in_list("ADM0_NAME", ["Kenya", "Somalia", "Morocco", "Lesotho"]),
    "Africa without Uganda": Filter.neq("ADM0_NAME", "Uganda"),
    "Area 100-212 deg²": Filter.range_contains("Shape_Area", 100, 212),
    "Contains 'ia'": Filter.string_contains("ADM0_NAME", "ia"),
    "Ends with 'go'": Filter.string_ends_with("ADM0_NAME", "go"),
    "Starts with 'E'": Filter.string_starts_with("ADM0_NAME", "E"),
    "East African 'ia' countries": Filter.string_contains("ADM0_NAME", "ia")
    & Filter.in_list("ADM0_NAME", ["Tanzania", "Somalia", "Ethiopia", "Zambia"]),
}

for title, flt in filters.items():
    selected = filter_features(africa, flt)
    print(f"{title}: {len(selected)} feature(s)")
    print("   ", sorted(selected["ADM0_NAME"])[:10])

# filter_bounds keeps countries touching the box; filter_bbox only those wholly inside it
east_africa = filter_bbox(africa, west=28.0, south=-12.0, east=52.0, north=15.0)
print(f"Wholly inside the East Africa box: {len(east_africa)} feature(s)")
print("   ", sorted(east_africa["ADM0_NAME"]))
