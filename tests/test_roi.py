"""Tests for eo_recipes.roi module."""

import math

import geopandas as gpd
import pytest
from shapely.geometry import Point, box

from eo_recipes.roi import label_features, load_roi, roi_from_bbox, roi_from_point, spatial_extent


class TestRoiFromBbox:
    def test_one_feature(self):
        roi = roi_from_bbox(36.7, -1.4, 37.0, -1.2, name="Nairobi")
        assert len(roi) == 1
        assert roi.crs.to_epsg() == 4326
        assert roi["name"].iloc[0] == "Nairobi"
        assert roi.total_bounds.tolist() == pytest.approx([36.7, -1.4, 37.0, -1.2])

    def test_without_name(self):
        assert list(roi_from_bbox(0, 0, 1, 1).columns) == ["geometry"]

    @pytest.mark.parametrize("bbox", [(1, 0, 0, 1), (0, 1, 1, 0), (0, 0, 0, 1)])
    def test_invalid(self, bbox):
        with pytest.raises(ValueError, match="Invalid bounding box"):
            roi_from_bbox(*bbox)


class TestRoiFromPoint:
    def test_circle_area(self):
        roi = roi_from_point(35.28, -0.37, buffer_m=500)
        area = roi.to_crs(roi.estimate_utm_crs()).area.iloc[0]
        assert area == pytest.approx(math.pi * 500**2, rel=0.01)
        assert roi.crs.to_epsg() == 4326

    def test_centred_on_point(self):
        roi = roi_from_point(35.28, -0.37, buffer_m=1000)
        centroid = roi.to_crs(roi.estimate_utm_crs()).centroid.to_crs("EPSG:4326").iloc[0]
        assert centroid.x == pytest.approx(35.28, abs=1e-5)
        assert centroid.y == pytest.approx(-0.37, abs=1e-5)

    def test_non_positive_buffer(self):
        with pytest.raises(ValueError, match="positive"):
            roi_from_point(35.28, -0.37, buffer_m=0)


class TestLoadRoi:
    def test_from_geojson_dict(self):
        roi = load_roi({"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]})
        assert roi.crs.to_epsg() == 4326
        assert len(roi) == 1

    def test_from_geopackage_layer(self, tmp_path):
        path = tmp_path / "fields.gpkg"
        gpd.GeoDataFrame({"field": ["f1"]}, geometry=[box(0, 0, 1, 1)], crs="EPSG:4326").to_file(
            path, layer="fields", driver="GPKG"
        )
        roi = load_roi(path, layer="fields")
        assert roi["field"].tolist() == ["f1"]


class TestLabelFeatures:
    def test_labels_replace_attributes(self):
        gdf = gpd.GeoDataFrame({"id": [1, 2], "x": [0, 0]}, geometry=[Point(0, 0), Point(1, 1)], crs="EPSG:4326")
        labelled = label_features(gdf, "treatment", ["control", "fertilised"])
        assert list(labelled.columns) == ["treatment", "geometry"]
        assert labelled.crs == gdf.crs

    def test_count_mismatch(self):
        gdf = gpd.GeoDataFrame(geometry=[Point(0, 0)], crs="EPSG:4326")
        with pytest.raises(ValueError, match="label"):
            label_features(gdf, "treatment", ["a", "b"])


class TestSpatialExtent:
    def test_bounds(self):
        extent = spatial_extent(roi_from_bbox(36.7, -1.4, 37.0, -1.2))
        assert extent == pytest.approx({"west": 36.7, "south": -1.4, "east": 37.0, "north": -1.2})

    def test_buffer_grows_extent(self):
        extent = spatial_extent(roi_from_bbox(36.7, -1.4, 37.0, -1.2), buffer_m=1000)
        assert extent["west"] < 36.7
        assert extent["north"] > -1.2
        # 1 km is about 0.009 degrees near the equator
        assert extent["west"] == pytest.approx(36.7 - 0.009, abs=0.001)

    def test_projected_input(self):
        roi = roi_from_bbox(36.7, -1.4, 37.0, -1.2).to_crs("EPSG:32737")
        extent = spatial_extent(roi)
        assert extent["west"] == pytest.approx(36.7, abs=1e-3)
