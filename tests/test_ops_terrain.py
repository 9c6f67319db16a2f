"""Tests for eo_recipes.ops.terrain module."""

import numpy as np
import pytest
import xarray as xr

from eo_recipes.ops.terrain import aspect, slope, suitability


def _projected_dem(fn, n: int = 5) -> xr.DataArray:
    """A north-up 10 m UTM-like grid with elevation ``fn(dx, dy)`` in metres."""
    xs = 500_000.0 + 10.0 * np.arange(n)
    ys = 9_900_000.0 - 10.0 * np.arange(n)
    xx, yy = np.meshgrid(xs - xs[0], ys - ys[-1])
    return xr.DataArray(
        fn(xx, yy).astype(np.float64),
        dims=["y", "x"],
        coords={"y": ys, "x": xs},
        name="elevation",
    )


class TestSlopeAspect:
    def test_plane_rising_east(self):
        dem = _projected_dem(lambda x, y: 0.1 * x)
        s = slope(dem, x_dim="x", y_dim="y")
        a = aspect(dem, x_dim="x", y_dim="y")
        assert s.name == "slope"
        assert a.name == "aspect"
        np.testing.assert_allclose(s.values, np.degrees(np.arctan(0.1)), rtol=1e-6)
        # Falls towards the west
        np.testing.assert_allclose(a.values, 270.0)

    def test_plane_rising_north_faces_south(self):
        dem = _projected_dem(lambda x, y: 0.1 * y)
        a = aspect(dem, x_dim="x", y_dim="y")
        np.testing.assert_allclose(a.values, 180.0)

    def test_flat_surface(self):
        dem = _projected_dem(lambda x, y: np.full_like(x, 1500.0))
        np.testing.assert_allclose(slope(dem, x_dim="x", y_dim="y").values, 0.0)
        np.testing.assert_allclose(aspect(dem, x_dim="x", y_dim="y").values, 0.0)

    def test_geographic_spacing_in_metres(self):
        lats = np.array([0.002, 0.001, 0.0])
        lons = np.array([35.0, 35.001, 35.002])
        metres = np.deg2rad(0.001) * 6_371_008.8
        dem = xr.DataArray(
            np.tile([0.0, metres, 2 * metres], (3, 1)),
            dims=["latitude", "longitude"],
            coords={"latitude": lats, "longitude": lons},
        )
        # One metre of rise per metre east: 45 degrees
        np.testing.assert_allclose(slope(dem).values, 45.0, rtol=1e-4)

    def test_spatially_chunked_dem(self):
        dem = _projected_dem(lambda x, y: 0.1 * x + 0.05 * y, n=8)
        chunked = dem.chunk({"y": 4, "x": 4})
        np.testing.assert_allclose(
            slope(chunked, x_dim="x", y_dim="y").values, slope(dem, x_dim="x", y_dim="y").values
        )
        np.testing.assert_allclose(
            aspect(chunked, x_dim="x", y_dim="y").values, aspect(dem, x_dim="x", y_dim="y").values
        )


class TestSuitability:
    def test_elevation_and_slope_criteria(self):
        dem = _projected_dem(lambda x, y: 1000.0 + 0.1 * x)
        result = suitability(dem, min_elevation=1002.0, max_slope=10.0, x_dim="x", y_dim="y")
        assert result.name == "suitable"
        assert result.dtype == bool
        # Only the columns at >= 20 m east of the origin are high enough
        assert not result.values[:, :2].any()
        assert result.values[:, 2:].all()

    def test_aspect_criterion(self):
        dem = _projected_dem(lambda x, y: 0.1 * x)
        assert not suitability(dem, max_aspect=180.0, x_dim="x", y_dim="y").values.any()

    def test_no_criteria_keeps_valid_cells(self):
        dem = _projected_dem(lambda x, y: np.full_like(x, 100.0))
        dem.values[0, 0] = np.nan
        result = suitability(dem, x_dim="x", y_dim="y")
        assert not result.values[0, 0]
        assert result.values.sum() == dem.size - 1

    def test_steep_cells_rejected(self):
        dem = _projected_dem(lambda x, y: 1.0 * x)
        assert slope(dem, x_dim="x", y_dim="y").values[0, 0] == pytest.approx(45.0)
        assert not suitability(dem, max_slope=30.0, x_dim="x", y_dim="y").values.any()
