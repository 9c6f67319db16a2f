"""Tests for eo_recipes.ops.raster module."""

import dask.array as da
import numpy as np
import pandas as pd
import pytest
import xarray as xr
from shapely.geometry import box

from eo_recipes.exceptions import DimensionNotAvailable
from eo_recipes.ops.indices import ndvi
from eo_recipes.ops.raster import (
    aggregate_calendar,
    aggregate_spatial,
    aggregate_temporal,
    apply,
    clean_band_names,
    clip,
    composite,
    filter_bbox,
    filter_calendar,
    filter_temporal,
    masked_area,
    pixel_area,
    reduce_at_scales,
    reduce_region,
    rename_bands,
    resample_spatial,
    sample_points,
    self_mask,
    summarise_temporal,
    to_bands,
    update_mask,
)


def _make_raster(dask_backed: bool = False) -> xr.DataArray:
    """Create a small test raster cube with (time, bands, latitude, longitude) dims."""
    np.random.seed(42)
    data = np.random.rand(2, 2, 4, 4).astype(np.float32)
    if dask_backed:
        data = da.from_array(data, chunks=(1, 2, 4, 4))  # type: ignore[assignment]
    return xr.DataArray(
        data,
        dims=["time", "bands", "latitude", "longitude"],
        coords={
            "time": pd.date_range("2023-01-01", periods=2, freq="ME"),
            "bands": ["red", "nir"],
            "latitude": np.linspace(50, 51, 4),
            "longitude": np.linspace(10, 11, 4),
        },
    )


def _make_raster_long(months: int = 14) -> xr.DataArray:
    """Create a raster cube spanning multiple months for temporal tests."""
    np.random.seed(99)
    data = np.random.rand(months, 2, 3, 3).astype(np.float32)
    return xr.DataArray(
        data,
        dims=["time", "bands", "latitude", "longitude"],
        coords={
            "time": pd.date_range("2023-01-15", periods=months, freq="ME"),
            "bands": ["red", "nir"],
            "latitude": np.linspace(50, 51, 3),
            "longitude": np.linspace(10, 11, 3),
        },
    )


def _make_series(times: list[str]) -> xr.DataArray:
    """Single-band 2x2 cube observed at the given timestamps."""
    np.random.seed(7)
    return xr.DataArray(
        np.random.rand(len(times), 1, 2, 2),
        dims=["time", "bands", "latitude", "longitude"],
        coords={
            "time": pd.to_datetime(times),
            "bands": ["ndvi"],
            "latitude": [50.0, 51.0],
            "longitude": [10.0, 11.0],
        },
    )


def _make_image(values: np.ndarray, name: str = "elev") -> xr.DataArray:
    """Single 2-D image on a 4x4 lon/lat grid."""
    return xr.DataArray(
        np.asarray(values, dtype=np.float64).reshape(4, 4),
        dims=["latitude", "longitude"],
        coords={
            "latitude": np.linspace(50, 51, 4),
            "longitude": np.linspace(10, 11, 4),
        },
        name=name,
    )


def _make_utm_image(n: int = 20, value: float = 1.0) -> xr.DataArray:
    """Constant image on a projected 10 m grid."""
    return xr.DataArray(
        np.full((n, n), value),
        dims=["latitude", "longitude"],
        coords={
            "latitude": 9_900_000.0 - 10.0 * np.arange(n),
            "longitude": 500_000.0 + 10.0 * np.arange(n),
        },
        name="value",
    )


_EVERYTHING = box(9.9, 49.9, 11.1, 51.1)


# ---------------------------------------------------------------
# Filters
# ---------------------------------------------------------------


class TestFilters:
    def test_filter_bbox(self):
        cube = _make_raster()
        result = filter_bbox(cube, west=10.0, south=50.0, east=10.5, north=50.5)
        assert result.sizes["longitude"] == 2
        assert result.sizes["latitude"] == 2

    def test_filter_temporal(self):
        cube = _make_raster()
        result = filter_temporal(cube, extent=("2023-01-01", "2023-01-31"))
        assert result.sizes["time"] == 1

    def test_filter_calendar_months(self):
        cube = _make_raster_long()
        result = filter_calendar(cube, months=[6, 7, 8])
        assert result.sizes["time"] == 3
        assert set(result.coords["time"].dt.month.values) == {6, 7, 8}

    def test_filter_calendar_years_and_months(self):
        cube = _make_raster_long()
        result = filter_calendar(cube, months=[1, 2], years=[2024])
        assert list(result.coords["time"].dt.month.values) == [1, 2]
        assert set(result.coords["time"].dt.year.values) == {2024}

    def test_filter_calendar_no_match(self):
        cube = _make_raster()
        result = filter_calendar(cube, months=[12])
        assert result.sizes["time"] == 0

    def test_clip_masks_outside_pixels(self):
        cube = _make_raster()
        result = clip(cube, box(9.9, 49.9, 10.5, 50.5))
        # Two lon/lat centres (10, 10.33) fall inside on each axis
        valid = result.isel(time=0, bands=0).notnull().values
        assert valid.sum() == 4
        assert np.isnan(result.sel(latitude=51, longitude=11).values).all()


# ---------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------


class TestComposite:
    def test_median_composite(self):
        cube = _make_raster()
        result = composite(cube, reducer="median")
        assert "time" not in result.dims
        np.testing.assert_allclose(result.values, np.median(cube.values, axis=0), rtol=1e-5)

    def test_min_composite(self):
        cube = _make_raster()
        result = composite(cube, reducer="min")
        np.testing.assert_allclose(result.values, cube.values.min(axis=0))

    def test_unknown_reducer(self):
        with pytest.raises(ValueError, match="Unsupported reducer"):
            composite(_make_raster(), reducer="mode")

    def test_missing_time_dimension(self):
        cube = _make_raster().isel(time=0)
        with pytest.raises(DimensionNotAvailable, match="does not exist"):
            composite(cube)


# ---------------------------------------------------------------
# aggregate_temporal
# ---------------------------------------------------------------


class TestAggregateTemporal:
    def test_aggregate_temporal_month_labels(self):
        cube = _make_raster()
        result = aggregate_temporal(cube, period="month", reducer="mean")
        assert [str(v) for v in result.coords["time"].values] == ["2023-01", "2023-02"]

    def test_aggregate_temporal_year_labels(self):
        cube = _make_raster_long()
        result = aggregate_temporal(cube, period="year", reducer="mean")
        assert [str(v) for v in result.coords["time"].values] == ["2023", "2024"]

    def test_aggregate_temporal_dekad(self):
        np.random.seed(42)
        cube = xr.DataArray(
            np.random.rand(4, 1, 2, 2).astype(np.float32),
            dims=["time", "bands", "latitude", "longitude"],
            coords={
                "time": pd.to_datetime(["2023-01-05", "2023-01-25", "2023-02-08", "2023-12-25"]),
                "bands": ["ndvi"],
                "latitude": [50.0, 51.0],
                "longitude": [10.0, 11.0],
            },
        )
        result = aggregate_temporal(cube, period="dekad", reducer="mean")
        labels = [str(v) for v in result.coords["time"].values]
        assert labels == ["2023-01", "2023-03", "2023-04", "2023-36"]

    def test_aggregate_temporal_season(self):
        cube = _make_raster_long()
        result = aggregate_temporal(cube, period="season", reducer="mean")
        suffixes = {str(v).split("-")[1] for v in result.coords["time"].values}
        assert suffixes <= {"djf", "mam", "jja", "son"}

    def test_aggregate_temporal_hour(self):
        cube = _make_series(["2023-01-01T06:10", "2023-01-01T06:50", "2023-01-01T08:05"])
        result = aggregate_temporal(cube, period="hour", reducer="mean")
        labels = [str(v) for v in result.coords["time"].values]
        assert labels == ["2023-01-01-06", "2023-01-01-07", "2023-01-01-08"]
        np.testing.assert_allclose(result.isel(time=0).values, cube.isel(time=[0, 1]).mean("time").values)

    def test_aggregate_temporal_day_of_year(self):
        cube = _make_series(["2023-01-31T10:00", "2023-02-01T10:00"])
        result = aggregate_temporal(cube, period="day", reducer="max")
        assert [str(v) for v in result.coords["time"].values] == ["2023-031", "2023-032"]

    def test_aggregate_temporal_week_is_iso_week(self):
        # 2023-01-04 is a Wednesday of ISO week 1, 2023-01-18 of week 3
        cube = _make_series(["2023-01-04", "2023-01-18"])
        result = aggregate_temporal(cube, period="week", reducer="mean")
        labels = [str(v) for v in result.coords["time"].values]
        assert labels[0] == "2023-01"
        assert labels[-1] == "2023-03"

    def test_aggregate_temporal_tropical_season_rolls_over(self):
        cube = _make_series(["2023-03-10", "2023-07-01", "2023-11-20", "2024-02-01"])
        result = aggregate_temporal(cube, period="tropical-season", reducer="mean")
        labels = [str(v) for v in result.coords["time"].values]
        assert labels == ["2022-ndjfma", "2023-mjjaso", "2023-ndjfma"]
        np.testing.assert_allclose(
            result.sel(time="2023-ndjfma").values,
            cube.isel(time=[2, 3]).mean("time").values,
            rtol=1e-6,
        )

    def test_aggregate_temporal_decade(self):
        cube = _make_series(["2019-06-01", "2020-06-01", "2021-06-01"])
        result = aggregate_temporal(cube, period="decade", reducer="mean")
        assert [str(v) for v in result.coords["time"].values] == ["2010", "2020"]

    def test_aggregate_temporal_decade_ad(self):
        cube = _make_series(["2020-06-01", "2021-06-01"])
        result = aggregate_temporal(cube, period="decade-ad", reducer="mean")
        assert [str(v) for v in result.coords["time"].values] == ["2011", "2021"]

    def test_unsupported_reducer(self):
        with pytest.raises(ValueError, match="Unsupported reducer"):
            aggregate_temporal(_make_raster(), period="month", reducer="avg")

    def test_unsupported_period(self):
        with pytest.raises(ValueError, match="Unsupported period"):
            aggregate_temporal(_make_raster(), period="century")


# ---------------------------------------------------------------
# aggregate_calendar / summarise_temporal
# ---------------------------------------------------------------


class TestAggregateCalendar:
    def test_month_of_year_pools_years(self):
        cube = _make_raster_long()
        result = aggregate_calendar(cube, by="month", reducer="mean")
        assert result.sizes["month"] == 12
        expected = cube.isel(time=[0, 12]).mean("time")
        np.testing.assert_allclose(
            result.sel(month=1).transpose(*expected.dims).values, expected.values, rtol=1e-5
        )

    def test_per_year(self):
        cube = _make_raster_long()
        result = aggregate_calendar(cube, by="year", reducer="max")
        assert list(result.coords["year"].values) == [2023, 2024]

    def test_labels_fill_missing_months(self):
        cube = filter_calendar(_make_raster_long(), months=[1, 2])
        result = aggregate_calendar(cube, by="month", reducer="median", labels=range(1, 13))
        assert list(result.coords["month"].values) == list(range(1, 13))
        assert np.isnan(result.sel(month=7).values).all()
        assert np.isfinite(result.sel(month=1).values).all()

    def test_invalid_grouping(self):
        with pytest.raises(ValueError, match="by must be"):
            aggregate_calendar(_make_raster_long(), by="week")


class TestSummariseTemporal:
    def test_year_month_multi_stats(self):
        cube = _make_raster_long()
        result = summarise_temporal(cube, by=("year", "month"), stats=("mean", "min"))
        assert result.sizes["period"] == 14
        assert list(result.coords["bands"].values) == ["red_mean", "nir_mean", "red_min", "nir_min"]
        assert "2023-01" in result.coords["period"].values

        got = result.sel(period="2023-01", bands="red_mean").transpose("latitude", "longitude")
        np.testing.assert_allclose(got.values, cube.isel(time=0).sel(bands="red").values, rtol=1e-5)

    def test_month_climatology(self):
        cube = _make_raster_long()
        result = summarise_temporal(cube, by=("month",), stats=("mean", "std"))
        assert result.sizes["period"] == 12
        assert "01" in result.coords["period"].values

        got = result.sel(period="01", bands="nir_std").transpose("latitude", "longitude")
        expected = cube.isel(time=[0, 12]).sel(bands="nir").std("time")
        np.testing.assert_allclose(got.values, expected.values, rtol=1e-5)

    def test_single_band_cube_named_after_array(self):
        cube = ndvi(_make_raster_long())
        result = summarise_temporal(cube, by=("year",), stats=("max",))
        assert list(result.coords["bands"].values) == ["ndvi_max"]
        assert list(result.coords["period"].values) == ["2023", "2024"]

    def test_invalid_field(self):
        with pytest.raises(ValueError, match="Unsupported grouping field"):
            summarise_temporal(_make_raster_long(), by=("week",))

    def test_invalid_stat(self):
        with pytest.raises(ValueError, match="Unsupported reducer"):
            summarise_temporal(_make_raster_long(), stats=("mode",))


# ---------------------------------------------------------------
# Band stacking
# ---------------------------------------------------------------


class TestToBands:
    def test_month_bands(self):
        monthly = aggregate_calendar(ndvi(_make_raster_long()), by="month", labels=range(1, 13))
        result = to_bands(monthly, dim="month", prefix="ndvi")
        assert "month" not in result.dims
        assert list(result.coords["bands"].values) == [f"ndvi_{m}" for m in range(1, 13)]

    def test_index_prefix(self):
        yearly = aggregate_calendar(ndvi(_make_raster_long()), by="year")
        result = to_bands(yearly, dim="year", prefix="ndvi", index_prefix=True)
        assert list(result.coords["bands"].values) == ["0_ndvi_2023", "1_ndvi_2024"]

    def test_time_labels_are_dates(self):
        result = to_bands(ndvi(_make_raster()), dim="time", prefix="ndvi")
        assert list(result.coords["bands"].values) == ["ndvi_2023-01-31", "ndvi_2023-02-28"]

    def test_single_band_dimension_is_dropped(self):
        cube = _make_raster().sel(bands=["nir"])
        result = to_bands(cube, dim="time", prefix="nir")
        assert result.sizes["bands"] == 2

    def test_multi_band_raises(self):
        with pytest.raises(ValueError, match="single-band"):
            to_bands(_make_raster(), dim="time", prefix="x")

    def test_missing_dimension(self):
        with pytest.raises(DimensionNotAvailable, match="does not exist"):
            to_bands(ndvi(_make_raster()), dim="month", prefix="ndvi")


class TestBandNames:
    def test_clean_band_names(self):
        names = ["0_ndvi_1", "X2_wvp_3", "ndvi_5", "12_lc_2020"]
        assert clean_band_names(names) == ["ndvi_1", "wvp_3", "ndvi_5", "lc_2020"]

    def test_rename_with_mapping(self):
        result = rename_bands(_make_raster(), {"nir": "B08"})
        assert list(result.coords["bands"].values) == ["red", "B08"]

    def test_rename_with_function(self):
        result = rename_bands(_make_raster(), str.upper)
        assert list(result.coords["bands"].values) == ["RED", "NIR"]


# ---------------------------------------------------------------
# aggregate_spatial
# ---------------------------------------------------------------


class TestAggregateSpatial:
    def test_aggregate_spatial_full_extent(self):
        cube = _make_raster()
        result = aggregate_spatial(cube, None, reducer="mean")
        assert "longitude" not in result.dims
        assert "latitude" not in result.dims

    def test_aggregate_spatial_with_geometries(self):
        import geopandas as gpd

        cube = _make_raster()
        gdf = gpd.GeoDataFrame(
            {"id": [1, 2]},
            geometry=[box(10.0, 50.0, 10.5, 50.5), box(10.5, 50.5, 11.0, 51.0)],
            crs="EPSG:4326",
        )
        result = aggregate_spatial(cube, gdf, reducer="mean")

        assert isinstance(result, gpd.GeoDataFrame)
        assert len(result) == 2
        assert result["id"].tolist() == [1, 2]
        for col in ["red_2023-01", "red_2023-02", "nir_2023-01", "nir_2023-02"]:
            assert col in result.columns

    def test_aggregate_spatial_crs_alignment(self):
        import geopandas as gpd
        import rioxarray  # noqa: F401

        cube = _make_raster()
        cube = cube.rio.set_spatial_dims(x_dim="longitude", y_dim="latitude")
        cube = cube.rio.write_crs("EPSG:4326")

        geom = box(1113194, 6446275, 1167600, 6621210)
        gdf = gpd.GeoDataFrame({"id": [1]}, geometry=[geom], crs="EPSG:3857")

        result = aggregate_spatial(cube, gdf, reducer="mean")
        assert isinstance(result, gpd.GeoDataFrame)
        assert str(result.crs) == "EPSG:4326"
        assert len(result) == 1

    def test_aggregate_spatial_no_intersection(self):
        import geopandas as gpd

        gdf = gpd.GeoDataFrame({"id": [1]}, geometry=[box(20.0, 60.0, 21.0, 61.0)], crs="EPSG:4326")
        with pytest.raises(ValueError, match="No geometries intersect"):
            aggregate_spatial(_make_raster(), gdf, reducer="mean")

    def test_single_image_column_named_after_reducer(self):
        import geopandas as gpd

        image = composite(ndvi(_make_raster()), reducer="mean")
        gdf = gpd.GeoDataFrame({"plot": ["A"]}, geometry=[_EVERYTHING], crs="EPSG:4326")
        result = aggregate_spatial(image, gdf, reducer="max")
        assert list(result.columns) == ["plot", "max", "geometry"]
        assert result["max"].iloc[0] == pytest.approx(float(np.nanmax(image.values)), rel=1e-5)

    def test_band_columns_after_to_bands(self):
        import geopandas as gpd

        monthly = to_bands(ndvi(_make_raster()), dim="time", prefix="ndvi", index_prefix=True)
        gdf = gpd.GeoDataFrame({"plot": ["A"]}, geometry=[_EVERYTHING], crs="EPSG:4326")
        result = aggregate_spatial(monthly, gdf, reducer="mean")
        assert "0_ndvi_2023-01-31" in result.columns
        assert "1_ndvi_2023-02-28" in result.columns

    def test_polygon_covering_every_pixel(self):
        import geopandas as gpd

        image = _make_image(np.arange(16.0))
        image[0, 0] = np.nan
        gdf = gpd.GeoDataFrame({"id": [1]}, geometry=[box(9.5, 49.5, 11.5, 51.5)], crs="EPSG:4326")
        result = aggregate_spatial(image, gdf, reducer="mean")
        assert len(result) == 1
        assert result["mean"].iloc[0] == pytest.approx(float(np.nanmean(image.values)))

    def test_polygon_covering_every_pixel_of_dask_cube(self):
        import geopandas as gpd

        cube = _make_raster(dask_backed=True)
        gdf = gpd.GeoDataFrame({"id": [1]}, geometry=[_EVERYTHING], crs="EPSG:4326")
        result = aggregate_spatial(cube, gdf, reducer="max")
        expected = cube.sel(bands="red", time="2023-01-31").max().compute().item()
        assert result["red_2023-01"].iloc[0] == pytest.approx(expected)

    def test_unknown_reducer(self):
        with pytest.raises(ValueError, match="Unsupported reducer"):
            aggregate_spatial(_make_raster(), None, reducer="mode")


# ---------------------------------------------------------------
# reduce_region / reduce_at_scales / sample_points
# ---------------------------------------------------------------


class TestReduceRegion:
    def test_single_reducer_keys_are_band_names(self):
        image = _make_image(np.arange(16))
        assert reduce_region(image, _EVERYTHING, reducers="mean") == {"elev": pytest.approx(7.5)}

    def test_multiple_reducers(self):
        image = _make_image(np.arange(16))
        result = reduce_region(image, _EVERYTHING, reducers=["min", "max", "count"])
        assert result == {"elev_min": 0.0, "elev_max": 15.0, "elev_count": 16.0}

    def test_population_std_and_variance(self):
        values = np.arange(16)
        result = reduce_region(_make_image(values), _EVERYTHING, reducers=["std", "variance"])
        assert result["elev_std"] == pytest.approx(np.std(values))
        assert result["elev_variance"] == pytest.approx(np.var(values))

    def test_mode_prefers_smallest_tie(self):
        values = np.array([3, 3, 1, 1] + [7] * 2 + [5] * 10)
        values[6:] = np.arange(10) + 20
        result = reduce_region(_make_image(values), _EVERYTHING, reducers="mode")
        assert result["elev"] == 1.0

    def test_nan_pixels_are_ignored(self):
        values = np.arange(16, dtype=float)
        values[0] = np.nan
        result = reduce_region(_make_image(values), _EVERYTHING, reducers=["count", "min"])
        assert result["elev_count"] == 15.0
        assert result["elev_min"] == 1.0

    def test_partial_region(self):
        image = _make_image(np.arange(16))
        # Only the south-west pixel centre (10, 50) lies inside
        result = reduce_region(image, box(9.9, 49.9, 10.1, 50.1), reducers="sum")
        assert result["elev"] == 0.0

    def test_empty_region(self):
        image = _make_image(np.arange(16))
        result = reduce_region(image, box(20, 60, 21, 61), reducers=["mean", "count"])
        assert np.isnan(result["elev_mean"])
        assert result["elev_count"] == 0.0

    def test_band_cube(self):
        image = _make_raster().isel(time=0)
        result = reduce_region(image, _EVERYTHING, reducers="max")
        assert set(result) == {"red", "nir"}
        assert result["nir"] == pytest.approx(float(image.sel(bands="nir").max()))

    def test_extra_dimension_raises(self):
        with pytest.raises(ValueError, match="single image"):
            reduce_region(_make_raster(), _EVERYTHING)

    def test_unknown_reducer(self):
        with pytest.raises(ValueError, match="Unsupported reducer"):
            reduce_region(_make_image(np.arange(16)), _EVERYTHING, reducers="p90")


class TestReduceAtScales:
    def test_constant_image_same_at_every_scale(self):
        image = _make_utm_image(value=2.5)
        region = box(499_990, 9_899_790, 500_200, 9_900_010)
        result = reduce_at_scales(image, region, [10, 20, 40, 100])
        assert list(result.columns) == ["scale", "value"]
        assert result["scale"].tolist() == [10, 20, 40, 100]
        np.testing.assert_allclose(result["value"].to_numpy(), 2.5)

    def test_coarser_scale_averages_blocks(self):
        image = _make_utm_image(n=4)
        image.values[:] = np.arange(16).reshape(4, 4)
        region = box(499_990, 9_899_960, 500_040, 9_900_010)
        result = reduce_at_scales(image, region, [10, 20], reducer="max")
        assert result["value"].tolist() == [15.0, 12.5]

    def test_finer_than_native_raises(self):
        with pytest.raises(ValueError, match="finer than the native"):
            reduce_at_scales(_make_utm_image(), box(0, 0, 1, 1), [5])


class TestSamplePoints:
    def test_sample_nearest_pixel(self):
        import geopandas as gpd
        from shapely.geometry import Point

        image = _make_raster().isel(time=0)
        points = gpd.GeoDataFrame(
            {"id": ["a", "b"]},
            geometry=[Point(10.01, 50.02), Point(20, 60)],
            crs="EPSG:4326",
        )
        result = sample_points(image, points)
        assert result["id"].tolist() == ["a"]
        assert result["red"].iloc[0] == pytest.approx(float(image.sel(bands="red")[0, 0]))
        assert result["nir"].iloc[0] == pytest.approx(float(image.sel(bands="nir")[0, 0]))

    def test_drop_nulls(self):
        import geopandas as gpd
        from shapely.geometry import Point

        image = _make_image(np.arange(16, dtype=float))
        image.values[0, 0] = np.nan
        points = gpd.GeoDataFrame(geometry=[Point(10, 50), Point(11, 51)], crs="EPSG:4326")

        assert len(sample_points(image, points)) == 1
        kept = sample_points(image, points, drop_nulls=False)
        assert len(kept) == 2
        assert kept["elev"].isna().sum() == 1


# ---------------------------------------------------------------
# Masks and area
# ---------------------------------------------------------------


class TestMasksAndArea:
    def test_update_mask(self):
        image = _make_image(np.arange(16))
        mask = image > 7
        result = update_mask(image, mask)
        assert int(result.notnull().sum()) == 8

    def test_self_mask(self):
        flags = _make_image(np.array([0, 1] * 8))
        result = self_mask(flags)
        assert int(result.notnull().sum()) == 8
        assert float(result.max()) == 1.0

    def test_projected_pixel_area(self):
        area = pixel_area(_make_utm_image(n=5))
        assert area.name == "area"
        np.testing.assert_allclose(area.values, 100.0)

    def test_geographic_pixel_area(self):
        grid = xr.DataArray(
            np.zeros((2, 2)),
            dims=["latitude", "longitude"],
            coords={"latitude": [-0.5, 0.5], "longitude": [0.5, 1.5]},
        )
        area = pixel_area(grid)
        # One square degree at the equator is about 111.2 km on each side
        np.testing.assert_allclose(area.values, 111_195.0**2, rtol=1e-3)

    def test_masked_area_units(self):
        image = _make_utm_image(n=4)
        image.values[:] = 0
        image.values[0, :3] = 1
        assert masked_area(image, units="m2") == pytest.approx(300.0)
        assert masked_area(image, units="ha") == pytest.approx(0.03)

    def test_masked_area_within_geometry(self):
        image = _make_utm_image(n=4)
        region = box(499_995, 9_899_995, 500_005, 9_900_005)
        assert masked_area(image, geometry=region, units="m2") == pytest.approx(100.0)

    def test_masked_area_ignores_nan(self):
        image = _make_utm_image(n=2)
        image.values[0, 0] = np.nan
        assert masked_area(image, units="m2") == pytest.approx(300.0)

    def test_unknown_units(self):
        with pytest.raises(ValueError, match="Unknown area units"):
            masked_area(_make_utm_image(), units="acre")


# ---------------------------------------------------------------
# resample_spatial
# ---------------------------------------------------------------


def _make_geo_raster() -> xr.DataArray:
    """Create a CRS-aware raster for resample_spatial tests."""
    np.random.seed(7)
    data = np.random.rand(2, 2, 10, 10).astype(np.float32)
    cube = xr.DataArray(
        data,
        dims=["time", "bands", "latitude", "longitude"],
        coords={
            "time": pd.date_range("2023-01-01", periods=2, freq="ME"),
            "bands": ["red", "nir"],
            "latitude": np.linspace(51, 50, 10),
            "longitude": np.linspace(10, 11, 10),
        },
    )
    import rioxarray  # noqa: F401

    cube = cube.rio.set_spatial_dims(x_dim="longitude", y_dim="latitude")
    return cube.rio.write_crs("EPSG:4326")


class TestResampleSpatial:
    def test_noop(self):
        cube = _make_geo_raster()
        assert resample_spatial(cube).sizes == cube.sizes

    def test_change_resolution_keeps_dims(self):
        cube = _make_geo_raster()
        result = resample_spatial(cube, resolution=0.25)
        assert "time" in result.dims
        assert "bands" in result.dims
        assert result.sizes["longitude"] < cube.sizes["longitude"]

    def test_reproject(self):
        result = resample_spatial(_make_geo_raster(), projection=3857)
        assert result.rio.crs.to_epsg() == 3857

    def test_invalid_method(self):
        with pytest.raises(ValueError, match="Unknown resampling method"):
            resample_spatial(_make_geo_raster(), resolution=0.25, method="invalid")


class TestApply:
    def test_apply_multiply(self):
        cube = _make_raster()
        result = apply(cube, lambda x: x * 2)
        np.testing.assert_allclose(result.values, cube.values * 2)

    def test_apply_dask_stays_lazy(self):
        cube = _make_raster(dask_backed=True)
        result = apply(cube, lambda x: x + 1)
        assert isinstance(result.data, da.Array)
