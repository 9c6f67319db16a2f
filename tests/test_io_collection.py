"""Tests for the STAC API collection loaders."""

from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest
import stackstac
import xarray as xr

from eo_recipes.exceptions import EmptyCollection
from eo_recipes.io.collection import (
    AWSCollectionLoader,
    BaseCollectionLoader,
    CollectionLoader,
    MicrosoftPlanetaryComputerLoader,
    _detect_common_epsg,
    _is_epsg_4326,
    _normalise_dims,
    _reproject_bbox,
    get_loader,
    load_collection,
)

_EXTENT = {"west": 35.30, "south": -0.41, "east": 35.31, "north": -0.40}


class _FakeCatalog:
    """Stands in for a pystac_client.Client, recording search kwargs."""

    def __init__(self, items: list) -> None:
        self.items = items
        self.searches: list[dict] = []

    def search(self, **kwargs):
        self.searches.append(kwargs)
        return SimpleNamespace(item_collection=lambda: list(self.items))


def _item(**properties) -> SimpleNamespace:
    return SimpleNamespace(properties=properties)


def _stacked(*args, **kwargs) -> xr.DataArray:
    return xr.DataArray(
        np.zeros((1, 2, 3, 3)),
        dims=["time", "band", "y", "x"],
        coords={
            "time": pd.to_datetime(["2024-06-01"]),
            "band": ["red", "nir"],
            "y": np.arange(3.0),
            "x": np.arange(3.0),
        },
    )


@pytest.fixture
def catalog(monkeypatch):
    fake = _FakeCatalog([_item(**{"proj:code": "EPSG:32736"}), _item(**{"proj:epsg": 32736})])
    monkeypatch.setattr(AWSCollectionLoader, "_open_catalog", lambda self: fake)
    return fake


@pytest.fixture
def stack_calls(monkeypatch):
    calls: list[dict] = []

    def fake_stack(items, **kwargs):
        calls.append({"items": items, **kwargs})
        return _stacked()

    monkeypatch.setattr(stackstac, "stack", fake_stack)
    return calls


class TestProviders:
    def test_get_loader(self):
        assert isinstance(get_loader("earth-search"), AWSCollectionLoader)
        loader = get_loader("planetary-computer", max_items=10)
        assert isinstance(loader, MicrosoftPlanetaryComputerLoader)
        assert loader.max_items == 10
        assert "planetarycomputer" in loader.api_url

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_loader("gee")

    def test_custom_api_url(self):
        assert AWSCollectionLoader("https://example.com/stac").api_url == "https://example.com/stac"

    def test_base_class_needs_url(self):
        class _NoUrl(BaseCollectionLoader):
            pass

        with pytest.raises(ValueError, match="DEFAULT_API_URL"):
            _NoUrl()

    def test_loaders_satisfy_protocol(self):
        assert isinstance(AWSCollectionLoader(), CollectionLoader)


class TestSearch:
    def test_search_kwargs(self, catalog):
        items = AWSCollectionLoader().search(
            "sentinel-2-l2a",
            spatial_extent=_EXTENT,
            temporal_extent=("2024-06-01", "2024-06-30"),
            properties={"eo:cloud_cover": {"lt": 60}},
            max_items=20,
        )
        assert len(items) == 2
        kwargs = catalog.searches[0]
        assert kwargs["collections"] == ["sentinel-2-l2a"]
        assert kwargs["bbox"] == [35.30, -0.41, 35.31, -0.40]
        assert kwargs["datetime"] == "2024-06-01/2024-06-30"
        assert kwargs["query"] == {"eo:cloud_cover": {"lt": 60}}
        assert kwargs["max_items"] == 20

    def test_projected_extent_is_searched_in_wgs84(self, catalog):
        extent = {"west": 0, "south": 0, "east": 111_319.5, "north": 111_325.1, "crs": 3857}
        AWSCollectionLoader().search("sentinel-2-l2a", spatial_extent=extent)
        bbox = catalog.searches[0]["bbox"]
        np.testing.assert_allclose(bbox, [0, 0, 1, 1], atol=1e-3)

    def test_empty_search(self, monkeypatch):
        monkeypatch.setattr(AWSCollectionLoader, "_open_catalog", lambda self: _FakeCatalog([]))
        with pytest.raises(EmptyCollection, match="No items found"):
            AWSCollectionLoader().search("sentinel-2-l2a")

    def test_empty_collection_is_value_error(self, monkeypatch):
        monkeypatch.setattr(AWSCollectionLoader, "_open_catalog", lambda self: _FakeCatalog([]))
        with pytest.raises(ValueError):
            AWSCollectionLoader().search("sentinel-2-l2a")


class TestLoadCollection:
    def test_stack_kwargs_and_dims(self, catalog, stack_calls):
        da = AWSCollectionLoader().load_collection(
            "sentinel-2-l2a",
            spatial_extent=_EXTENT,
            bands=["red", "nir"],
            resolution=10,
            max_items=3,
        )
        assert da.dims == ("time", "bands", "latitude", "longitude")
        call = stack_calls[0]
        assert call["assets"] == ["red", "nir"]
        assert call["epsg"] == 32736
        assert call["bounds_latlon"] == [35.30, -0.41, 35.31, -0.40]
        assert call["resolution"] == 10
        assert "max_items" not in call
        assert catalog.searches[0]["max_items"] == 3

    def test_explicit_crs_uses_projected_bounds(self, catalog, stack_calls):
        extent = {"west": 500_000, "south": 9_950_000, "east": 501_000, "north": 9_951_000, "crs": 32736}
        AWSCollectionLoader().load_collection("sentinel-2-l2a", spatial_extent=extent)
        call = stack_calls[0]
        assert call["epsg"] == 32736
        assert call["bounds"] == [500_000, 9_950_000, 501_000, 9_951_000]
        assert "bounds_latlon" not in call

    def test_module_function_with_adapter(self):
        class _Adapter:
            def load_collection(self, collection_id, **kwargs):
                return collection_id, kwargs

        cid, kwargs = load_collection("nasadem", bands=["elevation"], adapter=_Adapter())
        assert cid == "nasadem"
        assert kwargs["bands"] == ["elevation"]


class TestHelpers:
    def test_detect_common_epsg(self):
        assert _detect_common_epsg([_item(**{"proj:code": "EPSG:32637"})]) == 32637
        assert _detect_common_epsg([_item(**{"proj:epsg": 32636}), _item(**{"proj:epsg": 32637})]) == 4326
        assert _detect_common_epsg([_item()]) == 4326

    def test_is_epsg_4326(self):
        assert _is_epsg_4326(4326)
        assert _is_epsg_4326("epsg:4326")
        assert not _is_epsg_4326(32636)

    def test_reproject_bbox(self):
        west, south, east, north = _reproject_bbox([0, 0, 1, 1], 4326, 3857)
        assert west == pytest.approx(0)
        assert east == pytest.approx(111_319.49, rel=1e-6)
        assert north > south

    def test_normalise_dims(self):
        assert _normalise_dims(_stacked()).dims == ("time", "bands", "latitude", "longitude")
