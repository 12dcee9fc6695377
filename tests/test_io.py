import numpy as np
import pandas as pd
import geopandas as gpd
import pytest
import yaml

from rodent_sdm.errors import OccurrenceDataError
from rodent_sdm.utils.io import load_basemap, load_config, load_occurrence_cache


def test_default_config():
    config = load_config()

    assert config["sampling"]["n_background"] == 1000
    assert config["sampling"]["seed"] == 42
    assert config["sampling"]["extent_expansion"] == 1.25
    assert config["model"]["n_folds"] == 5
    assert config["model"]["test_fold"] == 1
    assert config["raster"]["resolution_arcmin"] == 10


def test_user_config_overrides_and_resolves_paths(tmp_path):
    config_path = tmp_path / "run.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "paths": {"occurrence_cache": "data/gbif.csv"},
                "sampling": {"n_background": 250},
            }
        )
    )
    config = load_config(config_path)

    assert config["sampling"]["n_background"] == 250
    assert config["sampling"]["seed"] == 42
    assert config["paths"]["occurrence_cache"] == str(tmp_path / "data" / "gbif.csv")
    assert config["paths"]["basemap"] is None


@pytest.mark.parametrize(
    "override",
    [
        {"model": {"test_fold": 6}},
        {"model": {"n_folds": 1, "test_fold": 1}},
        {"sampling": {"n_background": 0}},
        {"sampling": {"extent_expansion": -1}},
        {"model": {"on_fit_problem": "ignore"}},
        {"sampling": {"n_background": None}},
        {"model": {"n_folds": "five"}},
    ],
)
def test_invalid_config_raises(tmp_path, override):
    config_path = tmp_path / "bad.yaml"
    config_path.write_text(yaml.safe_dump(override))
    with pytest.raises(ValueError):
        load_config(config_path)


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_load_csv_cache(tmp_path):
    path = tmp_path / "gbif.csv"
    pd.DataFrame(
        {"species": ["Mus musculus"] * 3, "lon": [1.0, np.nan, 2.5], "lat": [50.0, 51.0, 52.0]}
    ).to_csv(path, index=False)

    records = load_occurrence_cache(path)
    assert list(records.columns) == ["longitude", "latitude"]
    assert len(records) == 3
    assert records["longitude"].isna().sum() == 1


def test_load_custom_columns(tmp_path):
    path = tmp_path / "gbif.csv"
    pd.DataFrame({"decimalLongitude": [1.0], "decimalLatitude": [2.0]}).to_csv(path, index=False)
    records = load_occurrence_cache(
        path, longitude_column="decimalLongitude", latitude_column="decimalLatitude"
    )
    assert records.iloc[0].tolist() == [1.0, 2.0]


def test_load_geojson_cache(tmp_path):
    path = tmp_path / "occurrences.geojson"
    gpd.GeoDataFrame(
        {"name": ["a", "b"]}, geometry=gpd.points_from_xy([3.0, 4.0], [5.0, 6.0]), crs="EPSG:4326"
    ).to_file(path, driver="GeoJSON")

    records = load_occurrence_cache(path)
    assert records["longitude"].tolist() == [3.0, 4.0]
    assert records["latitude"].tolist() == [5.0, 6.0]


def test_missing_columns_raise(tmp_path):
    path = tmp_path / "gbif.csv"
    pd.DataFrame({"x": [1.0], "y": [2.0]}).to_csv(path, index=False)
    with pytest.raises(OccurrenceDataError):
        load_occurrence_cache(path)


def test_missing_cache_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_occurrence_cache(tmp_path / "gbif.csv")


def test_unsupported_format(tmp_path):
    path = tmp_path / "gbif.rds"
    path.write_bytes(b"")
    with pytest.raises(OccurrenceDataError):
        load_occurrence_cache(path)


def test_load_basemap(tmp_path):
    assert load_basemap(None) is None
    with pytest.raises(FileNotFoundError):
        load_basemap(tmp_path / "coast.gpkg")
