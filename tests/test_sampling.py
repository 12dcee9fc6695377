import numpy as np
import pandas as pd
import pytest

from rodent_sdm.errors import InsufficientBackgroundError, InsufficientDataError
from rodent_sdm.extract import extract_values_at_points
from rodent_sdm.occurrence import (
    drop_missing_coordinates,
    label_points,
    occurrences_to_gdf,
    sample_background_points,
)


def test_sample_background_points_count(grid_stack):
    background = sample_background_points(grid_stack, 25, np.random.default_rng(42))
    assert len(background) == 25
    assert list(background.columns[:2]) == ["longitude", "latitude"]


def test_background_points_avoid_missing_cells(grid_stack):
    background = sample_background_points(grid_stack, 90, np.random.default_rng(1))
    values = extract_values_at_points(background, grid_stack)

    assert values.notna().all().all()
    # column 0 (longitude 0-1) is missing in bio1
    assert (background["longitude"] > 1).all()


def test_background_points_are_distinct_cell_centres(grid_stack):
    background = sample_background_points(grid_stack, 50, np.random.default_rng(3))

    assert not background.duplicated(subset=["longitude", "latitude"]).any()
    assert np.allclose(background["longitude"] % 1, 0.5)
    assert np.allclose(background["latitude"] % 1, 0.5)


def test_background_sampling_is_deterministic(grid_stack):
    first = sample_background_points(grid_stack, 30, np.random.default_rng(42))
    second = sample_background_points(grid_stack, 30, np.random.default_rng(42))
    other = sample_background_points(grid_stack, 30, np.random.default_rng(7))

    pd.testing.assert_frame_equal(
        first[["longitude", "latitude"]], second[["longitude", "latitude"]]
    )
    assert not np.array_equal(first[["longitude", "latitude"]].values, other[["longitude", "latitude"]].values)


def test_insufficient_valid_cells_raises(grid_stack):
    # 90 valid cells
    with pytest.raises(InsufficientBackgroundError):
        sample_background_points(grid_stack, 91, np.random.default_rng(42))


def test_allow_fewer_returns_every_valid_cell(grid_stack, caplog):
    background = sample_background_points(
        grid_stack, 500, np.random.default_rng(42), allow_fewer=True
    )
    assert len(background) == 90
    assert not background.duplicated(subset=["longitude", "latitude"]).any()
    assert "less than requested" in caplog.text


def test_exclude_points_removes_occurrence_cells(grid_stack, occurrences):
    background = sample_background_points(
        grid_stack, 85, np.random.default_rng(42), exclude_points=occurrences
    )
    occupied = set(zip(occurrences["longitude"], occurrences["latitude"]))
    sampled = set(zip(background["longitude"], background["latitude"]))
    assert len(background) == 85
    assert occupied.isdisjoint(sampled)


def test_label_points(occurrences, grid_stack):
    background = sample_background_points(grid_stack, 10, np.random.default_rng(0))
    labeled = label_points(occurrences, background)

    assert len(labeled) == len(occurrences) + len(background)
    assert labeled["presence"].tolist() == [1] * 5 + [0] * 10
    assert labeled.crs == occurrences.crs
    assert labeled.geometry.x.tolist() == labeled["longitude"].tolist()


def test_drop_missing_coordinates():
    records = pd.DataFrame(
        {
            "longitude": [1.0, np.nan, 3.0, 200.0],
            "latitude": [1.0, 2.0, np.nan, 4.0],
        }
    )
    cleaned = drop_missing_coordinates(records)
    assert cleaned["longitude"].tolist() == [1.0]


def test_occurrences_to_gdf_empty_raises():
    records = pd.DataFrame({"longitude": [np.nan], "latitude": [np.nan]})
    with pytest.raises(InsufficientDataError):
        occurrences_to_gdf(records)
