import numpy as np
import pytest

from rodent_sdm.errors import InsufficientDataError
from rodent_sdm.raster.extent import Extent, compute_extent, crop_to_extent, expand_extent


def test_compute_extent_floors_and_ceils():
    extent = compute_extent([-3.7, 10.2], [12.3, 45.6])
    assert extent == Extent(min_lon=-4.0, max_lon=11.0, min_lat=12.0, max_lat=46.0)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_compute_extent_contains_all_points(seed):
    rng = np.random.default_rng(seed)
    lons = rng.uniform(-170, 170, 50)
    lats = rng.uniform(-80, 80, 50)
    extent = compute_extent(lons, lats)

    assert (extent.min_lon <= lons).all() and (lons <= extent.max_lon).all()
    assert (extent.min_lat <= lats).all() and (lats <= extent.max_lat).all()
    for bound in (extent.min_lon, extent.max_lon, extent.min_lat, extent.max_lat):
        assert float(bound).is_integer()


def test_compute_extent_integer_coordinates_unchanged():
    extent = compute_extent([1.0, 3.0], [5.0, 7.0])
    assert extent.bounds == (1.0, 5.0, 3.0, 7.0)


def test_compute_extent_ignores_nan():
    extent = compute_extent([1.2, np.nan], [5.5, 2.0])
    assert extent == Extent(1.0, 2.0, 5.0, 6.0)


@pytest.mark.parametrize("lons, lats", [([], []), ([np.nan], [np.nan])])
def test_compute_extent_empty_raises(lons, lats):
    with pytest.raises(InsufficientDataError):
        compute_extent(lons, lats)


def test_expand_extent_scales_about_centre():
    extent = Extent(-10.0, 30.0, 12.0, 46.0)
    expanded = expand_extent(extent, 1.25)

    assert expanded.width == pytest.approx(1.25 * extent.width)
    assert expanded.height == pytest.approx(1.25 * extent.height)
    assert expanded.center == pytest.approx(extent.center)
    assert expanded.min_lon == pytest.approx(-15.0)
    assert expanded.max_lat == pytest.approx(50.25)


@pytest.mark.parametrize("factor", [0, -1.25])
def test_expand_extent_rejects_non_positive_factor(factor):
    with pytest.raises(ValueError):
        expand_extent(Extent(0, 1, 0, 1), factor)


def test_crop_to_extent(grid_stack):
    cropped = crop_to_extent(grid_stack, Extent(2.0, 5.0, 2.0, 5.0))

    assert list(cropped.data_vars) == ["bio1", "bio2"]
    assert cropped.x.min() >= 1.5 and cropped.x.max() <= 5.5
    assert cropped.y.min() >= 1.5 and cropped.y.max() <= 5.5
    assert 2.5 in cropped.x.values and 4.5 in cropped.x.values


def test_crop_outside_stack_raises(grid_stack):
    with pytest.raises(InsufficientDataError):
        crop_to_extent(grid_stack, Extent(50.0, 60.0, 50.0, 60.0))


def test_crop_zero_width_extent_raises(grid_stack):
    extent = compute_extent([3.0, 3.0], [2.5, 4.5])
    assert extent.width == 0

    with pytest.raises(InsufficientDataError, match="zero width or height"):
        crop_to_extent(grid_stack, expand_extent(extent))
