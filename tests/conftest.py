import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from rodent_sdm.occurrence import occurrences_to_gdf

from raster_fixtures import make_stack, write_layer


@pytest.fixture
def grid_stack() -> xr.Dataset:
    """10x10 one-degree stack with two layers and a missing column."""
    cols = np.tile(np.arange(10, dtype=float), (10, 1))
    rows = np.tile(np.arange(10, dtype=float)[:, None], (1, 10))
    bio1 = cols.copy()
    bio2 = rows.copy()
    bio1[:, 0] = np.nan
    return make_stack({"bio1": bio1, "bio2": bio2})


@pytest.fixture
def occurrences():
    records = pd.DataFrame(
        {
            "longitude": [2.5, 3.5, 2.5, 3.5, 4.5],
            "latitude": [2.5, 2.5, 3.5, 3.5, 4.5],
        }
    )
    return occurrences_to_gdf(records)


@pytest.fixture
def bioclim_dir(tmp_path):
    """Directory of 19 aligned 24x24 GeoTIFFs at 10 arc-minutes, WorldClim-style names."""
    layer_dir = tmp_path / "bioclim"
    layer_dir.mkdir()
    rng = np.random.default_rng(0)
    cols = np.tile(np.arange(24, dtype=float), (24, 1))
    rows = np.tile(np.arange(24, dtype=float)[:, None], (1, 24))
    for i in range(1, 20):
        values = (i % 3 + 1) * cols + (i % 2) * rows + rng.normal(0, 2.0, cols.shape)
        values[0, 0] = -9999.0
        write_layer(layer_dir / f"wc2.1_10m_bio_{i}.tif", values)
    return layer_dir
