import logging
from typing import Optional

import numpy as np
import pandas as pd
import geopandas as gpd
import xarray as xr

from rodent_sdm.errors import InsufficientBackgroundError
from rodent_sdm.raster.utils import cell_centres, points_to_cells, valid_cell_mask

logger = logging.getLogger(__name__)

PRESENCE_COLUMN = "presence"


def sample_background_points(
    stack: xr.Dataset,
    n_background_points: int,
    rng: np.random.Generator,
    exclude_points: Optional[pd.DataFrame] = None,
    allow_fewer: bool = False,
) -> gpd.GeoDataFrame:
    """
    Sample pseudo-absence points uniformly, without replacement, from the valid cells of a stack.

    Args:
        stack: Raster stack; a cell is valid when no layer is missing there.
        n_background_points: Number of points to draw.
        rng: Generator that drives the draw. The same generator state gives the same points.
        exclude_points: Optional DataFrame with 'longitude'/'latitude' columns whose cells are
            removed from the sampling pool (typically the occurrences).
        allow_fewer: Return every valid cell once, with a warning, when the pool is smaller than
            n_background_points. Otherwise InsufficientBackgroundError is raised.

    Returns:
        GeoDataFrame of cell-centre coordinates with 'longitude' and 'latitude' columns.
    """
    if n_background_points < 1:
        raise ValueError(f"n_background_points must be at least 1, got {n_background_points}")

    valid = valid_cell_mask(stack).transpose("y", "x").values.copy()

    if exclude_points is not None and len(exclude_points) > 0:
        rows, cols, inside = points_to_cells(
            stack, exclude_points["longitude"], exclude_points["latitude"]
        )
        valid[rows[inside], cols[inside]] = False
        logger.debug(f"Excluded {len(set(zip(rows[inside], cols[inside])))} occurrence cells")

    pool = np.flatnonzero(valid)
    logger.info(f"Sampling {n_background_points} background points from {len(pool)} valid cells...")

    if len(pool) < n_background_points:
        message = (
            f"Number of valid cells ({len(pool)}) is less than requested background points "
            f"({n_background_points})."
        )
        if not allow_fewer:
            raise InsufficientBackgroundError(message)
        logger.warning(message + " Using every valid cell once.")
        chosen = rng.permutation(pool)
    else:
        chosen = rng.choice(pool, size=n_background_points, replace=False)

    rows, cols = np.unravel_index(chosen, valid.shape)
    lons, lats = cell_centres(stack, rows, cols)

    background = gpd.GeoDataFrame(
        {"longitude": lons.astype(float), "latitude": lats.astype(float)},
        geometry=gpd.points_from_xy(lons, lats),
        crs=stack.rio.crs,
    )
    logger.info(f"Generated {len(background)} background points.")
    return background


def label_points(
    occurrences: pd.DataFrame,
    background: pd.DataFrame,
) -> gpd.GeoDataFrame:
    """
    Stack occurrences (presence = 1) on top of background points (presence = 0).

    No deduplication is done; a background point may share a cell with an occurrence.
    """
    presence = pd.DataFrame(
        {"longitude": occurrences["longitude"].to_numpy(), "latitude": occurrences["latitude"].to_numpy()}
    )
    presence[PRESENCE_COLUMN] = 1
    absence = pd.DataFrame(
        {"longitude": background["longitude"].to_numpy(), "latitude": background["latitude"].to_numpy()}
    )
    absence[PRESENCE_COLUMN] = 0

    labeled = pd.concat([presence, absence], ignore_index=True)
    labeled[PRESENCE_COLUMN] = labeled[PRESENCE_COLUMN].astype(int)

    crs = getattr(occurrences, "crs", None)
    if crs is None:
        crs = "EPSG:4326"
    return gpd.GeoDataFrame(
        labeled,
        geometry=gpd.points_from_xy(labeled["longitude"], labeled["latitude"]),
        crs=crs,
    )
