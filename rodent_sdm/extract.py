"""Extraction of raster stack values at point locations."""

import logging
from typing import List, Optional

import numpy as np
import pandas as pd
import xarray as xr

from rodent_sdm.occurrence.sampling import PRESENCE_COLUMN
from rodent_sdm.raster.utils import points_to_cells

logger = logging.getLogger(__name__)


def extract_values_at_points(
    points: pd.DataFrame,
    stack: xr.Dataset,
    covariates: Optional[List[str]] = None,
) -> pd.DataFrame:
    """Values of each covariate layer in the cell under every point.

    Points outside the stack, or on missing cells, get NaN. The result shares the index of
    `points` and has one column per covariate, in the order given.
    """
    if covariates is None:
        covariates = [str(name) for name in stack.data_vars]
    missing = [c for c in covariates if c not in stack.data_vars]
    if missing:
        raise KeyError(f"Covariates {missing} are not layers of the raster stack")

    rows, cols, inside = points_to_cells(stack, points["longitude"], points["latitude"])
    n_outside = int((~inside).sum())
    if n_outside:
        logger.warning(f"{n_outside} points fall outside the raster stack; their values are NaN.")

    values = {}
    for name in covariates:
        grid = stack[name].transpose("y", "x").values
        column = np.full(len(points), np.nan)
        column[inside] = grid[rows[inside], cols[inside]]
        values[name] = column

    return pd.DataFrame(values, index=points.index, columns=covariates)


def build_feature_table(
    labeled_points: pd.DataFrame,
    stack: xr.Dataset,
    covariates: Optional[List[str]] = None,
) -> pd.DataFrame:
    """Label column plus extracted covariates; coordinates are not carried over."""
    covariate_values = extract_values_at_points(labeled_points, stack, covariates)
    features = pd.concat(
        [labeled_points[[PRESENCE_COLUMN]].astype(int), covariate_values], axis=1
    )
    logger.info(
        f"Feature table: {len(features)} rows, {covariate_values.shape[1]} covariates, "
        f"{int(features[PRESENCE_COLUMN].sum())} presences."
    )
    return features


def drop_incomplete_rows(features: pd.DataFrame, covariates: List[str]) -> pd.DataFrame:
    """Drops rows with any missing covariate, logging how many of each class were lost."""
    complete = features[covariates].notna().all(axis=1)
    if not complete.all():
        dropped = features.loc[~complete, PRESENCE_COLUMN]
        logger.warning(
            f"Dropping {len(dropped)} rows with missing covariates "
            f"({int((dropped == 1).sum())} presences, {int((dropped == 0).sum())} background)."
        )
    return features.loc[complete]
