"""Model prediction functionality for SDM models."""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import pandas as pd
import xarray as xr
import rioxarray  # noqa: F401

from rodent_sdm.models.training import FittedModel

logger = logging.getLogger(__name__)


def predict_suitability(model: FittedModel, stack: xr.Dataset) -> xr.DataArray:
    """Probability of presence for every cell of the stack.

    Cells with any missing covariate stay NaN.
    """
    missing = [c for c in model.covariates if c not in stack.data_vars]
    if missing:
        raise KeyError(f"Raster stack is missing covariate layers {missing}")

    grids = [stack[name].transpose("y", "x").values for name in model.covariates]
    cube = np.stack(grids, axis=-1).astype(float)
    n_rows, n_cols, n_covariates = cube.shape
    flat = cube.reshape(-1, n_covariates)
    valid = np.isfinite(flat).all(axis=1)

    predictions = np.full(flat.shape[0], np.nan)
    if valid.any():
        predictions[valid] = model.predict(
            pd.DataFrame(flat[valid], columns=model.covariates)
        )
    logger.info(f"Predicted suitability for {int(valid.sum())} of {flat.shape[0]} cells.")

    surface = xr.DataArray(
        predictions.reshape(n_rows, n_cols),
        coords={"y": stack.y.values, "x": stack.x.values},
        dims=("y", "x"),
        name="suitability",
    )
    if stack.rio.crs is not None:
        surface = surface.rio.write_crs(stack.rio.crs)
    surface.rio.write_transform(stack.rio.transform(), inplace=True)
    surface.rio.write_nodata(np.nan, inplace=True)
    return surface


def binarize_surface(surface: xr.DataArray, threshold: float) -> xr.DataArray:
    """1 where suitability exceeds the threshold, 0 where it does not, NaN where unknown."""
    binary = xr.where(surface.notnull(), (surface > threshold).astype(float), np.nan)
    binary = binary.rename("suitable")
    if surface.rio.crs is not None:
        binary = binary.rio.write_crs(surface.rio.crs)
    binary.rio.write_nodata(np.nan, inplace=True)
    n_suitable = int((binary == 1).sum())
    logger.info(f"{n_suitable} cells above threshold {threshold:.4f}.")
    return binary


def save_prediction_raster(surface: xr.DataArray, output_path: Union[str, Path]) -> Path:
    """Save a surface as a float32 GeoTIFF with NaN nodata."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    surface.astype("float32").rio.to_raster(output_path)
    logger.info(f"Saved prediction raster to: {output_path}")
    return output_path
