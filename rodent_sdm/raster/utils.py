from typing import Sequence, Tuple

import numpy as np
import xarray as xr
import rioxarray  # noqa: F401


def valid_cell_mask(stack: xr.Dataset) -> xr.DataArray:
    """True for cells where every layer of the stack holds data."""
    mask = None
    for name in stack.data_vars:
        layer_valid = stack[name].notnull()
        mask = layer_valid if mask is None else mask & layer_valid
    if mask is None:
        raise ValueError("Raster stack has no layers.")
    return mask


def points_to_cells(
    stack: xr.Dataset,
    longitudes: Sequence[float],
    latitudes: Sequence[float],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Row/column indices of the cells containing each point.

    Returns:
        rows, cols: integer arrays (meaningless where `inside` is False)
        inside: True where the point falls within the stack's grid
    """
    xs = np.asarray(longitudes, dtype=float)
    ys = np.asarray(latitudes, dtype=float)
    inverse = ~stack.rio.transform()

    col_f = inverse.a * xs + inverse.b * ys + inverse.c
    row_f = inverse.d * xs + inverse.e * ys + inverse.f
    finite = np.isfinite(col_f) & np.isfinite(row_f)
    cols = np.floor(np.where(finite, col_f, -1)).astype(int)
    rows = np.floor(np.where(finite, row_f, -1)).astype(int)

    inside = (
        finite
        & (rows >= 0)
        & (rows < stack.rio.height)
        & (cols >= 0)
        & (cols < stack.rio.width)
    )
    return rows, cols, inside


def cell_centres(stack: xr.Dataset, rows: np.ndarray, cols: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Longitude/latitude of the centres of the given cells."""
    return stack.x.values[cols], stack.y.values[rows]
