"""Geographic extents of occurrence data and cropping of raster stacks to them."""

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import xarray as xr
import rioxarray  # noqa: F401  registers the .rio accessor
from rasterio.errors import WindowError
from rioxarray.exceptions import NoDataInBounds

from rodent_sdm.errors import InsufficientDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Extent:
    """A longitude/latitude rectangle."""

    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    @property
    def width(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def height(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def center(self) -> Tuple[float, float]:
        return (self.min_lon + self.max_lon) / 2, (self.min_lat + self.max_lat) / 2

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy) ordering used by rasterio and shapely."""
        return self.min_lon, self.min_lat, self.max_lon, self.max_lat


def compute_extent(longitudes: Sequence[float], latitudes: Sequence[float]) -> Extent:
    """
    Integer extent enclosing all coordinates.

    Minimums are floored and maximums ceiled, so e.g. latitudes {12.3, 45.6} give (12, 46).
    """
    lons = np.asarray(longitudes, dtype=float)
    lats = np.asarray(latitudes, dtype=float)
    finite = np.isfinite(lons) & np.isfinite(lats)
    if not finite.any():
        raise InsufficientDataError(
            "Cannot compute an extent from an empty set of occurrence coordinates."
        )
    lons, lats = lons[finite], lats[finite]

    extent = Extent(
        min_lon=float(math.floor(lons.min())),
        max_lon=float(math.ceil(lons.max())),
        min_lat=float(math.floor(lats.min())),
        max_lat=float(math.ceil(lats.max())),
    )
    logger.info(f"Occurrence extent: {extent}")
    return extent


def expand_extent(extent: Extent, factor: float = 1.25) -> Extent:
    """Scales the width and height of an extent by `factor` about its centre."""
    if factor <= 0:
        raise ValueError(f"Expansion factor must be positive, got {factor}")
    pad_x = extent.width * (factor - 1) / 2
    pad_y = extent.height * (factor - 1) / 2
    return Extent(
        min_lon=extent.min_lon - pad_x,
        max_lon=extent.max_lon + pad_x,
        min_lat=extent.min_lat - pad_y,
        max_lat=extent.max_lat + pad_y,
    )


def crop_to_extent(stack: xr.Dataset, extent: Extent) -> xr.Dataset:
    """Crops every layer of a stack to the cells intersecting `extent`."""
    if extent.width <= 0 or extent.height <= 0:
        raise InsufficientDataError(
            f"Extent {extent} has zero width or height; the occurrences all share one "
            "integer longitude or latitude."
        )
    minx, miny, maxx, maxy = extent.bounds
    try:
        cropped = stack.rio.clip_box(minx=minx, miny=miny, maxx=maxx, maxy=maxy)
    except (NoDataInBounds, WindowError) as e:
        raise InsufficientDataError(
            f"Extent {extent} does not overlap the raster stack."
        ) from e
    logger.info(
        f"Cropped raster stack from {stack.rio.width}x{stack.rio.height} "
        f"to {cropped.rio.width}x{cropped.rio.height} cells."
    )
    return cropped
