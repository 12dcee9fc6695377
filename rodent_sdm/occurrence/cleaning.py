import logging

import geopandas as gpd
import pandas as pd

from rodent_sdm.errors import InsufficientDataError

logger = logging.getLogger(__name__)

OCCURRENCE_CRS = "EPSG:4326"


def drop_missing_coordinates(records: pd.DataFrame) -> pd.DataFrame:
    """Drops records with a missing or out-of-range longitude/latitude."""
    n_records = len(records)
    records = records.dropna(subset=["longitude", "latitude"])
    n_missing = n_records - len(records)
    if n_missing:
        logger.info(f"Dropped {n_missing} records with missing coordinates.")

    in_range = records["longitude"].between(-180, 180) & records["latitude"].between(-90, 90)
    if not in_range.all():
        logger.warning(
            f"Dropped {(~in_range).sum()} records with coordinates outside [-180, 180] x [-90, 90]."
        )
        records = records[in_range]

    return records.reset_index(drop=True)


def occurrences_to_gdf(records: pd.DataFrame) -> gpd.GeoDataFrame:
    """
    Cleans occurrence records and converts them to a point GeoDataFrame.

    Raises InsufficientDataError when no record with usable coordinates remains.
    """
    records = drop_missing_coordinates(records)
    if records.empty:
        raise InsufficientDataError(
            "No occurrence records with valid coordinates remain after filtering."
        )

    occurrences = gpd.GeoDataFrame(
        records[["longitude", "latitude"]].astype(float),
        geometry=gpd.points_from_xy(records["longitude"], records["latitude"]),
        crs=OCCURRENCE_CRS,
    )
    logger.info(f"Using {len(occurrences)} occurrence points.")
    return occurrences
