import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import geopandas as gpd
import pandas as pd
import yaml

from rodent_sdm.errors import OccurrenceDataError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"

PATH_KEYS = ("occurrence_cache", "bioclim_dir", "basemap", "output_dir")

VECTOR_SUFFIXES = {".geojson", ".gpkg", ".shp", ".json", ".fgb"}


def _deep_merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(config_path: Path) -> Dict:
    with open(config_path, "r") as f:
        config = yaml.safe_load(f)
    return config or {}


def validate_config(config: Dict) -> Dict:
    """Check the sections and values the pipeline relies on."""
    for section in ("paths", "occurrence", "raster", "sampling", "model", "outputs"):
        if not isinstance(config.get(section), dict):
            raise ValueError(f"Config is missing the '{section}' section.")

    sampling = config["sampling"]
    model = config["model"]
    if not isinstance(sampling.get("seed"), int):
        raise ValueError("sampling.seed must be an integer.")
    try:
        n_background = int(sampling["n_background"])
        extent_expansion = float(sampling["extent_expansion"])
        n_folds = int(model["n_folds"])
        test_fold = int(model["test_fold"])
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid numeric setting in config: {e!r}") from e

    if n_background < 1:
        raise ValueError("sampling.n_background must be at least 1.")
    if extent_expansion <= 0:
        raise ValueError("sampling.extent_expansion must be positive.")
    if n_folds < 2:
        raise ValueError("model.n_folds must be at least 2.")
    if not 1 <= test_fold <= n_folds:
        raise ValueError(
            f"model.test_fold must be between 1 and {model['n_folds']}, got {model['test_fold']}."
        )
    if model["on_fit_problem"] not in ("warn", "raise"):
        raise ValueError("model.on_fit_problem must be 'warn' or 'raise'.")
    return config


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Loads the packaged default configuration, merged with an optional user YAML file.

    Relative paths in the user file are resolved against the file's directory.
    """
    config = _read_yaml(DEFAULT_CONFIG_PATH)
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found at {config_path}")
        user_config = _read_yaml(config_path)
        config = _deep_merge(config, user_config)

        base_dir = config_path.resolve().parent
        for key in PATH_KEYS:
            value = config["paths"].get(key)
            if value is not None and not Path(value).is_absolute():
                config["paths"][key] = str(base_dir / value)

    return validate_config(config)


def load_occurrence_cache(
    filepath: Union[str, Path],
    longitude_column: str = "lon",
    latitude_column: str = "lat",
) -> pd.DataFrame:
    """
    Loads a cached occurrence record set and returns its coordinate columns.

    Parameters:
    filepath: CSV, Parquet or a vector file readable by geopandas.
    longitude_column, latitude_column: Names of the coordinate fields in the cache.
        For vector files without these fields the point geometry is used instead.

    Returns:
    DataFrame with float 'longitude' and 'latitude' columns, one row per record.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Occurrence cache not found at {filepath}")

    suffix = filepath.suffix.lower()
    if suffix == ".csv":
        records = pd.read_csv(filepath)
    elif suffix in (".parquet", ".pq"):
        records = pd.read_parquet(filepath)
    elif suffix in VECTOR_SUFFIXES:
        records = gpd.read_file(filepath)
        if longitude_column not in records.columns and latitude_column not in records.columns:
            if records.crs is not None:
                records = records.to_crs("EPSG:4326")
            records[longitude_column] = records.geometry.x
            records[latitude_column] = records.geometry.y
    else:
        raise OccurrenceDataError(f"Unsupported occurrence cache format: {filepath.suffix}")

    missing = [c for c in (longitude_column, latitude_column) if c not in records.columns]
    if missing:
        raise OccurrenceDataError(
            f"Occurrence cache {filepath.name} has no column(s) {missing}. "
            f"Available columns: {list(records.columns)}"
        )

    try:
        coords = pd.DataFrame(
            {
                "longitude": pd.to_numeric(records[longitude_column]),
                "latitude": pd.to_numeric(records[latitude_column]),
            }
        )
    except (TypeError, ValueError) as e:
        raise OccurrenceDataError(f"Non-numeric coordinates in {filepath.name}: {e}") from e

    logger.info(f"Loaded {len(coords)} occurrence records from {filepath}")
    return coords


def load_basemap(filepath: Optional[Union[str, Path]]) -> Optional[gpd.GeoDataFrame]:
    """Loads the optional coastline/administrative layer used as plot context."""
    if filepath is None:
        return None
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Base map not found at {filepath}")
    basemap = gpd.read_file(filepath)
    if basemap.crs is not None:
        basemap = basemap.to_crs("EPSG:4326")
    return basemap
