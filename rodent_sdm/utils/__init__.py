from .io import load_config, load_occurrence_cache, load_basemap
from .logging_utils import setup_logging

__all__ = [
    "load_config",
    "load_occurrence_cache",
    "load_basemap",
    "setup_logging",
]
