"""
Species distribution modelling of a rodent from occurrence records and bioclimatic layers.
"""

from .pipeline import SDMResult, fit_sdm, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "SDMResult",
    "fit_sdm",
    "run_pipeline",
]
