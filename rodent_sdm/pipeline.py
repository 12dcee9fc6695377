"""
The species distribution modelling run, from cached inputs to suitability maps.

`fit_sdm` runs the modelling steps on in-memory data; `run_pipeline` adds the file inputs
and outputs described by a configuration dictionary (see `rodent_sdm.utils.io.load_config`).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import geopandas as gpd
import numpy as np
import pandas as pd
import xarray as xr

from rodent_sdm.extract import build_feature_table, drop_incomplete_rows
from rodent_sdm.models import (
    FittedModel,
    ModelEvaluation,
    assign_stratified_folds,
    binarize_surface,
    evaluate_model,
    fit_binomial_glm,
    predict_suitability,
    save_evaluation_results,
    save_prediction_raster,
    split_train_test,
)
from rodent_sdm.occurrence import label_points, occurrences_to_gdf, sample_background_points
from rodent_sdm.occurrence.sampling import PRESENCE_COLUMN
from rodent_sdm.raster import Extent, compute_extent, crop_to_extent, expand_extent, load_bioclim_stack
from rodent_sdm.utils.io import load_basemap, load_occurrence_cache
from rodent_sdm import viz

logger = logging.getLogger(__name__)


@dataclass
class SDMResult:
    occurrences: gpd.GeoDataFrame
    extent: Extent
    sampling_extent: Extent
    stack: xr.Dataset
    background: gpd.GeoDataFrame
    labeled_points: gpd.GeoDataFrame
    features: pd.DataFrame
    covariates: List[str]
    folds: pd.Series
    train: pd.DataFrame
    test: pd.DataFrame
    model: FittedModel
    surface: xr.DataArray
    evaluation: ModelEvaluation
    threshold: float
    binary_surface: xr.DataArray
    outputs: Dict[str, Path] = field(default_factory=dict)


def fit_sdm(
    occurrences: gpd.GeoDataFrame,
    stack: xr.Dataset,
    rng: np.random.Generator,
    n_background_points: int = 1000,
    extent_expansion: float = 1.25,
    n_folds: int = 5,
    test_fold: int = 1,
    allow_fewer: bool = False,
    exclude_occurrence_cells: bool = False,
    on_fit_problem: str = "warn",
) -> SDMResult:
    """
    Crop, sample, extract, split, fit, predict, evaluate and threshold.

    `rng` is consumed by background sampling first and fold assignment second, so the same
    generator seed reproduces the whole run.
    """
    extent = compute_extent(occurrences["longitude"], occurrences["latitude"])
    sampling_extent = expand_extent(extent, extent_expansion)
    cropped = crop_to_extent(stack, sampling_extent)

    background = sample_background_points(
        cropped,
        n_background_points,
        rng,
        exclude_points=occurrences if exclude_occurrence_cells else None,
        allow_fewer=allow_fewer,
    )
    labeled = label_points(occurrences, background)

    covariates = [str(name) for name in cropped.data_vars]
    features = build_feature_table(labeled, cropped, covariates)
    features = drop_incomplete_rows(features, covariates)

    folds = assign_stratified_folds(features, n_folds, rng)
    train, test = split_train_test(features, folds, test_fold)

    model = fit_binomial_glm(train, covariates, on_fit_problem=on_fit_problem)
    surface = predict_suitability(model, cropped)

    evaluation = evaluate_model(
        model,
        presence=test[test[PRESENCE_COLUMN] == 1],
        absence=test[test[PRESENCE_COLUMN] == 0],
    )
    threshold = evaluation.max_spec_sens
    binary = binarize_surface(surface, threshold)

    return SDMResult(
        occurrences=occurrences,
        extent=extent,
        sampling_extent=sampling_extent,
        stack=cropped,
        background=background,
        labeled_points=labeled,
        features=features,
        covariates=covariates,
        folds=folds,
        train=train,
        test=test,
        model=model,
        surface=surface,
        evaluation=evaluation,
        threshold=threshold,
        binary_surface=binary,
    )


def write_outputs(
    result: SDMResult,
    output_dir: Path,
    basemap: Optional[gpd.GeoDataFrame] = None,
    species_name: Optional[str] = None,
    plots: bool = True,
    dpi: int = 150,
    write_rasters: bool = True,
) -> Dict[str, Path]:
    """Evaluation CSV, optional GeoTIFFs and map figures for a finished run."""
    output_dir = Path(output_dir)
    outputs = {"evaluation": save_evaluation_results(result.evaluation, output_dir, species_name)}

    if write_rasters:
        outputs["suitability_raster"] = save_prediction_raster(
            result.surface, output_dir / "suitability.tif"
        )
        outputs["binary_raster"] = save_prediction_raster(
            result.binary_surface, output_dir / "suitability_binary.tif"
        )

    if plots:
        figures = {
            "occurrences": viz.plot_occurrences(
                result.occurrences, basemap, result.sampling_extent, title=species_name
            ),
            "layer_preview": viz.plot_layer(result.stack, result.covariates[0], basemap),
            "background": viz.plot_background(
                result.background, result.occurrences, basemap, result.sampling_extent
            ),
            "suitability": viz.plot_suitability(result.surface, result.occurrences, basemap),
            "suitability_binary": viz.plot_binary_suitability(
                result.binary_surface, result.threshold, result.occurrences, basemap
            ),
        }
        for name, fig in figures.items():
            outputs[name] = viz.save_figure(fig, output_dir / f"{name}.png", dpi=dpi)

    result.outputs.update(outputs)
    return outputs


def run_pipeline(config: Dict[str, Any]) -> SDMResult:
    """Runs the full analysis described by a loaded configuration."""
    paths = config["paths"]
    sampling = config["sampling"]
    model = config["model"]
    outputs = config["outputs"]

    records = load_occurrence_cache(
        paths["occurrence_cache"],
        longitude_column=config["occurrence"]["longitude_column"],
        latitude_column=config["occurrence"]["latitude_column"],
    )
    occurrences = occurrences_to_gdf(records)

    stack = load_bioclim_stack(
        paths["bioclim_dir"],
        manifest=config["raster"].get("layers"),
        resolution_arcmin=config["raster"].get("resolution_arcmin"),
    )
    basemap = load_basemap(paths.get("basemap"))

    rng = np.random.default_rng(sampling["seed"])
    result = fit_sdm(
        occurrences,
        stack,
        rng,
        n_background_points=int(sampling["n_background"]),
        extent_expansion=float(sampling["extent_expansion"]),
        n_folds=int(model["n_folds"]),
        test_fold=int(model["test_fold"]),
        allow_fewer=bool(sampling["allow_fewer"]),
        exclude_occurrence_cells=bool(sampling["exclude_occurrence_cells"]),
        on_fit_problem=model["on_fit_problem"],
    )

    write_outputs(
        result,
        Path(paths["output_dir"]),
        basemap=basemap,
        species_name=config.get("species_name"),
        plots=bool(outputs["plots"]),
        dpi=int(outputs["dpi"]),
        write_rasters=bool(outputs["write_rasters"]),
    )
    logger.info(
        f"Run complete: AUC {result.evaluation.auc:.3f}, threshold {result.threshold:.3f}, "
        f"outputs in {paths['output_dir']}"
    )
    return result
