"""Binomial GLM fitting for presence/pseudo-absence data."""

import logging
import warnings
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, List

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy.special import expit
from statsmodels.tools.sm_exceptions import ConvergenceWarning, PerfectSeparationWarning

from rodent_sdm.errors import InsufficientDataError, ModelFitError
from rodent_sdm.occurrence.sampling import PRESENCE_COLUMN

logger = logging.getLogger(__name__)

INTERCEPT = "const"


class FitProblemAction(StrEnum):
    WARN = "warn"
    RAISE = "raise"


@dataclass
class FittedModel:
    """A fitted binomial GLM together with the covariates it expects, in order."""

    results: Any
    covariates: List[str]
    converged: bool = True
    fit_warnings: List[str] = field(default_factory=list)

    @property
    def params(self) -> pd.Series:
        return pd.Series(self.results.params, index=[INTERCEPT] + self.covariates)

    def linear_predictor(self, data: pd.DataFrame) -> np.ndarray:
        params = self.params
        X = data[self.covariates].to_numpy(dtype=float)
        return params[INTERCEPT] + X @ params[self.covariates].to_numpy()

    def predict(self, data: pd.DataFrame) -> np.ndarray:
        """Probability of presence; NaN where any covariate is missing."""
        return expit(self.linear_predictor(data))


def fit_binomial_glm(
    train: pd.DataFrame,
    covariates: List[str],
    label_column: str = PRESENCE_COLUMN,
    on_fit_problem: FitProblemAction = FitProblemAction.WARN,
    max_iterations: int = 100,
) -> FittedModel:
    """
    Fit presence ~ intercept + covariates by maximum likelihood (logit link, no penalty).

    Args:
        train: Training rows, label column plus every covariate. Must not contain NaN.
        covariates: The covariate columns to use, in order.
        label_column: 0/1 label column.
        on_fit_problem: What to do on perfect separation or non-convergence: log and record
            the problem on the model ("warn") or raise ModelFitError ("raise").
        max_iterations: Cap on IRLS iterations; a fit that hits it counts as not converged.

    Returns:
        FittedModel
    """
    on_fit_problem = FitProblemAction(on_fit_problem)
    if not covariates:
        raise ValueError("At least one covariate is required.")
    missing = [c for c in [label_column] + list(covariates) if c not in train.columns]
    if missing:
        raise KeyError(f"Training data is missing columns {missing}")

    data = train[[label_column] + list(covariates)]
    if data.isna().any().any():
        raise InsufficientDataError(
            "Training data contains missing values; drop incomplete rows before fitting."
        )
    y = data[label_column].astype(float)
    if y.nunique() < 2:
        raise InsufficientDataError("Training data must contain both presences and background points.")

    X = sm.add_constant(data[list(covariates)].astype(float), has_constant="add")
    logger.info(
        f"Fitting binomial GLM on {len(data)} rows ({int(y.sum())} presences) "
        f"with {len(covariates)} covariates"
    )

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        results = sm.GLM(y, X, family=sm.families.Binomial()).fit(maxiter=max_iterations)

    problems = []
    for w in caught:
        if issubclass(w.category, (PerfectSeparationWarning, ConvergenceWarning)):
            problems.append(str(w.message))
        else:
            logger.debug(f"GLM fit warning: {w.category.__name__}: {w.message}")
    converged = bool(getattr(results, "converged", True))
    if not converged:
        problems.append("IRLS did not converge")
    problems = list(dict.fromkeys(problems))

    if problems:
        message = "Binomial GLM fit problem: " + "; ".join(problems)
        if on_fit_problem == FitProblemAction.RAISE:
            raise ModelFitError(message)
        logger.warning(message + ". Coefficients may be unreliable.")

    model = FittedModel(
        results=results,
        covariates=list(covariates),
        converged=converged,
        fit_warnings=problems,
    )
    logger.debug(f"Coefficients:\n{model.params}")
    return model
