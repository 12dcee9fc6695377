"""Model evaluation and threshold selection on held-out presence/absence data."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd
from scipy.stats import pointbiserialr
from sklearn.metrics import roc_auc_score, roc_curve

from rodent_sdm.errors import InsufficientDataError
from rodent_sdm.models.training import FittedModel

logger = logging.getLogger(__name__)

# Sensitivity targeted by the "sensitivity" threshold
FIXED_SENSITIVITY = 0.9


@dataclass
class ModelEvaluation:
    n_presence: int
    n_absence: int
    auc: float
    cor: float
    thresholds: Dict[str, float]
    roc: pd.DataFrame

    @property
    def max_spec_sens(self) -> float:
        """Threshold maximising sensitivity + specificity."""
        return self.thresholds["spec_sens"]

    def to_dict(self) -> Dict[str, float]:
        results = {
            "n_presence": self.n_presence,
            "n_absence": self.n_absence,
            "auc": self.auc,
            "cor": self.cor,
        }
        results.update({f"threshold_{name}": value for name, value in self.thresholds.items()})
        return results


def _kappa(tp, fp, fn, tn) -> np.ndarray:
    n = tp + fp + fn + tn
    observed = (tp + tn) / n
    expected = ((tp + fp) * (tp + fn) + (fn + tn) * (fp + tn)) / n**2
    with np.errstate(divide="ignore", invalid="ignore"):
        kappa = (observed - expected) / (1 - expected)
    return np.where(expected < 1, kappa, 0.0)


def evaluate_predictions(
    presence_scores: np.ndarray,
    absence_scores: np.ndarray,
) -> ModelEvaluation:
    """
    AUC, correlation and thresholds from predicted probabilities at presences and absences.

    Thresholds are chosen among the empirical ROC cut points (the distinct predicted values),
    a cell counting as predicted present when its probability is >= the cut point.
    """
    presence_scores = np.asarray(presence_scores, dtype=float)
    absence_scores = np.asarray(absence_scores, dtype=float)
    presence_scores = presence_scores[np.isfinite(presence_scores)]
    absence_scores = absence_scores[np.isfinite(absence_scores)]
    n_presence, n_absence = len(presence_scores), len(absence_scores)
    if n_presence == 0 or n_absence == 0:
        raise InsufficientDataError(
            f"Evaluation needs presences and absences, got {n_presence} and {n_absence}."
        )

    y_true = np.concatenate([np.ones(n_presence), np.zeros(n_absence)])
    y_score = np.concatenate([presence_scores, absence_scores])

    auc = float(roc_auc_score(y_true, y_score))
    if np.ptp(y_score) > 0:
        cor = float(pointbiserialr(y_true, y_score)[0])
    else:
        cor = float("nan")

    fpr, tpr, cut_points = roc_curve(y_true, y_score, drop_intermediate=False)
    # The first cut point is a sentinel above every score
    keep = np.isfinite(cut_points) & (cut_points <= y_score.max())
    fpr, tpr, cut_points = fpr[keep], tpr[keep], cut_points[keep]
    tnr = 1 - fpr

    tp = tpr * n_presence
    fn = n_presence - tp
    fp = fpr * n_absence
    tn = n_absence - fp
    predicted_prevalence = (tp + fp) / (n_presence + n_absence)
    observed_prevalence = n_presence / (n_presence + n_absence)

    thresholds = {
        "spec_sens": float(cut_points[np.argmax(tpr + tnr)]),
        "kappa": float(cut_points[np.argmax(_kappa(tp, fp, fn, tn))]),
        "no_omission": float(cut_points[tpr >= 1].max()),
        "prevalence": float(cut_points[np.argmin(np.abs(predicted_prevalence - observed_prevalence))]),
        "equal_sens_spec": float(cut_points[np.argmin(np.abs(tpr - tnr))]),
        "sensitivity": float(cut_points[tpr >= FIXED_SENSITIVITY].max()),
    }

    roc = pd.DataFrame({"threshold": cut_points, "tpr": tpr, "tnr": tnr})
    evaluation = ModelEvaluation(
        n_presence=n_presence,
        n_absence=n_absence,
        auc=auc,
        cor=cor,
        thresholds=thresholds,
        roc=roc,
    )
    logger.info(
        f"Evaluation: {n_presence} presences, {n_absence} absences, AUC {auc:.4f}, "
        f"max_spec_sens threshold {thresholds['spec_sens']:.4f}"
    )
    return evaluation


def evaluate_model(
    model: FittedModel,
    presence: pd.DataFrame,
    absence: pd.DataFrame,
) -> ModelEvaluation:
    """Evaluate a fitted model on disjoint presence and absence test rows."""
    return evaluate_predictions(model.predict(presence), model.predict(absence))


def save_evaluation_results(
    evaluation: ModelEvaluation,
    output_dir: Path,
    species_name: Optional[str] = None,
) -> Path:
    """Save model evaluation statistics to a CSV file."""
    output_dir.mkdir(parents=True, exist_ok=True)

    results_df = pd.DataFrame([evaluation.to_dict()])
    results_df["species"] = species_name
    results_df["timestamp"] = pd.Timestamp.now()

    output_file = output_dir / "evaluation.csv"
    results_df.to_csv(output_file, index=False)

    logger.info(f"Saved evaluation results to: {output_file}")
    return output_file
