"""Stratified fold assignment used for the train/test split."""

import logging
import warnings
from typing import Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold

from rodent_sdm.errors import InsufficientDataError
from rodent_sdm.occurrence.sampling import PRESENCE_COLUMN

logger = logging.getLogger(__name__)


def assign_stratified_folds(
    features: pd.DataFrame,
    n_folds: int,
    rng: np.random.Generator,
    label_column: str = PRESENCE_COLUMN,
) -> pd.Series:
    """Assign each row a fold id in 1..n_folds, stratified on the label.

    Within each label group the rows are spread over the folds as evenly as possible
    (fold sizes per group differ by at most one). The shuffle is seeded from `rng`.

    Returns:
        Integer Series named 'fold', aligned with `features`.
    """
    if n_folds < 2:
        raise ValueError(f"n_folds must be at least 2, got {n_folds}")
    labels = features[label_column].to_numpy()
    class_counts = pd.Series(labels).value_counts()
    if len(features) == 0 or (class_counts < n_folds).all():
        raise InsufficientDataError(
            f"Cannot split {dict(class_counts)} rows per class into {n_folds} folds."
        )
    if (class_counts < n_folds).any():
        logger.warning(
            f"Some classes have fewer rows than folds ({dict(class_counts)}); "
            "not every fold will contain every class."
        )

    seed = int(rng.integers(np.iinfo(np.int32).max))
    splitter = StratifiedKFold(n_splits=n_folds, shuffle=True, random_state=seed)

    folds = np.zeros(len(features), dtype=int)
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", message="The least populated class", category=UserWarning)
        for fold_id, (_, test_idx) in enumerate(
            splitter.split(np.zeros((len(labels), 1)), labels), start=1
        ):
            folds[test_idx] = fold_id

    return pd.Series(folds, index=features.index, name="fold")


def split_train_test(
    features: pd.DataFrame,
    folds: pd.Series,
    test_fold: int = 1,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Rows in `test_fold` form the test set; everything else is training data."""
    is_test = folds.reindex(features.index) == test_fold
    train, test = features.loc[~is_test], features.loc[is_test]
    logger.info(f"Split into {len(train)} training and {len(test)} test rows (test fold {test_fold}).")
    return train, test
