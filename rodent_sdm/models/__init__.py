from .folds import assign_stratified_folds, split_train_test
from .training import FittedModel, FitProblemAction, fit_binomial_glm
from .prediction import predict_suitability, binarize_surface, save_prediction_raster
from .evaluation import ModelEvaluation, evaluate_model, evaluate_predictions, save_evaluation_results

__all__ = [
    "assign_stratified_folds",
    "split_train_test",
    "FittedModel",
    "FitProblemAction",
    "fit_binomial_glm",
    "predict_suitability",
    "binarize_surface",
    "save_prediction_raster",
    "ModelEvaluation",
    "evaluate_model",
    "evaluate_predictions",
    "save_evaluation_results",
]
