"""
Model-specific configurations for metaTransform.

Base hyperparameters and search grids for the two classifier families that
are benchmarked on every transformation.
"""

from typing import Any, Dict, List

MODEL_TAGS = ("SVM", "RF")

MODEL_CONFIGS = {
    "SVM": {
        "hyperparameters": {
            "C": 1.0,
            "kernel": "rbf",
            "gamma": "scale",
            "calibration_folds": 5,
        }
    },

    "RF": {
        "hyperparameters": {
            "n_estimators": 500,
            "max_features": "sqrt",
            "min_samples_leaf": 1,
            "n_jobs": 1,
        }
    },
}

# Hyperparameter grids for tuning
# SVM: radial kernel cost/gamma; RF: number of trees / features tried per split
HYPERPARAMETER_GRIDS: Dict[str, Dict[str, List[Any]]] = {
    "SVM": {
        "C": [0.25, 1, 4, 16],
        "gamma": ["scale", 0.001, 0.01, 0.1],
    },

    "RF": {
        "n_estimators": [250, 500],
        "max_features": ["sqrt", 0.1, 0.33],
    },
}


def get_param_grid(model_tag: str, overrides: Dict[str, Dict[str, List[Any]]] = None) -> Dict[str, List[Any]]:
    """Return the search grid for a model, with user overrides taking precedence."""
    if model_tag not in HYPERPARAMETER_GRIDS:
        raise ValueError(f"Unknown model: {model_tag}. Supported models: {', '.join(MODEL_TAGS)}")
    if overrides and model_tag in overrides:
        return dict(overrides[model_tag])
    return dict(HYPERPARAMETER_GRIDS[model_tag])
