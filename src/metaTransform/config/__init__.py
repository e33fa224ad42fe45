"""
Configuration modules for metaTransform.

This module contains model-specific default hyperparameters and search grids.
"""

from .model_configs import MODEL_TAGS, MODEL_CONFIGS, HYPERPARAMETER_GRIDS, get_param_grid

__all__ = [
    "MODEL_TAGS",
    "MODEL_CONFIGS",
    "HYPERPARAMETER_GRIDS",
    "get_param_grid",
]
