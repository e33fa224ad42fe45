"""
Model implementations for metaTransform.

This module contains the two classifier families compared on every
transformation.
"""

from typing import Optional

from .base_model import BaseModel
from .random_forest import RandomForestClassifier
from .svm import SVMClassifier
from ..config.model_configs import MODEL_CONFIGS


class ModelFactory:
    """Factory for creating models."""

    @staticmethod
    def create_model(model_tag: str, random_state: Optional[int] = None) -> BaseModel:
        """Create a model from its tag with the default hyperparameters."""
        tag = model_tag.upper()
        if tag not in MODEL_CONFIGS:
            raise ValueError(f"Unknown model: {model_tag}")
        params = dict(MODEL_CONFIGS[tag]["hyperparameters"])

        if tag == 'SVM':
            return SVMClassifier(random_state=random_state, **params)
        elif tag == 'RF':
            return RandomForestClassifier(random_state=random_state, **params)
        else:
            raise ValueError(f"Unknown model: {model_tag}")


__all__ = [
    "BaseModel",
    "RandomForestClassifier",
    "SVMClassifier",
    "ModelFactory",
]
