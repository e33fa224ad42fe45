"""
Base model implementation for metaTransform.

This module contains the base model class that the classifier wrappers inherit
from. Wrappers are scikit-learn estimators so they can be cloned and searched.
"""

from typing import Optional, Union
import pandas as pd
import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin


class BaseModel(ClassifierMixin, BaseEstimator):
    """Base model class for metaTransform models."""

    model_tag = None

    def _check_fitted(self) -> None:
        if not getattr(self, 'is_fitted_', False):
            raise ValueError("Model must be fitted before making predictions")

    def predict(self, X: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """Predict class labels from the class probabilities."""
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]

    def predict_proba(self, X: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """Predict class probabilities."""
        raise NotImplementedError("Subclasses must implement predict_proba")

    def get_feature_importance(self) -> Optional[np.ndarray]:
        """Get feature importance scores."""
        return None
