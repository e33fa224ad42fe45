"""
Random Forest classifier implementation for metaTransform.

This module contains the Random Forest classifier implementation.
"""

from typing import Optional, Union
import pandas as pd
import numpy as np
from sklearn.ensemble import RandomForestClassifier as SklearnRandomForestClassifier
from sklearn.utils.validation import check_X_y, check_array
from sklearn.utils.multiclass import unique_labels

from .base_model import BaseModel


class RandomForestClassifier(BaseModel):
    """Random Forest classifier implementation."""

    model_tag = "RF"

    def __init__(self,
                 n_estimators: int = 500,
                 max_depth: Optional[int] = None,
                 min_samples_leaf: int = 1,
                 max_features: Union[str, int, float, None] = 'sqrt',
                 random_state: Optional[int] = None,
                 n_jobs: int = 1):
        self.n_estimators = n_estimators
        self.max_depth = max_depth
        self.min_samples_leaf = min_samples_leaf
        self.max_features = max_features
        self.random_state = random_state
        self.n_jobs = n_jobs

    def fit(self, X: Union[pd.DataFrame, np.ndarray], y: np.ndarray) -> 'RandomForestClassifier':
        """Fit the Random Forest classifier to the training data."""
        X, y = check_X_y(X, y, accept_sparse=False)
        self.classes_ = unique_labels(y)

        self.rf_ = SklearnRandomForestClassifier(
            n_estimators=self.n_estimators,
            max_depth=self.max_depth,
            min_samples_leaf=self.min_samples_leaf,
            max_features=self.max_features,
            random_state=self.random_state,
            n_jobs=self.n_jobs
        )
        self.rf_.fit(X, y)

        # Mean decrease in impurity, normalised to sum to 1
        self.feature_importances_ = self.rf_.feature_importances_
        self.n_features_in_ = X.shape[1]
        self.is_fitted_ = True
        return self

    def predict_proba(self, X: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """Predict class probabilities."""
        self._check_fitted()
        return self.rf_.predict_proba(check_array(X, accept_sparse=False))

    def get_feature_importance(self) -> Optional[np.ndarray]:
        """Get feature importance scores."""
        return getattr(self, 'feature_importances_', None)
