"""
Hyperparameter tuning strategies for metaTransform.

Cross-validated grid or randomized search optimising ROC-AUC, refitting the
best configuration on the full training partition.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import pandas as pd
import numpy as np
from sklearn.model_selection import GridSearchCV, RandomizedSearchCV, StratifiedKFold

from ..models.base_model import BaseModel
from ..utils.logger import get_logger


class HyperparameterTunerFactory:
    """Factory for creating hyperparameter tuners."""

    @staticmethod
    def create_tuner(method: str, **kwargs) -> 'BaseHyperparameterTuner':
        """Create a hyperparameter tuner based on method name."""
        if method == "grid":
            return GridSearchTuner(**kwargs)
        elif method == "random":
            return RandomizedSearchTuner(**kwargs)
        else:
            raise ValueError(f"Unsupported hyperparameter tuning method: {method}")


class BaseHyperparameterTuner(ABC):
    """Base class for hyperparameter tuners."""

    def __init__(self, cv_folds: int = 5, scoring: str = "roc_auc", n_jobs: int = 1,
                 random_state: Optional[int] = None):
        self.cv_folds = cv_folds
        self.scoring = scoring
        self.n_jobs = n_jobs
        self.random_state = random_state
        self.best_params_ = None
        self.best_score_ = None
        self.cv_results_ = None
        self.logger = get_logger(self.__class__.__name__)

    def _make_cv(self) -> StratifiedKFold:
        return StratifiedKFold(n_splits=self.cv_folds, shuffle=True, random_state=self.random_state)

    @abstractmethod
    def _make_search(self, model: BaseModel, param_grid: Dict[str, List[Any]]):
        pass

    def tune(
        self,
        model: BaseModel,
        X: pd.DataFrame,
        y: np.ndarray,
        param_grid: Dict[str, List[Any]],
    ) -> BaseModel:
        """Search hyperparameters for a model and return the refitted best estimator."""
        search = self._make_search(model, param_grid)
        search.fit(X, y)

        self.best_params_ = search.best_params_
        self.best_score_ = float(search.best_score_)
        self.cv_results_ = search.cv_results_
        self.logger.debug(f"{model.model_tag} | best_score={self.best_score_:.4f} | best_params={self.best_params_}")

        return search.best_estimator_


class GridSearchTuner(BaseHyperparameterTuner):
    """Grid search hyperparameter tuner."""

    def _make_search(self, model: BaseModel, param_grid: Dict[str, List[Any]]) -> GridSearchCV:
        return GridSearchCV(
            estimator=model,
            param_grid=param_grid,
            cv=self._make_cv(),
            scoring=self.scoring,
            n_jobs=self.n_jobs,
            refit=True,
            verbose=0,
            error_score="raise"
        )


class RandomizedSearchTuner(BaseHyperparameterTuner):
    """Randomized search hyperparameter tuner."""

    def __init__(self, n_iter: int = 10, **kwargs):
        super().__init__(**kwargs)
        self.n_iter = n_iter

    def _make_search(self, model: BaseModel, param_grid: Dict[str, List[Any]]) -> RandomizedSearchCV:
        n_candidates = int(np.prod([len(v) for v in param_grid.values()])) if param_grid else 1
        return RandomizedSearchCV(
            estimator=model,
            param_distributions=param_grid,
            n_iter=min(self.n_iter, n_candidates),
            cv=self._make_cv(),
            scoring=self.scoring,
            n_jobs=self.n_jobs,
            refit=True,
            verbose=0,
            error_score="raise",
            random_state=self.random_state
        )
