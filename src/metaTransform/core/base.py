"""
Base classes and interfaces for metaTransform.

This module defines the shared data types, error taxonomy and the preprocessor
interface that the pipeline components implement.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import math
import pandas as pd
import numpy as np
from dataclasses import dataclass, field
from enum import Enum


class DataIntegrityError(ValueError):
    """Sample identifiers or table contents do not line up."""


class DegenerateTransformationError(ValueError):
    """Every column of a transformed matrix was flagged as near-zero variance."""


class UndefinedMetricError(ValueError):
    """A metric cannot be computed, e.g. AUC on a single-class partition."""


class TransformationState(Enum):
    """Lifecycle of one transformation inside the evaluation loop."""
    PENDING = "pending"
    FILTERED = "filtered"
    SKIPPED = "skipped"
    EVALUATED = "evaluated"


class ResultStatus(Enum):
    """Outcome of one (transformation, split, model) cell."""
    OK = "ok"
    UNDEFINED_AUC = "undefined_auc"
    FIT_FAILED = "fit_failed"


@dataclass
class NearZeroVarianceConfig:
    """Configuration for near-zero-variance filtering."""
    freq_cut: float = 95 / 5   # most common / second most common value
    unique_cut: float = 10.0   # distinct values as % of samples


@dataclass
class EvaluationConfig:
    """Configuration for the repeated split evaluation loop."""
    splits: int = 10
    train_fraction: float = 0.8
    cv_folds: int = 5
    random_state: int = 42
    search_method: str = "grid"
    n_iter: int = 10
    n_jobs: int = 1
    models: List[str] = field(default_factory=lambda: ["SVM", "RF"])
    param_grids: Dict[str, Dict[str, List[Any]]] = field(default_factory=dict)
    batch_correction_mode: str = "separate"
    undefined_auc_policy: str = "warn"


@dataclass
class ResultRecord:
    """One row of the results table."""
    transformation: str
    split: int
    model: str
    auc: float
    status: str = ResultStatus.OK.value
    message: str = ""

    @property
    def is_ok(self) -> bool:
        return self.status == ResultStatus.OK.value and not math.isnan(self.auc)


@dataclass
class TrainedModelArtifact:
    """A fitted estimator together with where it came from."""
    transformation: str
    split: int
    model: str
    estimator: Any
    feature_names: List[str]
    best_params: Dict[str, Any] = field(default_factory=dict)
    cv_score: Optional[float] = None

    def predict_condition_proba(self, X: pd.DataFrame) -> np.ndarray:
        """Probability of the condition class (label 1) for each row of X."""
        missing = [c for c in self.feature_names if c not in X.columns]
        if missing:
            raise DataIntegrityError(
                f"{len(missing)} features expected by the {self.model} model are missing, e.g. {missing[:3]}"
            )
        proba = self.estimator.predict_proba(X[self.feature_names])
        classes = list(self.estimator.classes_)
        return proba[:, classes.index(1)]


class ResultCollector:
    """Append-only collector of ResultRecords."""

    COLUMNS = ["transformation", "split", "model", "auc", "status", "message"]

    def __init__(self):
        self._records: List[ResultRecord] = []

    def append(self, record: ResultRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records))

    def to_frame(self) -> pd.DataFrame:
        """Results as a DataFrame in insertion order."""
        if not self._records:
            return pd.DataFrame(columns=self.COLUMNS)
        return pd.DataFrame([r.__dict__ for r in self._records], columns=self.COLUMNS)

    def ok_frame(self) -> pd.DataFrame:
        """Only the rows that carry a valid AUC."""
        frame = self.to_frame()
        return frame[frame["status"] == ResultStatus.OK.value].reset_index(drop=True)


class BasePreprocessor(ABC):
    """Base class for all preprocessors in metaTransform."""

    def __init__(self, **kwargs):
        self.config = kwargs
        self.is_fitted = False

    @abstractmethod
    def fit(self, X: pd.DataFrame, y: Optional[np.ndarray] = None) -> 'BasePreprocessor':
        """Fit the preprocessor to the data."""
        pass

    @abstractmethod
    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        """Transform the data."""
        pass

    def fit_transform(self, X: pd.DataFrame, y: Optional[np.ndarray] = None) -> pd.DataFrame:
        """Fit and transform the data."""
        return self.fit(X, y).transform(X)
