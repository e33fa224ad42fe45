"""
Near-zero-variance filtering for metaTransform.

A column is flagged when it is constant, or when it is both dominated by one
value (frequency ratio above ``freq_cut``) and has few distinct values
(distinct count as a percentage of samples at most ``unique_cut``).
"""

from typing import Any, Dict, List, Optional
import pandas as pd
import numpy as np
from dataclasses import dataclass, field

from ..core.base import BasePreprocessor, NearZeroVarianceConfig, DegenerateTransformationError
from ..utils.logger import get_logger


@dataclass
class FilterResult:
    """Outcome of filtering one transformed matrix."""
    name: str
    data: Optional[pd.DataFrame]
    removed: List[str] = field(default_factory=list)
    skipped: bool = False
    message: str = ""

    def require(self) -> pd.DataFrame:
        """Return the filtered matrix or raise if the transformation was skipped."""
        if self.skipped:
            raise DegenerateTransformationError(self.message)
        return self.data


class NearZeroVarianceFilter(BasePreprocessor):
    """Near-zero-variance filter using the frequency-ratio / percent-unique test."""

    def __init__(self, config: Optional[NearZeroVarianceConfig] = None, **kwargs):
        super().__init__(**kwargs)
        self.config = config or NearZeroVarianceConfig()
        self.logger = get_logger("NearZeroVarianceFilter")
        self.removed_features_ = None
        self.metrics_ = None

    def fit(self, X: pd.DataFrame, y: Optional[np.ndarray] = None) -> 'NearZeroVarianceFilter':
        """Compute per-column statistics and flag near-zero-variance columns."""
        self.metrics_ = self.nzv_metrics(X)
        self.removed_features_ = self.metrics_.index[self.metrics_["nzv"]].tolist()
        self.is_fitted = True
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        """Drop the flagged columns."""
        if not self.is_fitted:
            raise ValueError("Filter must be fitted before transforming")
        return X.drop(columns=self.removed_features_)

    def nzv_metrics(self, X: pd.DataFrame) -> pd.DataFrame:
        """
        Per-column frequency ratio, percent unique and flags.

        Returns:
            DataFrame indexed by column name with ``freq_ratio``,
            ``percent_unique``, ``zero_var`` and ``nzv``
        """
        n_samples = X.shape[0]
        rows: Dict[Any, Dict[str, Any]] = {}
        for col in X.columns:
            counts = X[col].value_counts(dropna=True)
            n_unique = len(counts)
            if n_unique <= 1:
                freq_ratio = 0.0
            else:
                freq_ratio = counts.iloc[0] / counts.iloc[1]
            percent_unique = 100.0 * n_unique / n_samples if n_samples else 0.0
            zero_var = n_unique <= 1
            nzv = zero_var or (freq_ratio > self.config.freq_cut and percent_unique <= self.config.unique_cut)
            rows[col] = {
                "freq_ratio": freq_ratio,
                "percent_unique": percent_unique,
                "zero_var": zero_var,
                "nzv": bool(nzv),
            }
        return pd.DataFrame.from_dict(
            rows, orient="index", columns=["freq_ratio", "percent_unique", "zero_var", "nzv"]
        ).astype({"zero_var": bool, "nzv": bool})

    def filter(self, X: pd.DataFrame, name: str = "") -> FilterResult:
        """
        Filter one transformed matrix.

        Args:
            X: Transformed matrix
            name: Transformation name, used in diagnostics

        Returns:
            FilterResult; ``skipped`` is True when every column was flagged
        """
        if X.shape[1] == 0:
            message = f"{name}: no features to filter, transformation skipped"
            self.logger.warning(message)
            return FilterResult(name=name, data=None, skipped=True, message=message)

        self.fit(X)
        removed = list(self.removed_features_)

        if len(removed) == X.shape[1]:
            message = f"{name}: all {X.shape[1]} features have near-zero variance, transformation skipped"
            self.logger.warning(message)
            return FilterResult(name=name, data=None, removed=removed, skipped=True, message=message)

        filtered = self.transform(X)
        message = f"{name}: removed {len(removed)}/{X.shape[1]} near-zero-variance features"
        self.logger.info(message)
        return FilterResult(name=name, data=filtered, removed=removed, message=message)
