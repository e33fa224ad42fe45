"""
Data validation utilities for metaTransform.

This module handles data validation and quality checks.
"""

from typing import Optional
import pandas as pd
import numpy as np

from ..core.base import DataIntegrityError
from ..utils.logger import get_logger


class DataValidator:
    """Data validator for abundance matrices and their labels."""

    def __init__(self, min_class_count: int = 2):
        self.min_class_count = min_class_count
        self.logger = get_logger("DataValidator")

    def validate(
        self,
        X: pd.DataFrame,
        labels: pd.Series,
        batch: Optional[pd.Series] = None
    ) -> None:
        """
        Validate input data.

        Args:
            X: Abundance matrix (samples x taxa)
            labels: Binary labels indexed by sample id
            batch: Batch labels indexed by sample id (optional)

        Raises:
            DataIntegrityError: if ids do not line up or values are invalid
            ValueError: if the labels cannot support a binary evaluation
        """
        self.logger.info("Validating input data...")

        self._validate_feature_matrix(X)
        self._validate_labels(labels)
        self._validate_alignment(X, labels, batch)

        self.logger.info("Data validation passed")

    def _validate_feature_matrix(self, X: pd.DataFrame) -> None:
        """Validate feature matrix."""
        if X.shape[0] == 0:
            raise DataIntegrityError("No samples in abundance matrix")

        if X.shape[1] == 0:
            raise DataIntegrityError("No taxa in abundance matrix")

        if X.index.has_duplicates:
            raise DataIntegrityError("Abundance matrix has duplicate sample ids")

        if X.columns.has_duplicates:
            raise DataIntegrityError("Abundance matrix has duplicate taxa")

        values = X.to_numpy(dtype=float)
        if not np.isfinite(values).all():
            raise DataIntegrityError("Abundance matrix contains missing or infinite values")

        if (values < 0).any():
            raise DataIntegrityError("Abundance matrix contains negative values")

        zero_rows = X.index[values.sum(axis=1) == 0].tolist()
        if zero_rows:
            raise DataIntegrityError(f"{len(zero_rows)} samples have zero total abundance: {zero_rows[:5]}")

    def _validate_labels(self, labels: pd.Series) -> None:
        """Validate target labels."""
        if len(labels) == 0:
            raise ValueError("No labels provided")

        unique_labels = np.unique(labels.to_numpy())
        if len(unique_labels) != 2 or not np.all(np.isin(unique_labels, [0, 1])):
            raise ValueError(f"Expected labels 0 and 1, found {unique_labels}")

        class_counts = labels.value_counts()
        if class_counts.min() < self.min_class_count:
            raise ValueError(f"Each class must have at least {self.min_class_count} samples: {class_counts.to_dict()}")

    def _validate_alignment(
        self,
        X: pd.DataFrame,
        labels: pd.Series,
        batch: Optional[pd.Series]
    ) -> None:
        """Sample ids must match exactly, in the same order."""
        if not X.index.equals(labels.index):
            raise DataIntegrityError("Abundance matrix and labels are indexed by different samples")

        if batch is not None:
            if not batch.index.equals(labels.index):
                raise DataIntegrityError("Batch labels and class labels are indexed by different samples")
            if batch.isna().any():
                raise DataIntegrityError("Batch labels contain missing values")
