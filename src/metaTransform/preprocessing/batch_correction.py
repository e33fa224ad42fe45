"""
Batch-effect removal for metaTransform.

Fits a per-feature linear model with the batch label as the only covariate
(sum-to-zero contrasts) and subtracts the fitted batch effects. For each
feature the effect of batch ``b`` is the batch mean minus the average of the
batch means.
"""

from typing import Optional, Tuple
import pandas as pd
import numpy as np

from ..core.base import BasePreprocessor, DataIntegrityError
from ..utils.logger import get_logger


class BatchEffectRemover(BasePreprocessor):
    """Linear batch-effect removal."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.logger = get_logger("BatchEffectRemover")
        self.batch_effects_ = None

    def fit(self, X: pd.DataFrame, y: Optional[np.ndarray] = None) -> 'BatchEffectRemover':
        """
        Estimate batch effects.

        Args:
            X: Feature matrix (samples x features)
            y: Batch label for every row of X
        """
        batch = self._as_series(X, y)
        batch_means = X.groupby(batch, sort=True, observed=True).mean()
        self.batch_effects_ = batch_means - batch_means.mean(axis=0)
        self.is_fitted = True
        return self

    def transform(self, X: pd.DataFrame, batch: Optional[np.ndarray] = None) -> pd.DataFrame:
        """Subtract the fitted batch effects; unseen batches are left as they are."""
        if not self.is_fitted:
            raise ValueError("BatchEffectRemover must be fitted before transforming")
        batch = self._as_series(X, batch)

        unseen = sorted(set(batch.unique()) - set(self.batch_effects_.index))
        if unseen:
            self.logger.warning(f"Batches not seen during fit are left uncorrected: {unseen}")

        effects = self.batch_effects_.reindex(batch.to_numpy()).fillna(0.0)
        corrected = X - effects.to_numpy()
        return pd.DataFrame(corrected, index=X.index, columns=X.columns)

    def fit_transform(self, X: pd.DataFrame, y: Optional[np.ndarray] = None) -> pd.DataFrame:
        """Fit on X and its batch labels, then correct X."""
        return self.fit(X, y).transform(X, y)

    @staticmethod
    def _as_series(X: pd.DataFrame, batch) -> pd.Series:
        if batch is None:
            raise ValueError("Batch labels are required")
        if isinstance(batch, pd.Series):
            if not batch.index.equals(X.index):
                raise DataIntegrityError("Batch labels are not aligned with the feature matrix")
            return batch
        batch = np.asarray(batch)
        if len(batch) != len(X):
            raise DataIntegrityError(f"Got {len(batch)} batch labels for {len(X)} samples")
        return pd.Series(batch, index=X.index)


def correct_partitions(
    X_train: pd.DataFrame,
    X_test: pd.DataFrame,
    batch_train,
    batch_test,
    mode: str = "separate",
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Batch-correct a train/test pair.

    Modes:
        separate: fit on train and correct train, then fit an independent
            correction on the test partition's own batch labels
        train_fit: fit on train, apply that fit to both partitions
        none: return copies unchanged
    """
    if mode == "none":
        return X_train.copy(), X_test.copy()
    if mode == "separate":
        train_corrected = BatchEffectRemover().fit_transform(X_train, batch_train)
        test_corrected = BatchEffectRemover().fit_transform(X_test, batch_test)
        return train_corrected, test_corrected
    if mode == "train_fit":
        remover = BatchEffectRemover().fit(X_train, batch_train)
        return remover.transform(X_train, batch_train), remover.transform(X_test, batch_test)
    raise ValueError(f"Unknown batch correction mode: {mode}")
