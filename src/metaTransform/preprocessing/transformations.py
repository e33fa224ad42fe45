"""
Compositional transformations for metaTransform.

Each transformation takes an abundance matrix (samples x taxa, non-negative)
and returns a new matrix with the same row index. A pseudocount is added
before every log or ratio transform so that zeros stay finite.
"""

from typing import Callable, Dict, Iterable, Optional
from collections import OrderedDict
import pandas as pd
import numpy as np
from skbio.stats.composition import clr as _skbio_clr, ilr as _skbio_ilr, alr as _skbio_alr

from ..utils.logger import get_logger

DEFAULT_PSEUDOCOUNT = 1e-6


def presence_absence(X: pd.DataFrame, pseudocount: float = DEFAULT_PSEUDOCOUNT) -> pd.DataFrame:
    """PA: 1 where a taxon was observed, 0 otherwise."""
    return (X > 0).astype(int)


def total_sum_scaling(X: pd.DataFrame, pseudocount: float = DEFAULT_PSEUDOCOUNT) -> pd.DataFrame:
    """TSS: relative abundance, each row divided by its row sum."""
    row_sums = X.sum(axis=1)
    # 行和为0时得到NaN，不做裁剪，由调用方记录
    return X.div(row_sums.replace(0, np.nan), axis=0)


def log_tss(X: pd.DataFrame, pseudocount: float = DEFAULT_PSEUDOCOUNT) -> pd.DataFrame:
    """logTSS: log10 of relative abundance plus pseudocount."""
    return np.log10(total_sum_scaling(X) + pseudocount)


def arcsine_sqrt(X: pd.DataFrame, pseudocount: float = DEFAULT_PSEUDOCOUNT) -> pd.DataFrame:
    """aSIN: arcsine square-root of relative abundance."""
    return np.arcsin(np.sqrt(total_sum_scaling(X)))


def centered_log_ratio(X: pd.DataFrame, pseudocount: float = DEFAULT_PSEUDOCOUNT) -> pd.DataFrame:
    """CLR of ``X + pseudocount`` via scikit-bio."""
    values = _skbio_clr(_offset(X, pseudocount))
    return pd.DataFrame(np.atleast_2d(values), index=X.index, columns=X.columns)


def robust_centered_log_ratio(X: pd.DataFrame, pseudocount: float = DEFAULT_PSEUDOCOUNT) -> pd.DataFrame:
    """
    rCLR: natural-log centered log-ratio written out explicitly.

    ln(x + pseudocount) minus the row mean of ln(x + pseudocount). This is the
    explicit-base companion of ``centered_log_ratio``.
    """
    log_values = np.log(X + pseudocount)
    return log_values.sub(log_values.mean(axis=1), axis=0)


def isometric_log_ratio(X: pd.DataFrame, pseudocount: float = DEFAULT_PSEUDOCOUNT) -> pd.DataFrame:
    """ILR of ``X + pseudocount``: k-1 orthonormal coordinates named ILR1..ILR(k-1)."""
    _require_two_parts(X, "ILR")
    values = np.atleast_2d(_skbio_ilr(_offset(X, pseudocount)))
    columns = [f"ILR{i}" for i in range(1, values.shape[1] + 1)]
    return pd.DataFrame(values, index=X.index, columns=columns)


def additive_log_ratio(X: pd.DataFrame, pseudocount: float = DEFAULT_PSEUDOCOUNT) -> pd.DataFrame:
    """ALR of ``X + pseudocount`` against the last taxon: columns ALR1..ALR(k-1)."""
    _require_two_parts(X, "ALR")
    values = np.atleast_2d(_skbio_alr(_offset(X, pseudocount), denominator_idx=X.shape[1] - 1))
    columns = [f"ALR{i}" for i in range(1, values.shape[1] + 1)]
    return pd.DataFrame(values, index=X.index, columns=columns)


def _offset(X: pd.DataFrame, pseudocount: float) -> np.ndarray:
    return X.to_numpy(dtype=float) + pseudocount


def _require_two_parts(X: pd.DataFrame, name: str) -> None:
    if X.shape[1] < 2:
        raise ValueError(f"{name} needs at least 2 taxa, got {X.shape[1]}")


TRANSFORMATIONS: Dict[str, Callable[[pd.DataFrame, float], pd.DataFrame]] = OrderedDict([
    ("PA", presence_absence),
    ("TSS", total_sum_scaling),
    ("logTSS", log_tss),
    ("aSIN", arcsine_sqrt),
    ("CLR", centered_log_ratio),
    ("rCLR", robust_centered_log_ratio),
    ("ILR", isometric_log_ratio),
    ("ALR", additive_log_ratio),
])


class TransformationBank:
    """Produces every configured representation of an abundance matrix."""

    def __init__(self, pseudocount: float = DEFAULT_PSEUDOCOUNT):
        if pseudocount <= 0:
            raise ValueError(f"pseudocount must be positive, got {pseudocount}")
        self.pseudocount = pseudocount
        self.logger = get_logger("TransformationBank")

    def transform(self, X: pd.DataFrame, name: str) -> pd.DataFrame:
        """Apply a single transformation by tag."""
        if name not in TRANSFORMATIONS:
            raise ValueError(f"Unknown transformation: {name}. Supported: {list(TRANSFORMATIONS)}")
        if (X.to_numpy(dtype=float) < 0).any():
            raise ValueError("Abundance matrix contains negative values")

        result = TRANSFORMATIONS[name](X, self.pseudocount)

        n_bad = int((~np.isfinite(result.to_numpy(dtype=float))).sum())
        if n_bad:
            self.logger.warning(f"{name}: {n_bad} non-finite values (zero-sum samples or degenerate columns)")
        return result

    def transform_all(self, X: pd.DataFrame, include: Optional[Iterable[str]] = None) -> Dict[str, pd.DataFrame]:
        """
        Apply several transformations.

        Args:
            X: Abundance matrix (samples x taxa)
            include: Transformation tags to produce, in order; all eight by default

        Returns:
            Ordered mapping from tag to transformed matrix
        """
        names = list(include) if include is not None else list(TRANSFORMATIONS)
        self.logger.info(f"Applying {len(names)} transformations to {X.shape[0]} samples x {X.shape[1]} taxa")

        outputs: Dict[str, pd.DataFrame] = OrderedDict()
        for name in names:
            outputs[name] = self.transform(X, name)
            self.logger.info(f"{name}: {outputs[name].shape[1]} features")
        return outputs
