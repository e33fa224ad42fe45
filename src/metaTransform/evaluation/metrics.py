"""
Evaluation metrics for metaTransform.

AUC on held-out partitions and its aggregation over splits.
"""

from typing import Optional
import numpy as np
import pandas as pd
from sklearn.metrics import roc_curve, auc

from ..core.base import UndefinedMetricError, ResultStatus
from ..utils.logger import get_logger


def compute_auc(y_true: np.ndarray, y_score: np.ndarray, pos_label: int = 1) -> float:
    """
    Area under the ROC curve.

    Raises:
        UndefinedMetricError: if y_true does not contain both classes
    """
    y_true = np.asarray(y_true)
    y_score = np.asarray(y_score, dtype=float)
    if len(y_true) != len(y_score):
        raise ValueError(f"Got {len(y_true)} labels and {len(y_score)} scores")

    n_pos = int(np.sum(y_true == pos_label))
    n_neg = len(y_true) - n_pos
    if n_pos == 0 or n_neg == 0:
        raise UndefinedMetricError(
            f"AUC is undefined for a partition with {n_pos} positive and {n_neg} negative samples"
        )
    if not np.all(np.isfinite(y_score)):
        raise ValueError("Scores contain non-finite values")

    fpr, tpr, _ = roc_curve(y_true, y_score, pos_label=pos_label)
    return float(auc(fpr, tpr))


class MetricsCalculator:
    """Aggregates per-split AUCs into summary tables."""

    def __init__(self):
        self.logger = get_logger("MetricsCalculator")

    def summarize_auc(self, results: pd.DataFrame) -> pd.DataFrame:
        """
        Mean, std, median, min, max and count of AUC per (transformation, model).

        Only rows with status ``ok`` contribute; ``n_flagged`` counts the rest.
        """
        if results.empty:
            return pd.DataFrame(columns=["transformation", "model", "auc_mean", "auc_std",
                                         "auc_median", "auc_min", "auc_max", "n", "n_flagged"])

        ok = results["status"] == ResultStatus.OK.value
        grouped = results[ok].groupby(["transformation", "model"], sort=False)["auc"]
        summary = grouped.agg(
            auc_mean="mean", auc_std="std", auc_median="median",
            auc_min="min", auc_max="max", n="count",
        )

        flagged = (~ok).groupby([results["transformation"], results["model"]], sort=False).sum()
        flagged.name = "n_flagged"
        summary = summary.join(flagged, how="outer")
        summary["n"] = summary["n"].fillna(0).astype(int)
        summary["n_flagged"] = summary["n_flagged"].fillna(0).astype(int)

        summary = summary.reset_index().sort_values("auc_mean", ascending=False, na_position="last")
        self.logger.info(f"AUC summary for {len(summary)} (transformation, model) groups")
        return summary.reset_index(drop=True)

    def best_combination(self, results: pd.DataFrame) -> Optional[pd.Series]:
        """Row of the summary with the highest mean AUC."""
        summary = self.summarize_auc(results)
        summary = summary.dropna(subset=["auc_mean"])
        if summary.empty:
            return None
        return summary.iloc[0]
