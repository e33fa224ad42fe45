"""
Random-forest feature importance aggregation for metaTransform.

Importances are the forests' mean decrease in impurity, averaged over the
splits of one transformation and reported as a top-k table.
"""

from typing import Dict, List, Optional
from collections import OrderedDict
import pandas as pd
import numpy as np

from ..core.base import TrainedModelArtifact
from ..utils.logger import get_logger

UNKNOWN_TAXON = "Unknown"


def short_taxon_name(name) -> str:
    """
    Last ``|``-delimited segment of a taxonomic lineage.

    ``"k__Bacteria|p__X|s__Genus_species"`` -> ``"s__Genus_species"``;
    missing, NA or empty names give ``"Unknown"``.
    """
    if name is None:
        return UNKNOWN_TAXON
    try:
        if pd.isna(name):
            return UNKNOWN_TAXON
    except (TypeError, ValueError):
        pass
    text = str(name).strip()
    if not text:
        return UNKNOWN_TAXON
    short = text.split("|")[-1].strip()
    return short or UNKNOWN_TAXON


def format_importance(name, score: float) -> str:
    """Table cell text: ``"<short name> (<score>)"`` with three decimals."""
    return f"{short_taxon_name(name)} ({score:.3f})"


class FeatureImportanceAggregator:
    """Averages random-forest importances across splits."""

    def __init__(self, model_tag: str = "RF"):
        self.model_tag = model_tag
        self.logger = get_logger("FeatureImportanceAggregator")

    def mean_importance(self, models: Dict[str, List[TrainedModelArtifact]]) -> Dict[str, pd.Series]:
        """
        Mean importance per feature for every transformation.

        Args:
            models: Transformation -> trained artifacts, as kept by the evaluation loop

        Returns:
            Transformation -> Series of mean importance, sorted descending
        """
        means: Dict[str, pd.Series] = OrderedDict()
        for name, artifacts in models.items():
            per_split = []
            for artifact in artifacts:
                if artifact.model != self.model_tag:
                    continue
                importance = self._importance_of(artifact)
                if importance is None:
                    continue
                per_split.append(pd.Series(importance, index=artifact.feature_names))

            if not per_split:
                self.logger.warning(f"{name}: no fitted {self.model_tag} models, no importances")
                continue

            stacked = pd.concat(per_split, axis=1)
            means[name] = stacked.mean(axis=1).sort_values(ascending=False, kind="mergesort")
            self.logger.info(f"{name}: importances averaged over {len(per_split)} splits")
        return means

    def top_features(self, models: Dict[str, List[TrainedModelArtifact]],
                     top_k: int = 20) -> Dict[str, List[tuple]]:
        """Transformation -> ranked list of (feature name, mean importance)."""
        return OrderedDict(
            (name, list(series.head(top_k).items()))
            for name, series in self.mean_importance(models).items()
        )

    def top_features_table(self, models: Dict[str, List[TrainedModelArtifact]],
                           top_k: int = 20) -> pd.DataFrame:
        """
        One column per transformation, rows ranked 1..top_k, cells
        ``"<short name> (<score>)"``. Transformations with fewer features
        leave the remaining cells empty.
        """
        columns = OrderedDict()
        for name, ranked in self.top_features(models, top_k).items():
            cells = [format_importance(feature, score) for feature, score in ranked]
            cells += [""] * (top_k - len(cells))
            columns[name] = cells

        table = pd.DataFrame(columns, index=pd.RangeIndex(1, top_k + 1, name="rank"))
        return table

    @staticmethod
    def _importance_of(artifact: TrainedModelArtifact) -> Optional[np.ndarray]:
        estimator = artifact.estimator
        if hasattr(estimator, "get_feature_importance"):
            return estimator.get_feature_importance()
        return getattr(estimator, "feature_importances_", None)
