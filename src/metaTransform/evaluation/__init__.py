"""
Evaluation modules for metaTransform.

This module contains evaluation metrics, feature importance, visualization, and reporting utilities.
"""

from .metrics import MetricsCalculator, compute_auc
from .feature_importance import FeatureImportanceAggregator, short_taxon_name
from .visualizer import ResultsVisualizer
from .reporter import ResultsReporter

__all__ = [
    "MetricsCalculator",
    "compute_auc",
    "FeatureImportanceAggregator",
    "short_taxon_name",
    "ResultsVisualizer",
    "ResultsReporter",
]
