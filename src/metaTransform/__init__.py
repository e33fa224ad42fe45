"""
metaTransform v1.0

Benchmark of compositional data transformations for microbiome case/control
classification with repeated random splits, SVM and random forest models.
"""

__version__ = "1.0.0"

# Core imports (core first: evaluation and preprocessing depend on core.base)
from .core.base import (
    DataIntegrityError,
    DegenerateTransformationError,
    UndefinedMetricError,
    ResultRecord,
    ResultStatus,
    TrainedModelArtifact,
    TransformationState,
)
from .core.evaluation_loop import EvaluationLoop, EvaluationOutcome

# Data handling
from .data.loader import DataLoader, LoadedDataset
from .data.validator import DataValidator

# Preprocessing
from .preprocessing.transformations import TransformationBank
from .preprocessing.nzv_filter import NearZeroVarianceFilter
from .preprocessing.batch_correction import BatchEffectRemover

# Evaluation
from .evaluation.metrics import MetricsCalculator, compute_auc
from .evaluation.feature_importance import FeatureImportanceAggregator, short_taxon_name
from .evaluation.visualizer import ResultsVisualizer
from .evaluation.reporter import ResultsReporter

# Pipeline
from .pipelines.run import PipelineResult, run_pipeline

__all__ = [
    # Core
    "DataIntegrityError",
    "DegenerateTransformationError",
    "UndefinedMetricError",
    "ResultRecord",
    "ResultStatus",
    "TrainedModelArtifact",
    "TransformationState",
    "EvaluationLoop",
    "EvaluationOutcome",

    # Data
    "DataLoader",
    "LoadedDataset",
    "DataValidator",

    # Preprocessing
    "TransformationBank",
    "NearZeroVarianceFilter",
    "BatchEffectRemover",

    # Evaluation
    "MetricsCalculator",
    "compute_auc",
    "FeatureImportanceAggregator",
    "short_taxon_name",
    "ResultsVisualizer",
    "ResultsReporter",

    # Pipeline
    "PipelineResult",
    "run_pipeline",
]
