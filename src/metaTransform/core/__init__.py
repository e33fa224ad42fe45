"""
Core functionality for metaTransform.

This module contains the shared data types and the transformation x split x model evaluation loop.
"""

from .base import (
    DataIntegrityError,
    DegenerateTransformationError,
    UndefinedMetricError,
    TransformationState,
    ResultStatus,
    NearZeroVarianceConfig,
    EvaluationConfig,
    ResultRecord,
    TrainedModelArtifact,
    ResultCollector,
    BasePreprocessor,
)
from .hyperparameter_tuner import HyperparameterTunerFactory
from .evaluation_loop import EvaluationLoop, EvaluationOutcome

__all__ = [
    "DataIntegrityError",
    "DegenerateTransformationError",
    "UndefinedMetricError",
    "TransformationState",
    "ResultStatus",
    "NearZeroVarianceConfig",
    "EvaluationConfig",
    "ResultRecord",
    "TrainedModelArtifact",
    "ResultCollector",
    "BasePreprocessor",
    "HyperparameterTunerFactory",
    "EvaluationLoop",
    "EvaluationOutcome",
]
