"""
Preprocessing modules for metaTransform.

This module contains the compositional transformations, the near-zero-variance
filter and batch effect removal.
"""

from .transformations import TRANSFORMATIONS, TransformationBank
from .nzv_filter import FilterResult, NearZeroVarianceFilter
from .batch_correction import BatchEffectRemover, correct_partitions

__all__ = [
    "TRANSFORMATIONS",
    "TransformationBank",
    "FilterResult",
    "NearZeroVarianceFilter",
    "BatchEffectRemover",
    "correct_partitions",
]
