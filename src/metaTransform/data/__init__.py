"""
Data handling modules for metaTransform.

This module contains data loading and validation utilities.
"""

from .loader import DataLoader, LoadedDataset
from .validator import DataValidator

__all__ = [
    "DataLoader",
    "LoadedDataset",
    "DataValidator",
]
