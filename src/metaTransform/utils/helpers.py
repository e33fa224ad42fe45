"""
Helper utilities for metaTransform.

This module contains various helper functions and utilities.
"""

from typing import Any, Dict, Union
import pandas as pd
import numpy as np
from pathlib import Path


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists, create if it doesn't."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def create_summary_statistics(data: pd.DataFrame) -> Dict[str, Any]:
    """Create summary statistics for a feature matrix."""
    values = data.to_numpy(dtype=float)
    return {
        'shape': list(data.shape),
        'missing_values': int(np.isnan(values).sum()),
        'non_finite_values': int((~np.isfinite(values)).sum()),
        'min': float(np.nanmin(values)) if values.size else None,
        'max': float(np.nanmax(values)) if values.size else None,
    }


def format_time(seconds: float) -> str:
    """Format time in seconds to human readable format."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.2f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.2f}h"
