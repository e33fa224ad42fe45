"""
Results reporting utilities for metaTransform.

Writes the result tables, the AUC plot and a JSON run summary to an output
directory.
"""

from typing import Any, Dict, List, Optional, Union
import pandas as pd
import numpy as np
from pathlib import Path
import json
from datetime import datetime

from ..core.base import TrainedModelArtifact, TransformationState
from .feature_importance import FeatureImportanceAggregator
from .metrics import MetricsCalculator
from .visualizer import ResultsVisualizer
from ..utils.helpers import ensure_directory
from ..utils.logger import get_logger


class ResultsReporter:
    """Reporter for metaTransform results."""

    def __init__(self, top_k: int = 20):
        self.top_k = top_k
        self.logger = get_logger("ResultsReporter")
        self.metrics = MetricsCalculator()
        self.importance = FeatureImportanceAggregator()
        self.visualizer = ResultsVisualizer()

    def build_tables(self,
                     results: pd.DataFrame,
                     models: Dict[str, List[TrainedModelArtifact]]) -> Dict[str, pd.DataFrame]:
        """In-memory report: raw results, AUC summary and top-feature table."""
        return {
            'results': results,
            'auc_summary': self.metrics.summarize_auc(results),
            'top_features': self.importance.top_features_table(models, top_k=self.top_k),
        }

    def export(self,
               results: pd.DataFrame,
               models: Dict[str, List[TrainedModelArtifact]],
               output_dir: Union[str, Path],
               states: Optional[Dict[str, TransformationState]] = None,
               run_info: Optional[Dict[str, Any]] = None,
               plot_features: bool = False) -> Dict[str, Path]:
        """
        Write every report artifact to ``output_dir``.

        Returns:
            Artifact name -> written path
        """
        output_dir = ensure_directory(output_dir)
        self.logger.info(f"Writing report to {output_dir}")

        tables = self.build_tables(results, models)
        written: Dict[str, Path] = {}

        written['results'] = output_dir / "auc_results.csv"
        tables['results'].to_csv(written['results'], index=False)

        written['auc_summary'] = output_dir / "auc_summary.csv"
        tables['auc_summary'].to_csv(written['auc_summary'], index=False)

        written['top_features'] = output_dir / f"top{self.top_k}_features.csv"
        tables['top_features'].to_csv(written['top_features'])

        plot_path = output_dir / "auc_distribution.png"
        if self.visualizer.plot_auc_distribution(results, save_path=plot_path) is not None:
            written['auc_plot'] = plot_path

        if plot_features:
            for name, series in self.importance.mean_importance(models).items():
                path = output_dir / "feature_importance" / f"{name}_top{self.top_k}.png"
                if self.visualizer.plot_top_features(series, name, top_k=self.top_k, save_path=path) is not None:
                    written[f'importance_plot_{name}'] = path

        summary = {
            'generated': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            'n_results': int(len(results)),
            'status_counts': results['status'].value_counts().to_dict() if len(results) else {},
            'transformations': {name: state.value for name, state in (states or {}).items()},
            'auc_summary': tables['auc_summary'].to_dict(orient='records'),
            'run_info': run_info or {},
        }
        written['summary'] = output_dir / "run_summary.json"
        self.save_results_json(summary, written['summary'])

        self.logger.info(f"Report written: {len(written)} artifacts")
        return written

    def save_results_json(self,
                          results: Dict[str, Any],
                          output_path: Union[str, Path]) -> None:
        """Save results as JSON file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        results_serializable = self._make_json_serializable(results)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(results_serializable, f, indent=2)

        self.logger.info(f"Results saved as JSON: {output_path}")

    def _make_json_serializable(self, obj: Any) -> Any:
        """Convert numpy values and NaN to JSON-serializable types."""
        if isinstance(obj, np.ndarray):
            return [self._make_json_serializable(v) for v in obj.tolist()]
        elif isinstance(obj, dict):
            return {str(key): self._make_json_serializable(value) for key, value in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._make_json_serializable(item) for item in obj]
        elif isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, (float, np.floating)):
            return None if np.isnan(obj) else float(obj)
        else:
            return obj
