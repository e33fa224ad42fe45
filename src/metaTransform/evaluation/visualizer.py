"""
Visualization utilities for metaTransform.

This module contains the plots of the transformation comparison.
"""

from typing import List, Optional, Union
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np
from pathlib import Path

from ..core.base import ResultStatus
from .feature_importance import short_taxon_name
from ..utils.logger import get_logger


class ResultsVisualizer:
    """Visualizer for metaTransform results."""

    def __init__(self, style: str = "whitegrid", figsize: tuple = (10, 6)):
        self.style = style
        self.figsize = figsize
        self.logger = get_logger("ResultsVisualizer")

        # Set plotting style
        sns.set_style(style)

    def plot_auc_distribution(self,
                              results: pd.DataFrame,
                              order: Optional[List[str]] = None,
                              save_path: Optional[Union[str, Path]] = None):
        """
        Box plot of per-split AUCs with the individual splits overlaid,
        transformations on the x axis and model family as hue.

        Returns:
            The matplotlib Figure, or None when there is nothing to plot
        """
        self.logger.info("Creating AUC distribution plot...")

        data = results[results["status"] == ResultStatus.OK.value]
        if data.empty:
            self.logger.warning("No valid AUC values to plot")
            return None

        if order is None:
            order = list(dict.fromkeys(data["transformation"]))
        hue_order = list(dict.fromkeys(data["model"]))

        fig, ax = plt.subplots(figsize=self.figsize)
        sns.boxplot(data=data, x="transformation", y="auc", hue="model",
                    order=order, hue_order=hue_order, showfliers=False, ax=ax)
        sns.stripplot(data=data, x="transformation", y="auc", hue="model",
                      order=order, hue_order=hue_order, dodge=True, palette="dark:black",
                      size=3, alpha=0.6, legend=False, ax=ax)

        ax.axhline(y=0.5, color='red', linestyle='--', alpha=0.7)
        ax.set_ylim(0, 1.05)
        ax.set_xlabel('Transformation', fontsize=12)
        ax.set_ylabel('AUC', fontsize=12)
        ax.set_title('Test-set AUC by transformation and model', fontsize=14, fontweight='bold')
        ax.legend(title='Model', loc='lower right')
        ax.grid(True, alpha=0.3, axis='y')
        fig.tight_layout()

        self._save(fig, save_path)
        return fig

    def plot_top_features(self,
                          importance: pd.Series,
                          transformation: str,
                          top_k: int = 20,
                          save_path: Optional[Union[str, Path]] = None):
        """Horizontal bar plot of the top-k mean importances of one transformation."""
        self.logger.info(f"Creating feature importance plot for {transformation}...")

        top = importance.sort_values(ascending=False).head(top_k)
        if top.empty:
            self.logger.warning(f"No importances to plot for {transformation}")
            return None

        fig, ax = plt.subplots(figsize=(8, max(3, 0.35 * len(top))))
        sns.barplot(x=top.to_numpy(), y=[short_taxon_name(n) for n in top.index], ax=ax, color="#1f77b4")
        ax.set_title(f'{transformation}: top {len(top)} features (RF importance)')
        ax.set_xlabel('Mean importance')
        ax.set_ylabel('')
        fig.tight_layout()

        self._save(fig, save_path)
        return fig

    def _save(self, fig, save_path: Optional[Union[str, Path]]) -> None:
        if save_path:
            save_path = Path(save_path)
            save_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(save_path, dpi=300, bbox_inches='tight')
            self.logger.info(f"Plot saved to {save_path}")
        plt.close(fig)
