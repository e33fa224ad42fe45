"""
Configuration management for metaTransform.

This module contains configuration loading and management utilities.
"""

from typing import Any, Dict, List, Optional, Union
import yaml
import json
from pathlib import Path
from dataclasses import dataclass, asdict, field

from .logger import get_logger

TRANSFORMATION_TAGS = ["PA", "TSS", "logTSS", "aSIN", "CLR", "rCLR", "ILR", "ALR"]


@dataclass
class Config:
    """Configuration class for metaTransform."""

    # Input columns
    sample_id_col: str = "Run"
    class_col: str = "CaseStatus"
    batch_col: str = "BioProject"
    taxon_col: str = "clade_name"
    reference_class: str = "Control"
    condition_class: str = "Case"
    sample_suffix: str = ""

    # Transformation configuration
    pseudocount: float = 1e-6
    transformations: List[str] = field(default_factory=lambda: list(TRANSFORMATION_TAGS))

    # Near-zero-variance filter (caret defaults)
    freq_cut: float = 95 / 5
    unique_cut: float = 10.0

    # Evaluation loop configuration
    splits: int = 10
    train_fraction: float = 0.8
    cv_folds: int = 5
    seed: int = 42
    search_method: str = "grid"
    n_iter: int = 10
    n_jobs: int = 1
    models: List[str] = field(default_factory=lambda: ["SVM", "RF"])
    param_grids: Dict[str, Dict[str, List[Any]]] = field(default_factory=dict)
    batch_correction_mode: str = "separate"
    undefined_auc_policy: str = "warn"

    # Reporting configuration
    top_k: int = 20
    output_dir: Optional[str] = None

    def validate(self) -> None:
        """Raise ValueError on settings the pipeline cannot run with."""
        unknown = [t for t in self.transformations if t not in TRANSFORMATION_TAGS]
        if unknown:
            raise ValueError(f"Unknown transformations: {unknown}. Supported: {TRANSFORMATION_TAGS}")
        unknown_models = [m for m in self.models if m not in ("SVM", "RF")]
        if unknown_models:
            raise ValueError(f"Unknown models: {unknown_models}. Supported: ['SVM', 'RF']")
        if self.splits < 1:
            raise ValueError(f"splits must be >= 1, got {self.splits}")
        if not 0 < self.train_fraction < 1:
            raise ValueError(f"train_fraction must be in (0, 1), got {self.train_fraction}")
        if self.cv_folds < 2:
            raise ValueError(f"cv_folds must be >= 2, got {self.cv_folds}")
        if self.pseudocount <= 0:
            raise ValueError(f"pseudocount must be positive, got {self.pseudocount}")
        if self.search_method not in ("grid", "random"):
            raise ValueError(f"search_method must be 'grid' or 'random', got {self.search_method}")
        if self.batch_correction_mode not in ("separate", "train_fit", "none"):
            raise ValueError(f"Unknown batch_correction_mode: {self.batch_correction_mode}")
        if self.undefined_auc_policy not in ("warn", "raise"):
            raise ValueError(f"undefined_auc_policy must be 'warn' or 'raise', got {self.undefined_auc_policy}")
        if self.reference_class == self.condition_class:
            raise ValueError("reference_class and condition_class must differ")
        if self.top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {self.top_k}")


class ConfigManager:
    """Configuration manager for metaTransform."""

    def __init__(self):
        self.logger = get_logger("ConfigManager")
        self.config = Config()

    def load_from_file(self, config_path: Union[str, Path]) -> 'ConfigManager':
        """
        Load configuration from a file.

        Args:
            config_path: Path to configuration file

        Returns:
            Self for method chaining
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        self.logger.info(f"Loading configuration from {config_path}")

        if config_path.suffix.lower() in ('.yaml', '.yml'):
            self._load_yaml(config_path)
        elif config_path.suffix.lower() == '.json':
            self._load_json(config_path)
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        return self

    def _load_yaml(self, config_path: Path) -> None:
        """Load configuration from YAML file."""
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        self._update_config(config_data)

    def _load_json(self, config_path: Path) -> None:
        """Load configuration from JSON file."""
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)

        self._update_config(config_data)

    def _update_config(self, config_data: Dict[str, Any]) -> None:
        """Update configuration with loaded data."""
        for key, value in config_data.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)
            else:
                self.logger.warning(f"Unknown configuration key: {key}")

        self.logger.info("Configuration loaded successfully")

    def save_to_file(self, config_path: Union[str, Path]) -> None:
        """
        Save configuration to a file.

        Args:
            config_path: Path to save configuration file
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        self.logger.info(f"Saving configuration to {config_path}")

        config_data = asdict(self.config)

        if config_path.suffix.lower() in ('.yaml', '.yml'):
            with open(config_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(config_data, f, default_flow_style=False, indent=2)
        elif config_path.suffix.lower() == '.json':
            with open(config_path, 'w', encoding='utf-8') as f:
                json.dump(config_data, f, indent=2)
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        self.logger.info("Configuration saved successfully")

    def get_config(self) -> Config:
        """Get the current configuration."""
        return self.config

    def update_config(self, **kwargs) -> 'ConfigManager':
        """
        Update configuration with new values. ``None`` values are ignored so
        unset command line options do not clobber file settings.

        Args:
            **kwargs: Configuration parameters to update

        Returns:
            Self for method chaining
        """
        for key, value in kwargs.items():
            if value is None:
                continue
            if hasattr(self.config, key):
                setattr(self.config, key, value)
            else:
                self.logger.warning(f"Unknown configuration key: {key}")

        return self
