"""
Repeated split evaluation loop for metaTransform.

For every transformation that survives near-zero-variance filtering:

1. draw ``splits`` stratified train/test partitions from one seeded stream
2. batch-correct both partitions
3. tune and fit each classifier family with stratified CV on the train part
4. score the condition-class probability on the test part and record the AUC

Iteration order is transformation outer, split inner. Split seeds are drawn
sequentially from a single ``RandomState``, so the same seed and the same
transformation list reproduce the same partitions.
"""

from typing import Dict, List, Optional, Tuple
from collections import OrderedDict
from dataclasses import dataclass, field
import pandas as pd
import numpy as np
from sklearn.model_selection import train_test_split

from .base import (
    DataIntegrityError,
    EvaluationConfig,
    NearZeroVarianceConfig,
    ResultCollector,
    ResultRecord,
    ResultStatus,
    TrainedModelArtifact,
    TransformationState,
    UndefinedMetricError,
)
from .hyperparameter_tuner import HyperparameterTunerFactory
from ..config.model_configs import get_param_grid
from ..evaluation.metrics import compute_auc
from ..models import ModelFactory
from ..preprocessing.batch_correction import correct_partitions
from ..preprocessing.nzv_filter import FilterResult, NearZeroVarianceFilter
from ..utils.logger import get_logger

Partition = Tuple[List[str], List[str]]


@dataclass
class EvaluationOutcome:
    """Everything the loop produced. The loop owns the trained models; reporting reads them."""
    results: ResultCollector
    models: Dict[str, List[TrainedModelArtifact]] = field(default_factory=OrderedDict)
    states: Dict[str, TransformationState] = field(default_factory=OrderedDict)
    partitions: Dict[str, List[Partition]] = field(default_factory=OrderedDict)
    filter_results: Dict[str, FilterResult] = field(default_factory=OrderedDict)

    def results_frame(self) -> pd.DataFrame:
        return self.results.to_frame()

    def skipped(self) -> List[str]:
        return [name for name, state in self.states.items() if state == TransformationState.SKIPPED]

    def evaluated(self) -> List[str]:
        return [name for name, state in self.states.items() if state == TransformationState.EVALUATED]

    def models_for(self, transformation: str, model: str) -> List[TrainedModelArtifact]:
        return [a for a in self.models.get(transformation, []) if a.model == model]


class EvaluationLoop:
    """Runs the transformation x split x model evaluation."""

    def __init__(self, config: Optional[EvaluationConfig] = None,
                 nzv_config: Optional[NearZeroVarianceConfig] = None):
        self.config = config or EvaluationConfig()
        self.nzv_filter = NearZeroVarianceFilter(nzv_config)
        self.logger = get_logger("EvaluationLoop")
        self._validate_config()

    def _validate_config(self) -> None:
        if self.config.splits < 1:
            raise ValueError(f"splits must be >= 1, got {self.config.splits}")
        if not 0 < self.config.train_fraction < 1:
            raise ValueError(f"train_fraction must be in (0, 1), got {self.config.train_fraction}")
        if self.config.cv_folds < 2:
            raise ValueError(f"cv_folds must be >= 2, got {self.config.cv_folds}")
        if self.config.undefined_auc_policy not in ("warn", "raise"):
            raise ValueError(f"Unknown undefined_auc_policy: {self.config.undefined_auc_policy}")
        for tag in self.config.models:
            get_param_grid(tag, self.config.param_grids)

    def run(
        self,
        transformed: Dict[str, pd.DataFrame],
        labels: pd.Series,
        batch: pd.Series,
        results: Optional[ResultCollector] = None,
    ) -> EvaluationOutcome:
        """
        Evaluate every transformation.

        Args:
            transformed: Mapping from transformation tag to matrix (samples x features)
            labels: Binary labels (1 = condition) indexed by sample id
            batch: Batch label indexed by sample id
            results: Optional collector to append to

        Returns:
            EvaluationOutcome with results, trained models and per-transformation state
        """
        if not labels.index.equals(batch.index):
            raise DataIntegrityError("Labels and batch labels are indexed by different samples")
        if labels.index.has_duplicates:
            raise DataIntegrityError("Duplicate sample identifiers in labels")

        outcome = EvaluationOutcome(results=results if results is not None else ResultCollector())
        rng = np.random.RandomState(self.config.random_state)

        self.logger.info(
            f"Evaluating {len(transformed)} transformations x {self.config.splits} splits x "
            f"{len(self.config.models)} models (seed={self.config.random_state})"
        )

        for name, matrix in transformed.items():
            outcome.states[name] = TransformationState.PENDING
            matrix = self._align(matrix, labels, name)

            filter_result = self.nzv_filter.filter(matrix, name)
            outcome.filter_results[name] = filter_result
            outcome.states[name] = TransformationState.FILTERED

            if filter_result.skipped:
                outcome.states[name] = TransformationState.SKIPPED
                continue

            outcome.models[name] = []
            outcome.partitions[name] = []
            for split in range(1, self.config.splits + 1):
                split_seed = int(rng.randint(0, np.iinfo(np.int32).max))
                self._run_split(name, split, split_seed, filter_result.data, labels, batch, outcome)

            outcome.states[name] = TransformationState.EVALUATED

        n_ok = sum(1 for r in outcome.results if r.is_ok)
        self.logger.info(
            f"Evaluation finished: {len(outcome.results)} result rows ({n_ok} ok), "
            f"skipped transformations: {outcome.skipped() or 'none'}"
        )
        return outcome

    def _align(self, matrix: pd.DataFrame, labels: pd.Series, name: str) -> pd.DataFrame:
        """Put the matrix rows in label order by sample id; never by position."""
        if matrix.index.equals(labels.index):
            return matrix
        if matrix.index.has_duplicates or set(matrix.index) != set(labels.index):
            missing = labels.index.difference(matrix.index)
            extra = matrix.index.difference(labels.index)
            raise DataIntegrityError(
                f"{name}: sample ids do not match the labels "
                f"({len(missing)} missing, {len(extra)} unexpected, duplicates={matrix.index.has_duplicates})"
            )
        return matrix.loc[labels.index]

    def partition(self, sample_ids: pd.Index, labels: pd.Series, split_seed: int) -> Partition:
        """Stratified train/test split of sample ids."""
        train_ids, test_ids = train_test_split(
            list(sample_ids),
            train_size=self.config.train_fraction,
            stratify=labels.loc[sample_ids].to_numpy(),
            random_state=split_seed,
        )
        return list(train_ids), list(test_ids)

    def _run_split(
        self,
        name: str,
        split: int,
        split_seed: int,
        X: pd.DataFrame,
        labels: pd.Series,
        batch: pd.Series,
        outcome: EvaluationOutcome,
    ) -> None:
        context = f"{name} | split {split}/{self.config.splits}"

        try:
            train_ids, test_ids = self.partition(X.index, labels, split_seed)
        except ValueError as e:
            self.logger.error(f"{context} | partition failed: {e}")
            for tag in self.config.models:
                self._record(outcome, name, split, tag, np.nan, ResultStatus.FIT_FAILED, f"partition failed: {e}")
            return
        outcome.partitions[name].append((train_ids, test_ids))

        y_train = labels.loc[train_ids].to_numpy()
        y_test = labels.loc[test_ids].to_numpy()

        if len(np.unique(y_test)) < 2:
            message = f"test partition has a single class ({len(y_test)} samples), AUC undefined"
            if self.config.undefined_auc_policy == "raise":
                raise UndefinedMetricError(f"{context} | {message}")
            self.logger.warning(f"{context} | {message}")
            for tag in self.config.models:
                self._record(outcome, name, split, tag, np.nan, ResultStatus.UNDEFINED_AUC, message)
            return

        X_train, X_test = correct_partitions(
            X.loc[train_ids], X.loc[test_ids],
            batch.loc[train_ids].to_numpy(), batch.loc[test_ids].to_numpy(),
            mode=self.config.batch_correction_mode,
        )

        for tag in self.config.models:
            try:
                artifact = self._train(name, split, tag, split_seed, X_train, y_train)
                scores = artifact.predict_condition_proba(X_test)
                auc_value = compute_auc(y_test, scores)
            except UndefinedMetricError as e:
                if self.config.undefined_auc_policy == "raise":
                    raise
                self.logger.warning(f"{context} | {tag} | {e}")
                self._record(outcome, name, split, tag, np.nan, ResultStatus.UNDEFINED_AUC, str(e))
                continue
            except Exception as e:
                self.logger.error(f"{context} | {tag} | model fit/scoring failed: {type(e).__name__}: {e}")
                self._record(outcome, name, split, tag, np.nan, ResultStatus.FIT_FAILED,
                             f"{type(e).__name__}: {e}")
                continue

            outcome.models[name].append(artifact)
            self.logger.info(f"{context} | {tag} | AUC={auc_value:.3f} | params={artifact.best_params}")
            self._record(outcome, name, split, tag, auc_value, ResultStatus.OK)

    def _train(self, name: str, split: int, tag: str, split_seed: int,
               X_train: pd.DataFrame, y_train: np.ndarray) -> TrainedModelArtifact:
        tuner_kwargs = dict(
            cv_folds=self.config.cv_folds,
            n_jobs=self.config.n_jobs,
            random_state=split_seed,
        )
        if self.config.search_method == "random":
            tuner_kwargs["n_iter"] = self.config.n_iter
        tuner = HyperparameterTunerFactory.create_tuner(self.config.search_method, **tuner_kwargs)

        estimator = tuner.tune(
            ModelFactory.create_model(tag, random_state=split_seed),
            X_train, y_train,
            get_param_grid(tag, self.config.param_grids),
        )
        return TrainedModelArtifact(
            transformation=name,
            split=split,
            model=tag,
            estimator=estimator,
            feature_names=list(X_train.columns),
            best_params=dict(tuner.best_params_),
            cv_score=tuner.best_score_,
        )

    @staticmethod
    def _record(outcome: EvaluationOutcome, name: str, split: int, tag: str, auc_value: float,
                status: ResultStatus, message: str = "") -> None:
        outcome.results.append(ResultRecord(
            transformation=name, split=split, model=tag,
            auc=float(auc_value), status=status.value, message=message,
        ))
