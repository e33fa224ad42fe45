"""
End-to-end pipeline for metaTransform.

load -> transform -> filter -> evaluate -> report
"""

import argparse
import time
from pathlib import Path
from typing import Dict, Optional
from dataclasses import dataclass, asdict
import pandas as pd

from metaTransform.core.base import EvaluationConfig, NearZeroVarianceConfig
from metaTransform.core.evaluation_loop import EvaluationLoop, EvaluationOutcome
from metaTransform.data.loader import DataLoader, LoadedDataset, empty_samples
from metaTransform.data.validator import DataValidator
from metaTransform.evaluation.reporter import ResultsReporter
from metaTransform.preprocessing.transformations import TransformationBank
from metaTransform.utils.config import Config, ConfigManager
from metaTransform.utils.helpers import create_summary_statistics, format_time
from metaTransform.utils.logger import get_logger, setup_logging


@dataclass
class PipelineResult:
    """In-memory products of one run."""
    outcome: EvaluationOutcome
    transformed: Dict[str, pd.DataFrame]
    results: pd.DataFrame
    auc_summary: pd.DataFrame
    top_features: pd.DataFrame
    output_files: Optional[Dict[str, Path]] = None


def run_pipeline(dataset: LoadedDataset, config: Config,
                 output_dir: Optional[Path] = None) -> PipelineResult:
    """Run every stage on an already loaded dataset."""
    logger = get_logger("Pipeline")
    config.validate()
    start = time.time()

    # 总丰度为0的样本在TSS及其衍生变换下无定义
    empty = empty_samples(dataset.abundance)
    if empty:
        logger.warning(f"Dropping {len(empty)} samples with zero total abundance: {empty[:5]}")
        dataset = dataset.drop_samples(empty)

    DataValidator().validate(dataset.abundance, dataset.labels, dataset.batch)

    logger.info("=" * 60)
    logger.info("Transformations")
    logger.info("=" * 60)
    bank = TransformationBank(pseudocount=config.pseudocount)
    transformed = bank.transform_all(dataset.abundance, include=config.transformations)

    logger.info("=" * 60)
    logger.info("Evaluation loop")
    logger.info("=" * 60)
    loop = EvaluationLoop(_create_evaluation_config(config), _create_nzv_config(config))
    outcome = loop.run(transformed, dataset.labels, dataset.batch)

    logger.info("=" * 60)
    logger.info("Reporting")
    logger.info("=" * 60)
    reporter = ResultsReporter(top_k=config.top_k)
    results = outcome.results_frame()
    tables = reporter.build_tables(results, outcome.models)

    best = reporter.metrics.best_combination(results)
    if best is not None:
        logger.info(f"Best combination: {best['transformation']} + {best['model']} "
                    f"(mean AUC {best['auc_mean']:.3f} over {best['n']} splits)")
    else:
        logger.warning("No valid AUC values were produced")

    output_files = None
    if output_dir is not None:
        run_info = {
            'n_samples': dataset.n_samples,
            'n_taxa': dataset.n_taxa,
            'batches': sorted(map(str, dataset.batch.unique())),
            'evaluated': outcome.evaluated(),
            'skipped': {name: outcome.filter_results[name].message for name in outcome.skipped()},
            'matrices': {name: create_summary_statistics(matrix) for name, matrix in transformed.items()},
            'config': asdict(config),
        }
        output_files = reporter.export(results, outcome.models, output_dir,
                                       states=outcome.states, run_info=run_info)

    logger.info(f"Pipeline finished in {format_time(time.time() - start)}")
    return PipelineResult(
        outcome=outcome,
        transformed=transformed,
        results=results,
        auc_summary=tables['auc_summary'],
        top_features=tables['top_features'],
        output_files=output_files,
    )


def handle_run(args: argparse.Namespace) -> PipelineResult:
    """处理run命令：合并配置，加载数据，运行完整流水线。"""
    config = _build_config(args)

    output_dir = Path(config.output_dir) if config.output_dir else None
    log_file = getattr(args, 'log_file', None)
    if log_file is None and output_dir is not None:
        log_file = output_dir / "run.log"
    setup_logging(log_file=log_file)

    logger = get_logger("Pipeline")
    logger.info("开始运行流水线...")
    _validate_args(args)

    dataset = DataLoader(config).load_data(args.profile, args.metadata)
    result = run_pipeline(dataset, config, output_dir=output_dir)

    if output_dir is not None:
        ConfigManager().update_config(**asdict(config)).save_to_file(output_dir / "config_used.yaml")
    return result


def _build_config(args: argparse.Namespace) -> Config:
    """Defaults < config file < command line."""
    manager = ConfigManager()
    if getattr(args, 'config', None):
        manager.load_from_file(args.config)
    manager.update_config(
        splits=getattr(args, 'splits', None),
        seed=getattr(args, 'seed', None),
        reference_class=getattr(args, 'reference_class', None),
        condition_class=getattr(args, 'condition_class', None),
        transformations=getattr(args, 'transformations', None),
        models=getattr(args, 'models', None),
        search_method=getattr(args, 'search_method', None),
        batch_correction_mode=getattr(args, 'batch_correction', None),
        n_jobs=getattr(args, 'cpu', None),
        output_dir=getattr(args, 'output', None),
        top_k=getattr(args, 'top_k', None),
    )
    config = manager.get_config()
    config.validate()
    return config


def _create_evaluation_config(config: Config) -> EvaluationConfig:
    return EvaluationConfig(
        splits=config.splits,
        train_fraction=config.train_fraction,
        cv_folds=config.cv_folds,
        random_state=config.seed,
        search_method=config.search_method,
        n_iter=config.n_iter,
        n_jobs=config.n_jobs,
        models=list(config.models),
        param_grids=dict(config.param_grids),
        batch_correction_mode=config.batch_correction_mode,
        undefined_auc_policy=config.undefined_auc_policy,
    )


def _create_nzv_config(config: Config) -> NearZeroVarianceConfig:
    return NearZeroVarianceConfig(freq_cut=config.freq_cut, unique_cut=config.unique_cut)


def _validate_args(args: argparse.Namespace) -> None:
    """验证参数的有效性。"""
    if not Path(args.profile).exists():
        raise FileNotFoundError(f"Profile file not found: {args.profile}")
    if not Path(args.metadata).exists():
        raise FileNotFoundError(f"Metadata file not found: {args.metadata}")
