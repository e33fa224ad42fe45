"""
参数解析器 for metaTransform.

run 子命令：加载数据、比较八种组成数据变换、输出报告。
"""

import argparse
from typing import List

from ..utils.config import TRANSFORMATION_TAGS


def comma_separated_items(value: str) -> List[str]:
    """解析逗号分隔的字符串为列表。"""
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


def create_argument_parser() -> argparse.ArgumentParser:
    """创建和配置CLI解析器。"""
    parser = argparse.ArgumentParser(
        prog="metatransform",
        description="metaTransform - compare compositional transformations for microbiome classification",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--verbose', action='store_true',
                        help="Print the full traceback on failure")

    subparsers = parser.add_subparsers(dest='command', required=True)

    run_p = subparsers.add_parser('run', help='Run transformations, evaluation loop and reporting',
                                  formatter_class=argparse.ArgumentDefaultsHelpFormatter)

    # 数据文件参数
    run_p.add_argument('--profile', type=str, required=True,
                       help="MetaPhlAn-style abundance profile (rows = clades, columns = samples)")
    run_p.add_argument('--metadata', type=str, required=True,
                       help="Sample metadata table")
    run_p.add_argument('--output', type=str, default=None,
                       help="Output directory for tables and plots (in-memory only when omitted)")
    run_p.add_argument('--config', type=str, default=None,
                       help="YAML/JSON configuration file; command line options override it")
    run_p.add_argument('--log_file', type=str, default=None,
                       help="Log file path (defaults to <output>/run.log)")

    # 类别参数
    run_p.add_argument('--reference_class', type=str, default=None,
                       help="CaseStatus value of the reference class (label 0)")
    run_p.add_argument('--condition_class', type=str, default=None,
                       help="CaseStatus value of the condition class (label 1)")

    # 评估参数
    run_p.add_argument('--splits', type=int, default=None,
                       help="Number of random stratified train/test splits")
    run_p.add_argument('--seed', type=int, default=None,
                       help="Random seed for the split stream")
    run_p.add_argument('--transformations', type=comma_separated_items, default=None,
                       help=f"Comma separated subset of {','.join(TRANSFORMATION_TAGS)}")
    run_p.add_argument('--models', type=comma_separated_items, default=None,
                       help="Comma separated subset of SVM,RF")
    run_p.add_argument('--search_method', type=str, default=None, choices=['grid', 'random'],
                       help="Hyperparameter search method")
    run_p.add_argument('--batch_correction', type=str, default=None,
                       choices=['separate', 'train_fit', 'none'],
                       help="Batch correction mode")
    run_p.add_argument('--top_k', type=int, default=None,
                       help="Number of top random-forest features per transformation")
    run_p.add_argument('--cpu', type=int, default=None,
                       help="Parallel jobs for hyperparameter search")

    return parser


def parse_arguments(argv: List[str] = None) -> argparse.Namespace:
    """解析命令行参数。"""
    parser = create_argument_parser()
    return parser.parse_args(argv)
