"""
Pipeline entry points for metaTransform.
"""

from .run import PipelineResult, run_pipeline, handle_run

__all__ = [
    "PipelineResult",
    "run_pipeline",
    "handle_run",
]
