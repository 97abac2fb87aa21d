"""Orchestration pipelines."""

from .summary_pipeline import SummaryPipeline, create_summary_pipeline

__all__ = [
    "SummaryPipeline",
    "create_summary_pipeline",
]
