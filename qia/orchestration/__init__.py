"""
Orchestration of the QIA agents.
"""

from qia.orchestration.pipeline import PipelineOutcome, QualityPipeline

__all__ = ["PipelineOutcome", "QualityPipeline"]
